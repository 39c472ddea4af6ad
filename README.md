# dalkit

dalkit is a small data abstraction layer. You build a tree of typed values, estimate its
encoded size, and write it out as JSON text or MessagePack bytes. You can cap the output at a
byte limit, which is useful when the target is a buffer of fixed size.

The package also has a number parser. It reads decimal numbers, hexadecimal numbers with
binary exponents, and the words `nan`, `inf` and `-inf`. It returns a double, plus an exact
64-bit integer when one exists.

## Installation

```
pip install dalkit
```

To run the tests:

```
pip install "dalkit[test]"
pytest
```

## Building a tree (`dalkit.node`)

A `Node` holds one value under a key. The key is an empty string by default.

- A node created without a value is an empty object.
- Children are added with `add_child`, which works only on object and array nodes.
- `children()` returns the children in insertion order.

```python
from dalkit.node import Node, BlobRef

root = Node()
root.add_child(Node("name", "sensor"))
root.add_child(Node("count", 3))
root.add_child(Node("ratio", 0.5))
root.add_child(Node("raw", b"\x01\x02\x03"))
root.add_child(Node("items", [1, 2, 3]))

for child in root.children():
    print(child)

print(root.size())   # estimated encoded size in bytes
```

`Node.set(value)` replaces a node's value. The node's type follows the new value, and any
existing children are dropped. The possible types are listed in `NodeType`:

| Value given | Resulting type |
|---|---|
| `None` | `UNKNOWN` |
| `bool` | `BOOL` |
| `int` in the signed 64-bit range | `INT` |
| larger `int` up to the unsigned 64-bit limit | `UINT` |
| `int` beyond the unsigned 64-bit limit | `ValueError` |
| `float` | `DOUBLE` |
| `str` | `STRING` |
| `bytes`, `bytearray` or `memoryview` (copied) | `BLOB` |
| `BlobRef(data)` (the buffer is kept, not copied) | `BLOB_REF` |
| mapping | `OBJECT`, with one child per item, keyed by the item's key |
| any other iterable | `ARRAY`, with one child per element |

`Node.size()` is an estimate of the encoded size. Each node counts as a two-byte header plus
the UTF-8 length of its key, plus its payload:

- `UNKNOWN` and `BOOL` count 1 byte.
- Numbers count 8 bytes.
- Strings and blobs count their byte length.
- Objects and arrays count the sum of their children's sizes.

## Serializing (`dalkit.serialize`)

```python
from dalkit.serialize import to_json, to_mpack, SerializeError

text = to_json(root, pretty=True, limit=1024)
packed = to_mpack(root, limit=1024)
```

`to_json` writes each key followed by `": "`. With `pretty=True`, each key and each array
element goes on its own tab-indented line. Other details:

- Doubles are written with `repr`.
- Blobs are written as base64 `data:application/octet-stream;base64,` strings.
- Keys and string values are written as they are, without escaping.
- `limit` counts one extra byte for a terminator.

`to_mpack` writes objects as maps keyed by the child keys, arrays as arrays, and doubles as
64-bit floats.

With either function, a tree that does not fit within `limit` raises `SerializeError`. So does
a node of type `UNKNOWN`.

## Writing MessagePack directly (`dalkit.mpack`)

```python
from dalkit.mpack import MpackWriter, BufferOverflowError, read_uint

writer = MpackWriter(limit=64)
writer.write_map_begin(1)
writer.write_str(b"id")
writer.write_uint(300)
data = writer.getvalue()          # b'\x81\xa2id\xcd\x01,'
print(read_uint(data[5:], 2))     # 300
```

`MpackWriter` writes each value in the smallest encoding that holds it. Its methods are:

- `write_str`, `write_nil`, `write_bool`
- `write_uint`, `write_int`
- `write_float`, `write_double`
- `write_blob`
- `write_map_begin`, `write_array_begin`

A write that would go past `limit` raises `BufferOverflowError` and leaves the buffer
unchanged. `limit=None` means no limit, and `available` reports how many bytes are still free.

The helpers `read_uint(data, width)`, `read_int(data, width)`, `read_float(data)` and
`read_double(data)` decode big-endian fixed-width values from the start of `data`.

## Parsing numbers (`dalkit.strtonum`, `dalkit.hexfloat`)

```python
from dalkit.strtonum import parse_number

result = parse_number("1.25e3")
print(result.float_value, result.float_valid, result.int_value, result.int_valid, result.end)
# 1250.0 True 1250 True 6
```

`parse_number` skips leading whitespace and returns a `NumberResult`. The result has:

- a double value (`float_value`) with its own validity flag (`float_valid`);
- an integer value (`int_value`) with its own validity flag (`int_valid`);
- the index where scanning stopped (`end`).

Do not use a value whose flag is False. Note that `nan` is returned with `float_valid` set to
False.

Hexadecimal input such as `0x1.8p3` is handled by `dalkit.hexfloat.parse_hex`. It takes the
text after the prefix and returns a `HexParse` with `value`, `end` and `integer`.

The module `dalkit.tables` provides the power-of-ten tables the parser uses. The function
`dalkit.strtonum.compute_float64(power, mantissa, negative)` gives direct access to the fast
decimal-to-binary step. It returns `None` when it cannot decide the rounding.

## What dalkit does not do

dalkit only writes JSON and MessagePack. It does not read either format back into a `Node`
tree. It has no command-line tool.