import base64
import json
import math

import pytest

from dalkit.mpack import read_double, read_int, read_uint
from dalkit.node import BlobRef, Node
from dalkit.serialize import SerializeError, to_json, to_mpack


def _decode(data, pos=0):
    """Minimal MessagePack decoder returning (value, next_position)."""
    tag = data[pos]
    pos += 1
    if tag <= 0x7F:
        return tag, pos
    if tag >= 0xE0:
        return tag - 0x100, pos
    if 0x80 <= tag <= 0x8F:
        return _decode_map(data, pos, tag & 0x0F)
    if 0x90 <= tag <= 0x9F:
        return _decode_array(data, pos, tag & 0x0F)
    if 0xA0 <= tag <= 0xBF:
        n = tag & 0x1F
        return data[pos:pos + n].decode("utf-8"), pos + n
    if tag == 0xC2:
        return False, pos
    if tag == 0xC3:
        return True, pos
    if tag == 0xC0:
        return None, pos
    if tag in (0xC4, 0xC5, 0xC6):
        width = {0xC4: 1, 0xC5: 2, 0xC6: 4}[tag]
        n = read_uint(data[pos:], width)
        pos += width
        return data[pos:pos + n], pos + n
    if tag in (0xD9, 0xDA, 0xDB):
        width = {0xD9: 1, 0xDA: 2, 0xDB: 4}[tag]
        n = read_uint(data[pos:], width)
        pos += width
        return data[pos:pos + n].decode("utf-8"), pos + n
    if tag in (0xCC, 0xCD, 0xCE, 0xCF):
        width = {0xCC: 1, 0xCD: 2, 0xCE: 4, 0xCF: 8}[tag]
        return read_uint(data[pos:], width), pos + width
    if tag in (0xD0, 0xD1, 0xD2, 0xD3):
        width = {0xD0: 1, 0xD1: 2, 0xD2: 4, 0xD3: 8}[tag]
        return read_int(data[pos:], width), pos + width
    if tag == 0xCB:
        return read_double(data[pos:]), pos + 8
    if tag in (0xDE, 0xDF):
        width = 2 if tag == 0xDE else 4
        return _decode_map(data, pos + width, read_uint(data[pos:], width))
    if tag in (0xDC, 0xDD):
        width = 2 if tag == 0xDC else 4
        return _decode_array(data, pos + width, read_uint(data[pos:], width))
    raise AssertionError(f"unexpected tag {tag:#x}")


def _decode_map(data, pos, count):
    out = {}
    for _ in range(count):
        key, pos = _decode(data, pos)
        out[key], pos = _decode(data, pos)
    return out, pos


def _decode_array(data, pos, count):
    out = []
    for _ in range(count):
        item, pos = _decode(data, pos)
        out.append(item)
    return out, pos


def _unpack(data):
    value, pos = _decode(data)
    assert pos == len(data)
    return value


SAMPLE = {
    "name": "widget",
    "count": 42,
    "neg": -7,
    "big": 2**64 - 1,
    "ratio": 0.5,
    "flag": True,
    "off": False,
    "items": [1, 2, 3],
    "nested": {"inner": "x", "list": [{"a": 1}, {"b": -300}]},
}


def test_json_compact_form():
    root = Node().set({"a": 1, "b": True})
    assert to_json(root) == '{"a": 1,"b": true}'


def test_json_pretty_form():
    root = Node().set({"a": 1})
    assert to_json(root, pretty=True) == '{\n\t"a": 1\n}'


def test_json_empty_object():
    assert to_json(Node()) == "{}"


@pytest.mark.parametrize("pretty", [False, True])
def test_json_round_trip(pretty):
    text = to_json(Node().set(SAMPLE), pretty=pretty)
    assert json.loads(text) == SAMPLE


def test_json_pretty_lines_are_tab_indented():
    text = to_json(Node().set(SAMPLE), pretty=True)
    for line in text.splitlines()[1:-1]:
        assert line.startswith("\t")
    assert text.endswith("}")


def test_json_scalar_top_level():
    assert to_json(Node("", 17)) == "17"
    assert to_json(Node("", "hi")) == '"hi"'


def test_json_blob_is_data_uri():
    payload = bytes(range(7))
    text = to_json(Node().set({"bin": payload}))
    uri = json.loads(text)["bin"]
    prefix = "data:application/octet-stream;base64,"
    assert uri.startswith(prefix)
    assert base64.b64decode(uri[len(prefix):]) == payload


def test_json_blob_ref_matches_blob():
    payload = bytearray(b"abcde")
    by_copy = to_json(Node().set({"b": bytes(payload)}))
    root = Node()
    root.add_child(Node("b", BlobRef(payload)))
    assert to_json(root) == by_copy


def test_json_double_round_trips():
    text = to_json(Node().set({"v": 1.25e-3}))
    assert json.loads(text)["v"] == 1.25e-3


def test_json_limit_exact_fit_and_overflow():
    root = Node().set(SAMPLE)
    text = to_json(root)
    needed = len(text.encode("utf-8")) + 1
    assert to_json(root, limit=needed) == text
    with pytest.raises(SerializeError):
        to_json(root, limit=needed - 1)


def test_json_unknown_node_raises():
    root = Node()
    root.add_child(Node("x", None))
    with pytest.raises(SerializeError):
        to_json(root)


def test_json_negative_limit_rejected():
    with pytest.raises(ValueError):
        to_json(Node(), limit=-1)


def test_mpack_wire_bytes_for_small_map():
    assert to_mpack(Node().set({"a": 1})) == b"\x81\xa1a\x01"


def test_mpack_round_trip():
    assert _unpack(to_mpack(Node().set(SAMPLE))) == SAMPLE


def test_mpack_blob_round_trip():
    payload = bytes(range(256)) * 2
    decoded = _unpack(to_mpack(Node().set({"data": payload})))
    assert decoded == {"data": payload}


def test_mpack_large_containers_round_trip():
    values = list(range(20))
    mapping = {f"k{i}": i for i in range(20)}
    decoded = _unpack(to_mpack(Node().set({"arr": values, "map": mapping})))
    assert decoded == {"arr": values, "map": mapping}


def test_mpack_special_doubles():
    decoded = _unpack(to_mpack(Node().set({"inf": math.inf, "nan": math.nan})))
    assert decoded["inf"] == math.inf
    assert math.isnan(decoded["nan"])


def test_mpack_top_level_key_is_not_written():
    root = Node("ignored", 5)
    assert _unpack(to_mpack(root)) == 5


def test_mpack_limit_exact_fit_and_overflow():
    root = Node().set(SAMPLE)
    data = to_mpack(root)
    assert to_mpack(root, limit=len(data)) == data
    with pytest.raises(SerializeError):
        to_mpack(root, limit=len(data) - 1)


def test_mpack_unknown_node_raises():
    with pytest.raises(SerializeError):
        to_mpack(Node().set({"x": None}))