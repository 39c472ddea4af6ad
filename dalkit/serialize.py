"""Serialization of :class:`~dalkit.node.Node` trees to JSON text and MessagePack."""

from __future__ import annotations

import base64

from dalkit.mpack import BufferOverflowError, MpackWriter
from dalkit.node import Node, NodeType

__all__ = ["SerializeError", "to_json", "to_mpack"]

_BLOB_PREFIX = "data:application/octet-stream;base64,"


class SerializeError(Exception):
    """Raised when a tree cannot be serialized into the space given."""


class _Sink:
    """Receives the events of a depth-first walk over a tree."""

    def key(self, key: str) -> None:
        raise NotImplementedError

    def boolean(self, value: bool) -> None:
        raise NotImplementedError

    def uint(self, value: int) -> None:
        raise NotImplementedError

    def integer(self, value: int) -> None:
        raise NotImplementedError

    def double(self, value: float) -> None:
        raise NotImplementedError

    def string(self, value: str) -> None:
        raise NotImplementedError

    def blob(self, value: bytes) -> None:
        raise NotImplementedError

    def begin_object(self, count: int) -> None:
        raise NotImplementedError

    def end_object(self) -> None:
        raise NotImplementedError

    def begin_array(self, count: int) -> None:
        raise NotImplementedError

    def end_array(self) -> None:
        raise NotImplementedError


def _walk(node: Node, sink: _Sink, with_key: bool) -> None:
    if with_key:
        sink.key(node.key)
    kind = node.type
    if kind is NodeType.BOOL:
        sink.boolean(node.value)
    elif kind is NodeType.UINT:
        sink.uint(node.value)
    elif kind is NodeType.INT:
        sink.integer(node.value)
    elif kind is NodeType.DOUBLE:
        sink.double(node.value)
    elif kind is NodeType.STRING:
        sink.string(node.value)
    elif kind in (NodeType.BLOB, NodeType.BLOB_REF):
        sink.blob(bytes(memoryview(node.value)))
    elif kind is NodeType.OBJECT:
        children = node.children()
        sink.begin_object(len(children))
        for child in children:
            _walk(child, sink, True)
        sink.end_object()
    elif kind is NodeType.ARRAY:
        children = node.children()
        sink.begin_array(len(children))
        for child in children:
            _walk(child, sink, False)
        sink.end_array()
    else:
        raise SerializeError(f"node {node.key!r} has no value to serialize")


class _JsonSink(_Sink):
    """Writes JSON text; every value is followed by a comma that closers strip."""

    def __init__(self, pretty: bool, limit: int | None) -> None:
        self._pretty = pretty
        self._limit = limit
        self._parts: list[str] = []
        self._size = 0
        self._indent_level = 0
        self._array_indent = False

    def _emit(self, text: str) -> None:
        size = len(text.encode("utf-8"))
        if self._limit is not None and self._size + size > self._limit:
            raise SerializeError(
                f"{size} bytes needed, {self._limit - self._size} available"
            )
        self._parts.append(text)
        self._size += size

    def _strip_comma(self) -> None:
        if self._parts and self._parts[-1].endswith(","):
            last = self._parts.pop()[:-1]
            self._size -= 1
            if last:
                self._parts.append(last)

    def _indent(self) -> None:
        self._emit("\n" + "\t" * self._indent_level)

    def _value(self, text: str) -> None:
        if self._array_indent:
            self._indent()
        self._emit(text + ",")

    def key(self, key: str) -> None:
        if self._pretty:
            self._indent()
        self._emit(f'"{key}": ')

    def boolean(self, value: bool) -> None:
        self._value("true" if value else "false")

    def uint(self, value: int) -> None:
        self._value(str(value))

    def integer(self, value: int) -> None:
        self._value(str(value))

    def double(self, value: float) -> None:
        self._value(repr(value))

    def string(self, value: str) -> None:
        self._value(f'"{value}"')

    def blob(self, value: bytes) -> None:
        encoded = base64.b64encode(value).decode("ascii")
        self._value(f'"{_BLOB_PREFIX}{encoded}"')

    def begin_object(self, count: int) -> None:
        self._emit("{")
        self._indent_level += 1

    def end_object(self) -> None:
        self._strip_comma()
        self._indent_level -= 1
        if self._pretty:
            self._indent()
        self._emit("},")

    def begin_array(self, count: int) -> None:
        self._emit("[")
        self._indent_level += 1
        self._array_indent = self._pretty

    def end_array(self) -> None:
        self._strip_comma()
        self._indent_level -= 1
        self._array_indent = False
        if self._pretty:
            self._indent()
        self._emit("],")

    def result(self) -> str:
        # The comma after the top value becomes the terminator slot.
        self._strip_comma()
        return "".join(self._parts)


class _MpackSink(_Sink):
    """Writes MessagePack through a bounded :class:`MpackWriter`."""

    def __init__(self, limit: int | None) -> None:
        self.writer = MpackWriter(limit)

    def key(self, key: str) -> None:
        self.writer.write_str(key)

    def boolean(self, value: bool) -> None:
        self.writer.write_bool(value)

    def uint(self, value: int) -> None:
        self.writer.write_uint(value)

    def integer(self, value: int) -> None:
        self.writer.write_int(value)

    def double(self, value: float) -> None:
        self.writer.write_double(value)

    def string(self, value: str) -> None:
        self.writer.write_str(value)

    def blob(self, value: bytes) -> None:
        self.writer.write_blob(value)

    def begin_object(self, count: int) -> None:
        self.writer.write_map_begin(count)

    def end_object(self) -> None:
        pass

    def begin_array(self, count: int) -> None:
        self.writer.write_array_begin(count)

    def end_array(self) -> None:
        pass


def to_json(node: Node, pretty: bool = False, limit: int | None = None) -> str:
    """Serialize ``node`` as JSON text.

    Keys are followed by ``": "``; with ``pretty`` each key and array element
    goes on its own tab-indented line. Binary data becomes a base64 data URI.
    ``limit`` bounds the output in bytes, counting one byte for the
    terminator; exceeding it raises :class:`SerializeError`.
    """
    if limit is not None and limit < 0:
        raise ValueError("limit must not be negative")
    sink = _JsonSink(pretty, limit)
    _walk(node, sink, False)
    return sink.result()


def to_mpack(node: Node, limit: int | None = None) -> bytes:
    """Serialize ``node`` as MessagePack; objects become maps keyed by child keys.

    Output longer than ``limit`` bytes raises :class:`SerializeError`.
    """
    sink = _MpackSink(limit)
    try:
        _walk(node, sink, False)
    except BufferOverflowError as exc:
        raise SerializeError(str(exc)) from exc
    return sink.writer.getvalue()