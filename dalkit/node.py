"""Tree of typed values: objects, arrays and scalar leaves."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

__all__ = ["NodeType", "BlobRef", "Node"]

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_UINT64_MAX = (1 << 64) - 1

# Every encoded node carries a two-byte header in the size estimate.
_HEADER_SIZE = 2
_BOOL_SIZE = 1
_WORD_SIZE = 8


class NodeType(enum.Enum):
    """Kind of value a :class:`Node` holds."""

    UNKNOWN = enum.auto()
    BOOL = enum.auto()
    UINT = enum.auto()
    INT = enum.auto()
    DOUBLE = enum.auto()
    STRING = enum.auto()
    BLOB = enum.auto()
    BLOB_REF = enum.auto()
    ARRAY = enum.auto()
    OBJECT = enum.auto()


_CONTAINERS = frozenset({NodeType.ARRAY, NodeType.OBJECT})


@dataclass(frozen=True)
class BlobRef:
    """Binary data held by reference: the node keeps the buffer, not a copy."""

    data: Any

    @property
    def size(self) -> int:
        """Length of the referenced data in bytes."""
        return memoryview(self.data).nbytes


_NO_VALUE = object()


class Node:
    """A keyed node holding a scalar value or, for objects and arrays, children.

    A node created without a value is an empty object. Assigning ``None``
    makes the node's type unknown.
    """

    def __init__(self, key: str = "", value: Any = _NO_VALUE) -> None:
        self.key = key
        self.parent: Node | None = None
        self.type = NodeType.OBJECT
        self.value: Any = None
        self._children: list[Node] = []
        if value is not _NO_VALUE:
            self.set(value)

    def __repr__(self) -> str:
        if self.type in _CONTAINERS:
            return f"Node({self.key!r}, {self.type.name}, {len(self._children)} children)"
        return f"Node({self.key!r}, {self.type.name}, {self.value!r})"

    @property
    def key_length(self) -> int:
        """Length of the key in bytes (UTF-8)."""
        return len(self.key.encode("utf-8"))

    def _detach_children(self) -> None:
        for child in self._children:
            child.parent = None
        self._children = []

    def set(self, value: Any) -> Node:
        """Replace the node's value; the type follows the value given.

        Integers within the signed 64-bit range become ``INT``, larger ones up
        to the unsigned 64-bit limit become ``UINT``. Bytes-like values are
        copied into a ``BLOB``; a :class:`BlobRef` is kept by reference.
        Mappings become objects and other sequences become arrays.
        """
        if isinstance(value, Node):
            raise TypeError("use add_child to attach a node")
        self._detach_children()
        if value is None:
            self.type, self.value = NodeType.UNKNOWN, None
        elif isinstance(value, bool):
            self.type, self.value = NodeType.BOOL, value
        elif isinstance(value, int):
            if _INT64_MIN <= value <= _INT64_MAX:
                self.type = NodeType.INT
            elif _INT64_MAX < value <= _UINT64_MAX:
                self.type = NodeType.UINT
            else:
                raise ValueError(f"{value} does not fit in 64 bits")
            self.value = value
        elif isinstance(value, float):
            self.type, self.value = NodeType.DOUBLE, value
        elif isinstance(value, str):
            self.type, self.value = NodeType.STRING, value
        elif isinstance(value, (bytes, bytearray, memoryview)):
            self.type, self.value = NodeType.BLOB, bytes(value)
        elif isinstance(value, BlobRef):
            self.type, self.value = NodeType.BLOB_REF, value.data
        elif isinstance(value, Mapping):
            self.type, self.value = NodeType.OBJECT, None
            for key, item in value.items():
                self._attach(item if isinstance(item, Node) else Node(str(key), item))
        elif isinstance(value, Iterable):
            self.type, self.value = NodeType.ARRAY, None
            for item in value:
                self._attach(item if isinstance(item, Node) else Node("", item))
        else:
            raise TypeError(f"unsupported value type {type(value).__name__}")
        return self

    def _attach(self, child: Node) -> Node:
        if child is self or child.parent is not None:
            raise ValueError("node already belongs to a tree")
        child.parent = self
        self._children.append(child)
        return child

    def add_child(self, child: Node) -> Node:
        """Append ``child`` to this object or array and return it."""
        if self.type not in _CONTAINERS:
            raise TypeError(f"a {self.type.name} node cannot hold children")
        return self._attach(child)

    def children(self) -> list[Node]:
        """The node's children in insertion order."""
        return list(self._children)

    def __len__(self) -> int:
        return len(self._children)

    def size(self) -> int:
        """Estimated encoded size: a header, the payload and the key."""
        overhead = _HEADER_SIZE + self.key_length
        kind = self.type
        if kind in (NodeType.UNKNOWN, NodeType.BOOL):
            return overhead + _BOOL_SIZE
        if kind in (NodeType.UINT, NodeType.INT, NodeType.DOUBLE):
            return overhead + _WORD_SIZE
        if kind is NodeType.STRING:
            return overhead + len(self.value.encode("utf-8"))
        if kind is NodeType.BLOB:
            return overhead + len(self.value)
        if kind is NodeType.BLOB_REF:
            return overhead + memoryview(self.value).nbytes
        return overhead + sum(child.size() for child in self._children)