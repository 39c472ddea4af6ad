"""MessagePack encoding primitives with a bounded output buffer."""

from __future__ import annotations

import math
import struct

__all__ = [
    "BufferOverflowError",
    "MpackWriter",
    "read_uint",
    "read_int",
    "read_float",
    "read_double",
]

_UINT_FORMATS = {1: ">B", 2: ">H", 4: ">I", 8: ">Q"}
_INT_FORMATS = {1: ">b", 2: ">h", 4: ">i", 8: ">q"}

_UINT32_MAX = 0xFFFFFFFF
_UINT64_MAX = 0xFFFFFFFFFFFFFFFF
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


class BufferOverflowError(Exception):
    """Raised when an encoded value does not fit in the remaining space."""


def _unpack(formats: dict[int, str], data: bytes, width: int) -> int:
    try:
        fmt = formats[width]
    except KeyError:
        raise ValueError(f"unsupported width {width}; expected 1, 2, 4 or 8") from None
    if len(data) < width:
        raise ValueError(f"need {width} bytes, got {len(data)}")
    return struct.unpack_from(fmt, data)[0]


def read_uint(data: bytes, width: int) -> int:
    """Read a big-endian unsigned integer of ``width`` bytes from the start of ``data``."""
    return _unpack(_UINT_FORMATS, data, width)


def read_int(data: bytes, width: int) -> int:
    """Read a big-endian two's-complement integer of ``width`` bytes."""
    return _unpack(_INT_FORMATS, data, width)


def read_float(data: bytes) -> float:
    """Read a big-endian IEEE 754 single-precision value."""
    if len(data) < 4:
        raise ValueError(f"need 4 bytes, got {len(data)}")
    return struct.unpack_from(">f", data)[0]


def read_double(data: bytes) -> float:
    """Read a big-endian IEEE 754 double-precision value."""
    if len(data) < 8:
        raise ValueError(f"need 8 bytes, got {len(data)}")
    return struct.unpack_from(">d", data)[0]


class MpackWriter:
    """Encodes MessagePack values into a buffer of at most ``limit`` bytes.

    A value that does not fit raises :class:`BufferOverflowError` and leaves
    the buffer unchanged. ``limit=None`` means the buffer is unbounded.
    """

    def __init__(self, limit: int | None = None) -> None:
        if limit is not None and limit < 0:
            raise ValueError("limit must not be negative")
        self._limit = limit
        self._buf = bytearray()

    def __len__(self) -> int:
        return len(self._buf)

    @property
    def available(self) -> int | None:
        """Bytes still free, or None when the buffer is unbounded."""
        if self._limit is None:
            return None
        return self._limit - len(self._buf)

    def getvalue(self) -> bytes:
        """Return everything written so far."""
        return bytes(self._buf)

    def _emit(self, *parts: bytes) -> None:
        size = sum(len(part) for part in parts)
        if self._limit is not None and len(self._buf) + size > self._limit:
            raise BufferOverflowError(
                f"{size} bytes needed, {self._limit - len(self._buf)} available"
            )
        for part in parts:
            self._buf += part

    def write_str(self, data: str | bytes) -> None:
        """Write a string; text is encoded as UTF-8."""
        raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        length = len(raw)
        if length <= 31:
            header = bytes([0xA0 | length])
        elif length <= 0xFF:
            header = struct.pack(">BB", 0xD9, length)
        elif length <= 0xFFFF:
            header = struct.pack(">BH", 0xDA, length)
        elif length <= _UINT32_MAX:
            header = struct.pack(">BI", 0xDB, length)
        else:
            raise ValueError("string longer than 2**32 - 1 bytes")
        self._emit(header, raw)

    def write_nil(self) -> None:
        """Write nil."""
        self._emit(b"\xc0")

    def write_bool(self, value: bool) -> None:
        """Write true or false."""
        self._emit(b"\xc3" if value else b"\xc2")

    def write_uint(self, value: int) -> None:
        """Write an unsigned integer in the smallest encoding that holds it."""
        if not 0 <= value <= _UINT64_MAX:
            raise ValueError(f"{value} is outside the unsigned 64-bit range")
        if value <= 0x7F:
            self._emit(bytes([value]))
        elif value <= 0xFF:
            self._emit(struct.pack(">BB", 0xCC, value))
        elif value <= 0xFFFF:
            self._emit(struct.pack(">BH", 0xCD, value))
        elif value <= _UINT32_MAX:
            self._emit(struct.pack(">BI", 0xCE, value))
        else:
            self._emit(struct.pack(">BQ", 0xCF, value))

    def write_int(self, value: int) -> None:
        """Write a signed integer; non-negative values use the unsigned forms."""
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise ValueError(f"{value} is outside the signed 64-bit range")
        if value >= -32:
            if value < 0:
                self._emit(struct.pack(">b", value))
            else:
                self.write_uint(value)
        elif value >= -128:
            self._emit(struct.pack(">Bb", 0xD0, value))
        elif value >= -32768:
            self._emit(struct.pack(">Bh", 0xD1, value))
        elif value >= -(1 << 31):
            self._emit(struct.pack(">Bi", 0xD2, value))
        else:
            self._emit(struct.pack(">Bq", 0xD3, value))

    def write_float(self, value: float) -> None:
        """Write a single-precision float."""
        try:
            payload = struct.pack(">f", value)
        except OverflowError:
            payload = struct.pack(">f", math.copysign(math.inf, value))
        self._emit(b"\xca", payload)

    def write_double(self, value: float) -> None:
        """Write a double-precision float."""
        self._emit(b"\xcb", struct.pack(">d", value))

    def write_blob(self, value: bytes) -> None:
        """Write binary data."""
        raw = bytes(value)
        length = len(raw)
        if length <= 0xFF:
            header = struct.pack(">BB", 0xC4, length)
        elif length <= 0xFFFF:
            header = struct.pack(">BH", 0xC5, length)
        elif length <= _UINT32_MAX:
            header = struct.pack(">BI", 0xC6, length)
        else:
            raise BufferOverflowError("binary data longer than 2**32 - 1 bytes")
        self._emit(header, raw)

    def write_map_begin(self, count: int) -> None:
        """Write the header of a map holding ``count`` key/value pairs."""
        self._write_container(count, 0x80, 0xDE, 0xDF)

    def write_array_begin(self, count: int) -> None:
        """Write the header of an array holding ``count`` elements."""
        self._write_container(count, 0x90, 0xDC, 0xDD)

    def _write_container(self, count: int, fix: int, tag16: int, tag32: int) -> None:
        if not 0 <= count <= _UINT32_MAX:
            raise ValueError(f"element count {count} out of range")
        if count <= 15:
            self._emit(bytes([fix | count]))
        elif count <= 0xFFFF:
            self._emit(struct.pack(">BH", tag16, count))
        else:
            self._emit(struct.pack(">BI", tag32, count))