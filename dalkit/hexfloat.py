"""Parsing of hexadecimal numbers such as ``1a.8p-3`` into doubles."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass

__all__ = ["HexParse", "parse_hex"]

_MASK64 = (1 << 64) - 1
_HEX_DIGITS = "0123456789abcdefABCDEF"
_DOT = "."
_EXP = "p"
_BAD = "!"


@dataclass(frozen=True)
class HexParse:
    """Outcome of :func:`parse_hex`.

    ``end`` is the index just past the consumed text, or -1 when neither a
    digit nor a leading zero was read. ``integer`` holds the raw digit value
    when the scan stopped at a character outside the number's alphabet, and
    0 otherwise (exponent forms, stray characters, overflow).
    """

    value: float
    end: int
    integer: int


def _classify(ch: str) -> int | str | None:
    """Map a character to a hex digit value, '.', 'p', '!' (bad) or None (stop)."""
    if not ch or not 0x2E <= ord(ch) <= 0x70:
        return None
    if ch == ".":
        return _DOT
    if ch in "pP":
        return _EXP
    if ch in _HEX_DIGITS:
        return int(ch, 16)
    return _BAD


def _is_digit(ch: str) -> bool:
    return ch != "" and "0" <= ch <= "9"


def _clz64(value: int) -> int:
    return 64 - value.bit_length() if value else 63


def _bits_to_double(bits: int) -> float:
    return struct.unpack("<d", struct.pack("<Q", bits & _MASK64))[0]


def parse_hex(text: str, negative: bool = False) -> HexParse:
    """Parse hex digits with an optional point and binary exponent ``p±dd``.

    ``text`` starts right after any ``0x`` prefix. Only the first fifteen
    significant digits are kept exactly; later non-zero digits act as a
    sticky bit for rounding. Out-of-range exponents give an infinity.
    """
    size = len(text)

    def at(index: int) -> str:
        return text[index] if index < size else ""

    pos = 0
    while at(pos) == "0":
        pos += 1
    leading = pos

    mantissa = 0
    digits = 0
    bexp = 0
    point = -1
    integer = 0

    while True:
        kind = _classify(at(pos))
        if kind is None:
            integer = mantissa
            break
        if isinstance(kind, int):
            digits += 1
            pos += 1
            if digits < 16:
                mantissa = mantissa * 16 + kind
            elif kind:
                mantissa |= 1
        elif kind == _DOT:
            if point != -1:
                break
            pos += 1
            point = digits
            if point == 0:
                while at(pos) == "0":
                    pos += 1
                    leading += 1
                    bexp -= 4
        elif kind == _EXP:
            start = pos + 1
            sign = 1
            if at(start) == "-":
                start += 1
                sign = -1
            elif at(start) == "+":
                start += 1
            if not _is_digit(at(start)):
                break
            exponent = int(at(start))
            pos = start + 1
            while _is_digit(at(pos)):
                if exponent < 100_000_000:
                    exponent = exponent * 10 + int(at(pos))
                pos += 1
            bexp += sign * exponent
            break
        else:
            break

    end = pos if digits + leading else -1
    if not digits:
        return HexParse(-0.0 if negative else 0.0, end, integer)

    if point == -1:
        point = digits
    kept = min(digits, 15)
    shift = _clz64(mantissa) - 1
    bexp += (point - kept) * 4 + 1021 + 63 - shift

    if not -53 <= bexp <= 2045:
        return HexParse(-math.inf if negative else math.inf, end, 0)

    denormal = 0
    if bexp < 0:
        denormal = -bexp
        bexp = 0
    mantissa = (mantissa << shift) & _MASK64
    if shift < 10 + denormal:
        halfway = 0x200 << denormal
        if mantissa & (halfway * 3 - 1):
            mantissa += halfway

    bits = (bexp << 52) + (mantissa >> (10 + denormal))
    if negative:
        bits |= 1 << 63
    return HexParse(_bits_to_double(bits), end, integer)