"""Decimal and hexadecimal number parsing into doubles and 64-bit integers."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass

from dalkit.hexfloat import parse_hex
from dalkit.tables import (
    LARGEST_POWER,
    MAX_EXACT_DOUBLE_POWER,
    SMALLEST_POWER,
    exact_power_double,
    mantissa_high,
    mantissa_low,
)

__all__ = ["NumberResult", "compute_float64", "parse_number"]

_MASK64 = (1 << 64) - 1
_MAX_FAST_MANTISSA = (1 << 53) - 1
_MAX_DIGITS = 20
_WHITESPACE = " \t\r\n"


@dataclass(frozen=True)
class NumberResult:
    """Outcome of :func:`parse_number`.

    ``end`` is the index in the input where scanning stopped. A value whose
    ``*_valid`` flag is False must not be used.
    """

    float_value: float = 0.0
    float_valid: bool = False
    int_value: int = 0
    int_valid: bool = False
    end: int = 0


def _clz64(value: int) -> int:
    return 64 - value.bit_length() if value else 63


def _bits_to_double(bits: int) -> float:
    return struct.unpack("<d", struct.pack("<Q", bits & _MASK64))[0]


def _to_int64(value: int) -> int:
    value &= _MASK64
    return value - (1 << 64) if value >> 63 else value


def _mul128(x: int, y: int) -> tuple[int, int]:
    product = x * y
    return product & _MASK64, product >> 64


def compute_float64(power: int, mantissa: int, negative: bool) -> float | None:
    """Return ``±mantissa * 10**power`` correctly rounded.

    Returns None when the fast algorithm cannot decide the rounding or the
    result falls outside the normal double range.
    """
    if -MAX_EXACT_DOUBLE_POWER <= power <= MAX_EXACT_DOUBLE_POWER and mantissa <= _MAX_FAST_MANTISSA:
        value = float(mantissa)
        if power < 0:
            value /= exact_power_double(-power)
        else:
            value *= exact_power_double(power)
        return -value if negative else value

    if mantissa == 0:
        return -0.0 if negative else 0.0

    factor = mantissa_high(power)
    exponent = (((152170 + 65536) * power) >> 16) + 1024 + 63
    shift = _clz64(mantissa)
    i = (mantissa << shift) & _MASK64

    lower, upper = _mul128(i, factor)

    if (upper & 0x1FF) == 0x1FF and lower + i > _MASK64:
        product_low, middle2 = _mul128(i, mantissa_low(power))
        middle1 = lower
        high = upper
        middle = (middle1 + middle2) & _MASK64
        if middle < middle1:
            high = (high + 1) & _MASK64
        if middle == _MASK64 and (high & 0x1FF) == 0x1FF and product_low + i > _MASK64:
            return None
        upper = high
        lower = middle

    upperbit = upper >> 63
    result = upper >> (upperbit + 9)
    shift += 1 ^ upperbit

    if lower == 0 and (upper & 0x1FF) == 0 and (result & 3) == 1:
        return None

    result += result & 1
    result >>= 1
    if result >= 1 << 53:
        result = 1 << 52
        shift -= 1

    result &= ~(1 << 52)
    real_exponent = exponent - shift
    if not 1 <= real_exponent <= 2046:
        return None

    bits = result | (real_exponent << 52)
    if negative:
        bits |= 1 << 63
    return _bits_to_double(bits)


def parse_number(text: str) -> NumberResult:
    """Parse a number at the start of ``text`` after optional whitespace.

    Accepts decimal numbers with fraction and exponent, ``0x``/``x`` hex
    numbers, and ``nan``, ``inf`` and ``-inf`` in any case.
    """
    length = len(text)

    def at(index: int) -> str:
        return text[index] if 0 <= index < length else ""

    def is_digit(index: int) -> bool:
        ch = at(index)
        return ch != "" and "0" <= ch <= "9"

    def fail(end: int) -> NumberResult:
        return NumberResult(end=end)

    pos = 0
    while at(pos) and at(pos) in _WHITESPACE:
        pos += 1

    word = text[pos:pos + 3].lower()
    if word == "nan":
        return NumberResult(float_value=math.nan, end=pos + 3)
    if word == "inf":
        return NumberResult(float_value=math.inf, float_valid=True, end=pos + 3)
    if text[pos:pos + 4].lower() == "-inf":
        return NumberResult(float_value=-math.inf, float_valid=True, end=pos + 4)

    negative = at(pos) == "-"
    if negative:
        pos += 1
        if not is_digit(pos):
            return fail(pos)

    hex_start = None
    if at(pos) == "x":
        hex_start = pos + 1
    elif at(pos) == "0" and at(pos + 1) == "x":
        hex_start = pos + 2
    if hex_start is not None:
        parsed = parse_hex(text[hex_start:], negative)
        end = hex_start + parsed.end if parsed.end >= 0 else hex_start - 1
        return NumberResult(
            float_value=parsed.value,
            float_valid=True,
            int_value=_to_int64(parsed.integer),
            int_valid=True,
            end=end,
        )

    mantissa = 0
    count = 0
    exponent = 0

    if at(pos) == "0":
        pos += 1
        if is_digit(pos):
            return fail(pos)
    else:
        if not is_digit(pos):
            return fail(pos)
        mantissa = int(at(pos))
        pos += 1
        count = 1
        while is_digit(pos):
            if count < _MAX_DIGITS:
                mantissa = (mantissa * 10 + int(at(pos))) & _MASK64
                count += 1
            else:
                exponent += 1
            pos += 1

    if at(pos) == ".":
        pos += 1
        if pos >= length:
            return fail(pos)
        if not is_digit(pos):
            return fail(pos)
        digit = int(at(pos))
        pos += 1
        if pos >= length:
            return fail(pos)
        if count < _MAX_DIGITS:
            mantissa = (mantissa * 10 + digit) & _MASK64
            exponent -= 1
            count += 1
        while is_digit(pos):
            if count < _MAX_DIGITS:
                mantissa = (mantissa * 10 + int(at(pos))) & _MASK64
                exponent -= 1
                count += 1
            pos += 1

    if at(pos) in ("e", "E"):
        pos += 1
        if pos >= length:
            return fail(pos)
        negative_exponent = False
        if at(pos) == "-":
            negative_exponent = True
            pos += 1
        elif at(pos) == "+":
            pos += 1
        if pos >= length or not is_digit(pos):
            return fail(pos)
        exp_number = int(at(pos))
        pos += 1
        while is_digit(pos):
            if exp_number < 0x100000000:
                exp_number = exp_number * 10 + int(at(pos))
            pos += 1
        exponent += -exp_number if negative_exponent else exp_number

    if exponent < SMALLEST_POWER:
        return NumberResult(float_value=-0.0 if negative else 0.0, float_valid=True, end=pos)
    if exponent > LARGEST_POWER:
        return NumberResult(float_value=-math.inf if negative else math.inf, float_valid=True, end=pos)

    value = compute_float64(exponent, mantissa, negative)
    float_valid = value is not None
    if value is None:
        value = math.nan

    int_value = 0
    int_valid = False
    if exponent >= 0 and 0 < count + exponent < _MAX_DIGITS:
        int_value = _to_int64(mantissa * 10**exponent)
        if negative:
            int_value = _to_int64(-int_value)
        int_valid = True

    return NumberResult(
        float_value=value,
        float_valid=float_valid,
        int_value=int_value,
        int_valid=int_valid,
        end=pos,
    )