"""Power-of-ten tables used by the decimal number parser.

The 128-bit mantissas are the powers of ten from ``10**SMALLEST_POWER`` to
``10**LARGEST_POWER`` normalised so that the top bit is set and truncated
(never rounded up). ``mantissa_high`` gives the upper 64 bits and
``mantissa_low`` the lower 64 bits.
"""

from __future__ import annotations

from functools import lru_cache

__all__ = [
    "SMALLEST_POWER",
    "LARGEST_POWER",
    "MAX_EXACT_DOUBLE_POWER",
    "MAX_EXACT_INT_POWER",
    "mantissa_high",
    "mantissa_low",
    "exact_power_double",
    "exact_power_int",
]

SMALLEST_POWER = -325
LARGEST_POWER = 308
MAX_EXACT_DOUBLE_POWER = 22
MAX_EXACT_INT_POWER = 18

_MASK64 = (1 << 64) - 1

_POW10_DOUBLE = tuple(float(10**k) for k in range(MAX_EXACT_DOUBLE_POWER + 1))
_POW10_INT = tuple(10**k for k in range(MAX_EXACT_INT_POWER + 1))


def _check_range(power: int, low: int, high: int) -> None:
    if not low <= power <= high:
        raise ValueError(f"power {power} outside [{low}, {high}]")


@lru_cache(maxsize=None)
def _mantissa128(power: int) -> int:
    _check_range(power, SMALLEST_POWER, LARGEST_POWER)
    if power >= 0:
        value = 10**power
        shift = 128 - value.bit_length()
        return value << shift if shift >= 0 else value >> -shift
    divisor = 10**-power
    # Quotient lies strictly between 2**127 and 2**128: exactly 128 bits.
    return (1 << (127 + divisor.bit_length())) // divisor


def mantissa_high(power: int) -> int:
    """Upper 64 bits of the normalised, truncated mantissa of ``10**power``."""
    return _mantissa128(power) >> 64


def mantissa_low(power: int) -> int:
    """Lower 64 bits of the normalised, truncated mantissa of ``10**power``."""
    return _mantissa128(power) & _MASK64


def exact_power_double(power: int) -> float:
    """``10**power`` as a double, for the powers a double represents exactly."""
    _check_range(power, 0, MAX_EXACT_DOUBLE_POWER)
    return _POW10_DOUBLE[power]


def exact_power_int(power: int) -> int:
    """``10**power`` for the powers that fit a signed 64-bit integer."""
    _check_range(power, 0, MAX_EXACT_INT_POWER)
    return _POW10_INT[power]