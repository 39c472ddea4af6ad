import math

import pytest

from dalkit.tables import (
    LARGEST_POWER,
    SMALLEST_POWER,
    exact_power_double,
    exact_power_int,
    mantissa_high,
    mantissa_low,
)


@pytest.mark.parametrize(
    "power, high, low",
    [
        (0, 0x8000000000000000, 0x0),
        (1, 0xA000000000000000, 0x0),
        (-1, 0xCCCCCCCCCCCCCCCC, 0xCCCCCCCCCCCCCCCC),
        (-2, 0xA3D70A3D70A3D70A, 0x3D70A3D70A3D70A3),
        (-3, 0x83126E978D4FDF3B, 0x645A1CAC083126E9),
    ],
)
def test_pinned_table_entries(power, high, low):
    assert mantissa_high(power) == high
    assert mantissa_low(power) == low


def test_power_28_has_low_bits():
    assert mantissa_low(28) == 0x4000000000000000


@pytest.mark.parametrize("power", range(0, 28))
def test_small_positive_powers_have_no_low_bits(power):
    assert mantissa_low(power) == 0


@pytest.mark.parametrize("power", range(SMALLEST_POWER, LARGEST_POWER + 1, 7))
def test_high_part_is_normalised(power):
    assert mantissa_high(power) >> 63 == 1
    assert 0 <= mantissa_low(power) < 1 << 64


@pytest.mark.parametrize("power", range(-307, LARGEST_POWER + 1, 11))
def test_high_part_matches_decimal_mantissa(power):
    fraction, _ = math.frexp(float(f"1e{power}"))
    assert math.isclose(mantissa_high(power) / 2.0**64, fraction, rel_tol=1e-15)


@pytest.mark.parametrize("power", [SMALLEST_POWER - 1, LARGEST_POWER + 1])
def test_mantissa_out_of_range(power):
    with pytest.raises(ValueError):
        mantissa_high(power)
    with pytest.raises(ValueError):
        mantissa_low(power)


@pytest.mark.parametrize("power", range(0, 23))
def test_exact_power_double(power):
    assert exact_power_double(power) == float(f"1e{power}")


@pytest.mark.parametrize("power", range(0, 18))
def test_exact_power_int_steps_by_ten(power):
    assert exact_power_int(power) * 10 == exact_power_int(power + 1)


def test_exact_power_int_bounds():
    assert exact_power_int(0) == 1
    assert exact_power_int(18) == 10**18


@pytest.mark.parametrize("power", [-1, 23])
def test_exact_power_double_out_of_range(power):
    with pytest.raises(ValueError):
        exact_power_double(power)


@pytest.mark.parametrize("power", [-1, 19])
def test_exact_power_int_out_of_range(power):
    with pytest.raises(ValueError):
        exact_power_int(power)