import pytest

from staking.errors import ArithmeticOverflow
from staking.fixed_point import (
    MAX_UINT256,
    PRECISION,
    checked_add,
    checked_sub,
    mul_div,
    parse_units,
)


class TestCheckedArithmetic:
    """Tests for the overflow-checked integer helpers."""

    def test_mul_div_floors(self):
        assert mul_div(10, 1, 3) == 3
        assert mul_div(2, PRECISION, 3) == 666_666_666_666

    def test_mul_div_keeps_wide_intermediate(self):
        """Test that a product far above 64 bits still divides exactly."""
        assert mul_div(10**40, 10**30, 10**50) == 10**20

    def test_mul_div_rejects_overflow(self):
        with pytest.raises(ArithmeticOverflow):
            mul_div(MAX_UINT256, 2, 2)

    def test_mul_div_rejects_zero_denominator(self):
        with pytest.raises(ArithmeticOverflow):
            mul_div(1, 1, 0)

    def test_checked_add_rejects_overflow(self):
        assert checked_add(MAX_UINT256 - 1, 1) == MAX_UINT256
        with pytest.raises(ArithmeticOverflow):
            checked_add(MAX_UINT256, 1)

    def test_checked_sub_rejects_underflow(self):
        assert checked_sub(5, 5) == 0
        with pytest.raises(ArithmeticOverflow):
            checked_sub(4, 5)


class TestTokenUnits:
    """Tests for decimal token amount conversion."""

    def test_parse_units(self):
        assert parse_units("0.01") == 10**16
        assert parse_units("1000000") == 10**24
        assert parse_units("1.5", 4) == 15_000

    @pytest.mark.parametrize("value", ["", "abc", "-1", "NaN"])
    def test_parse_units_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            parse_units(value)

    def test_parse_units_rejects_excess_precision(self):
        with pytest.raises(ValueError):
            parse_units("0.00001", 4)
