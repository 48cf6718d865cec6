"""
Tests for number flooring and the compact number format.
"""
import math

import pytest

from tower_idle.core.numbers import (
    MAX_MAGNITUDE,
    floor_int,
    format_number,
    get_suffix,
    safe_mul,
    scaled_pow,
)


class TestFloorInt:
    """floor_int saturates instead of raising."""

    def test_int_passthrough(self):
        """Ints come back unchanged, even huge ones."""
        assert floor_int(10 ** 400) == 10 ** 400

    def test_floors_floats(self):
        assert floor_int(2.9) == 2
        assert floor_int(-0.5) == -1

    def test_positive_infinity_saturates(self):
        assert floor_int(math.inf) == MAX_MAGNITUDE

    def test_nan_and_negative_infinity_are_zero(self):
        assert floor_int(math.nan) == 0
        assert floor_int(-math.inf) == 0


class TestOverflowHelpers:
    """Tests for overflow helpers."""

    def test_scaled_pow_overflow_returns_inf(self):
        assert scaled_pow(100.0, 1000) == math.inf

    def test_scaled_pow_normal(self):
        assert scaled_pow(100.0, 2) == 10000.0

    def test_safe_mul_overflowing_int(self):
        """An int too large for a float saturates to inf."""
        assert safe_mul(10 ** 400, 1.5) == math.inf

    def test_safe_mul_plain(self):
        assert safe_mul(2, 3, 0.5) == 3.0


class TestGetSuffix:
    """Tests for get_suffix."""

    @pytest.mark.parametrize("magnitude,expected", [
        (0, ""),
        (1, "k"),
        (2, "m"),
        (3, "g"),
        (4, "t"),
        (5, "aa"),
        (6, "ab"),
        (5 + 26, "ba"),
        (5 + 26 * 26 - 1, "zz"),
    ])
    def test_suffixes(self, magnitude, expected):
        assert get_suffix(magnitude) == expected

    def test_past_zz_is_empty(self):
        assert get_suffix(5 + 26 * 26) == ""


class TestFormatNumber:
    """Tests for format_number."""

    def test_small_values_grouped(self):
        assert format_number(0) == "0"
        assert format_number(999) == "999"
        assert format_number(12.7) == "12"

    def test_thousands_truncate(self):
        """Values are floored, never rounded up."""
        assert format_number(1_999) == "1k"
        assert format_number(12_345) == "12k"

    def test_millions(self):
        assert format_number(42_000_000) == "42m"

    def test_two_letter_suffixes(self):
        assert format_number(10 ** 15) == "1aa"
        assert format_number(10 ** 18) == "1ab"

    def test_large_int_exact(self):
        """Ints beyond float precision still format from integer division."""
        assert format_number(123 * 10 ** 300) == "123" + get_suffix(100)

    def test_just_below_suffix_boundary(self):
        """An int one below a power of 1000 stays on the lower suffix."""
        assert format_number(10 ** 15 - 1) == "999t"
        assert format_number(10 ** 18 - 1) == "999aa"
        assert format_number(10 ** 21 - 1) == "999ab"
        assert format_number(-(10 ** 15 - 1)) == "-999t"

    def test_negative(self):
        assert format_number(-5_000) == "-5k"

    def test_non_finite_is_max(self):
        assert format_number(math.inf) == "MAX"
        assert format_number(math.nan) == "MAX"
