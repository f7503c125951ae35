"""
Tests for numeric validators and the calculation result wrapper.
"""

import math

import numpy as np
import pytest

from underwriting.calculations.validation import (
    CalculationResult,
    is_non_negative_number,
    is_positive_number,
    is_valid_number,
    parse_number_input,
)


class TestIsValidNumber:
    """Test the finite-number guard."""

    @pytest.mark.parametrize("value", [0, 100, -50, 3.14159, 0.001, np.float64(2.5)])
    def test_accepts_finite_numbers(self, value):
        """Finite ints and floats are usable."""
        assert is_valid_number(value) is True

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_rejects_non_finite(self, value):
        """NaN and infinities are not usable."""
        assert is_valid_number(value) is False

    @pytest.mark.parametrize("value", [None, "100", "", {}, [], True, False])
    def test_rejects_non_numbers(self, value):
        """Strings, containers, None and bools are not numbers."""
        assert is_valid_number(value) is False


class TestSignGuards:
    """Test positive and non-negative guards."""

    def test_positive_number(self):
        assert is_positive_number(1)
        assert is_positive_number(0.001)
        assert not is_positive_number(0)
        assert not is_positive_number(-0.001)
        assert not is_positive_number(math.nan)
        assert not is_positive_number(None)

    def test_non_negative_number(self):
        assert is_non_negative_number(0)
        assert is_non_negative_number(1)
        assert not is_non_negative_number(-1)
        assert not is_non_negative_number(math.inf)


class TestParseNumberInput:
    """Test form field coercion."""

    def test_empty_values_are_zero(self):
        assert parse_number_input(None) == 0
        assert parse_number_input("") == 0

    def test_parses_numeric_strings(self):
        assert parse_number_input("1250.5") == 1250.5
        assert parse_number_input("1,250,000") == 1250000

    def test_garbage_is_zero(self):
        assert parse_number_input("abc") == 0
        assert parse_number_input("nan") == 0
        assert parse_number_input(math.inf) == 0

    def test_passes_numbers_through(self):
        assert parse_number_input(42) == 42.0


class TestCalculationResult:
    """Test result variants."""

    def test_ok(self):
        result = CalculationResult.ok(5.0)
        assert result.is_valid
        assert result.error is None
        assert not result.is_warning
        assert not result.is_rejected

    def test_warning_keeps_value_usable(self):
        result = CalculationResult.warning(60.0, "outside typical range")
        assert result.is_valid
        assert result.is_warning
        assert result.value == 60.0

    def test_rejected_defaults_to_zero(self):
        result = CalculationResult.rejected("must be positive")
        assert not result.is_valid
        assert result.is_rejected
        assert not result.is_warning
        assert result.value == 0

    def test_to_dict(self):
        result = CalculationResult.warning(1.1, "low")
        assert result.to_dict() == {"value": 1.1, "is_valid": True, "error": "low"}
