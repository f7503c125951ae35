"""
Input Validation and Calculation Results

Numeric guards used at the top of every public calculation, and the uniform
result shape returned by the single-period underwriting functions.
"""

import math
from dataclasses import dataclass
from numbers import Real
from typing import Any, Dict, Optional


def is_valid_number(value: Any) -> bool:
    """
    Check that a value is usable for financial math.

    Returns False for NaN, +/-Infinity, None, strings, containers and bools.
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(value)


def is_positive_number(value: Any) -> bool:
    """Check that a value is a valid number greater than zero."""
    return is_valid_number(value) and value > 0


def is_non_negative_number(value: Any) -> bool:
    """Check that a value is a valid number of zero or greater."""
    return is_valid_number(value) and value >= 0


def parse_number_input(value: Any) -> float:
    """
    Coerce a form field into a float.

    Empty or missing input becomes 0, numeric strings are parsed, and
    anything that does not yield a finite number becomes 0.
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, str):
        try:
            parsed = float(value.strip().replace(",", ""))
        except ValueError:
            return 0.0
    else:
        parsed = value
    return float(parsed) if is_valid_number(parsed) else 0.0


@dataclass(frozen=True)
class CalculationResult:
    """
    Result of a single-period calculation.

    ``value`` is always populated. ``error`` carries either a hard rejection
    (``is_valid`` False, value must not be used) or a soft warning
    (``is_valid`` True, value is usable but outside a typical range).
    """

    value: float
    is_valid: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls, value: float) -> "CalculationResult":
        return cls(value=value, is_valid=True)

    @classmethod
    def warning(cls, value: float, message: str) -> "CalculationResult":
        return cls(value=value, is_valid=True, error=message)

    @classmethod
    def rejected(cls, message: str, value: float = 0.0) -> "CalculationResult":
        return cls(value=value, is_valid=False, error=message)

    @property
    def is_warning(self) -> bool:
        """True when the value is usable but flagged as unusual."""
        return self.is_valid and self.error is not None

    @property
    def is_rejected(self) -> bool:
        return not self.is_valid

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "is_valid": self.is_valid, "error": self.error}
