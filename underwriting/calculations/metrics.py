"""
Single-Period Underwriting Metrics

NOI, income, expense and valuation ratios for one operating year.

Every function accepts raw (possibly missing or malformed) inputs and returns
a CalculationResult instead of raising. Two tiers of failure are reported:

- Hard rejection (is_valid False): missing/non-finite input, or a zero or
  negative denominator where the formula requires a positive one.
- Soft warning (is_valid True, error set): the value is mathematically sound
  but outside the range normally seen in practice.

Percent inputs are whole numbers (7 means 7%).
"""

import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from underwriting.calculations.thresholds import DSCR_WARNING
from underwriting.calculations.validation import (
    CalculationResult,
    is_non_negative_number,
    is_positive_number,
    is_valid_number,
)

# Sanity bounds for warnings, not hard limits
CAP_RATE_WARNING_MIN = 0.0
CAP_RATE_WARNING_MAX = 50.0
TYPICAL_CAP_RATE_MIN = 2.0
TYPICAL_CAP_RATE_MAX = 20.0
TYPICAL_PRICE_PER_SQFT_MIN = 10.0
TYPICAL_PRICE_PER_SQFT_MAX = 2000.0


def _finite_result(value: float, label: str) -> CalculationResult:
    """Finite inputs can still overflow; an infinite result is rejected."""
    if not math.isfinite(value):
        return CalculationResult.rejected(f"{label} is not a finite number")
    return CalculationResult.ok(value)


# === INCOME ===


def calculate_vacancy_amount(pgi: Any, vacancy_rate: Any) -> CalculationResult:
    """Calculate vacancy and credit loss (PGI x vacancy %)."""
    if not is_non_negative_number(pgi):
        return CalculationResult.rejected(
            "Potential gross income must be a non-negative number"
        )
    if not is_non_negative_number(vacancy_rate) or vacancy_rate > 100:
        return CalculationResult.rejected("Vacancy rate must be between 0 and 100")

    return _finite_result(pgi * (vacancy_rate / 100), "Vacancy amount")


def calculate_effective_gross_income(
    pgi: Any, vacancy_rate: Any, other_income: Any = 0
) -> CalculationResult:
    """
    Calculate Effective Gross Income (EGI).

    Formula: PGI - (PGI x vacancy %) + other income

    Args:
        pgi: Potential gross income (annual)
        vacancy_rate: Vacancy and credit loss as a percentage (e.g., 5 for 5%)
        other_income: Parking, storage and similar income; missing is 0

    Returns:
        EGI (annual)
    """
    vacancy = calculate_vacancy_amount(pgi, vacancy_rate)
    if not vacancy.is_valid:
        return vacancy

    if other_income is None:
        other_income = 0
    if not is_valid_number(other_income):
        return CalculationResult.rejected("Other income must be a valid number")

    return _finite_result(pgi - vacancy.value + other_income, "EGI")


# === EXPENSES ===


def calculate_management_fee(egi: Any, fee_percent: Any) -> CalculationResult:
    """Calculate the management fee as a percentage of EGI."""
    if not is_valid_number(egi):
        return CalculationResult.rejected("EGI must be a valid number")
    if not is_non_negative_number(fee_percent) or fee_percent > 100:
        return CalculationResult.rejected(
            "Management fee percent must be between 0 and 100"
        )

    return _finite_result(egi * (fee_percent / 100), "Management fee")


def calculate_total_expenses(
    property_taxes: Any = None,
    insurance: Any = None,
    utilities: Any = None,
    management_fee: Any = None,
    repairs_maintenance: Any = None,
    reserves_capex: Any = None,
    other_expenses: Any = None,
) -> CalculationResult:
    """
    Sum the itemized operating expense categories.

    Missing categories count as zero; a category that is present but not a
    non-negative number rejects the total.
    """
    categories = {
        "Property taxes": property_taxes,
        "Insurance": insurance,
        "Utilities": utilities,
        "Management fee": management_fee,
        "Repairs and maintenance": repairs_maintenance,
        "Reserves": reserves_capex,
        "Other expenses": other_expenses,
    }

    total = 0.0
    for label, amount in categories.items():
        if amount is None:
            continue
        if not is_non_negative_number(amount):
            return CalculationResult.rejected(
                f"{label} must be a non-negative number"
            )
        total += amount

    return _finite_result(total, "Total expenses")


def calculate_operating_expense_ratio(
    total_expenses: Any, egi: Any
) -> CalculationResult:
    """Calculate operating expenses as a percentage of EGI."""
    if not is_non_negative_number(total_expenses):
        return CalculationResult.rejected(
            "Operating expenses must be a non-negative number"
        )
    if not is_positive_number(egi):
        return CalculationResult.rejected("EGI must be a positive number")

    return _finite_result((total_expenses / egi) * 100, "Operating expense ratio")


# === NOI & VALUATION ===


def calculate_noi(gross_income: Any, operating_expenses: Any) -> CalculationResult:
    """
    Calculate Net Operating Income (NOI).

    Formula: Gross Income - Operating Expenses

    A negative NOI (expenses above income) is a valid result for vacant or
    distressed properties.

    Args:
        gross_income: Total annual income from the property
        operating_expenses: Total annual operating expenses

    Returns:
        NOI (annual)
    """
    if not is_non_negative_number(gross_income):
        return CalculationResult.rejected(
            "Gross income must be a non-negative number"
        )
    if not is_non_negative_number(operating_expenses):
        return CalculationResult.rejected(
            "Operating expenses must be a non-negative number"
        )

    return _finite_result(gross_income - operating_expenses, "NOI")


def calculate_cap_rate(noi: Any, purchase_price: Any) -> CalculationResult:
    """
    Calculate capitalization rate.

    Formula: (NOI / Purchase Price) x 100

    Args:
        noi: Net Operating Income (annual); zero or negative is allowed
        purchase_price: Purchase price of the property

    Returns:
        Cap rate as a percentage (e.g., 5.5 for 5.5%). Results outside
        0-50% are still valid but carry a warning.
    """
    if not is_valid_number(noi):
        return CalculationResult.rejected("NOI must be a valid number")
    if not is_positive_number(purchase_price):
        return CalculationResult.rejected("Purchase price must be a positive number")

    cap_rate = (noi / purchase_price) * 100
    if not math.isfinite(cap_rate):
        return CalculationResult.rejected("CAP rate is not a finite number")

    if cap_rate < CAP_RATE_WARNING_MIN or cap_rate > CAP_RATE_WARNING_MAX:
        return CalculationResult.warning(
            cap_rate,
            f"CAP rate of {cap_rate:.2f}% is outside typical range (0-50%)",
        )

    return CalculationResult.ok(cap_rate)


def calculate_price_per_sqft(price: Any, square_footage: Any) -> CalculationResult:
    """Calculate price per square foot. A zero price (land, distressed) is valid."""
    if not is_valid_number(price):
        return CalculationResult.rejected("Price must be a valid number")
    if not is_positive_number(square_footage):
        return CalculationResult.rejected(
            "Square footage must be a positive number"
        )
    if price < 0:
        return CalculationResult.rejected("Price cannot be negative")

    return _finite_result(price / square_footage, "Price per sqft")


def calculate_grm(purchase_price: Any, annual_gross_rent: Any) -> CalculationResult:
    """Calculate Gross Rent Multiplier (purchase price / annual gross rent)."""
    if not is_positive_number(purchase_price):
        return CalculationResult.rejected("Purchase price must be a positive number")
    if not is_positive_number(annual_gross_rent):
        return CalculationResult.rejected(
            "Annual gross rent must be a positive number"
        )

    return _finite_result(purchase_price / annual_gross_rent, "GRM")


def calculate_value_from_cap_rate(noi: Any, cap_rate: Any) -> CalculationResult:
    """
    Estimate property value from NOI and a cap rate.

    Formula: NOI / (Cap Rate / 100)

    Args:
        noi: Net Operating Income (annual)
        cap_rate: Cap rate as a percentage, greater than 0 and at most 100

    Returns:
        Estimated property value
    """
    if not is_valid_number(noi):
        return CalculationResult.rejected("NOI must be a valid number")
    if not is_positive_number(cap_rate):
        return CalculationResult.rejected("CAP rate must be a positive number")
    if cap_rate > 100:
        return CalculationResult.rejected("CAP rate cannot exceed 100%")

    return _finite_result(noi / (cap_rate / 100), "Property value")


def calculate_occupancy_rate(occupied_sqft: Any, total_sqft: Any) -> CalculationResult:
    """Calculate occupancy as a percentage of total square footage."""
    if not is_non_negative_number(occupied_sqft):
        return CalculationResult.rejected(
            "Occupied square footage must be a non-negative number"
        )
    if not is_positive_number(total_sqft):
        return CalculationResult.rejected(
            "Total square footage must be a positive number"
        )
    if occupied_sqft > total_sqft:
        return CalculationResult.rejected(
            "Occupied square footage cannot exceed total square footage"
        )

    return CalculationResult.ok((occupied_sqft / total_sqft) * 100)


# === RETURNS & COVERAGE ===


def calculate_cash_on_cash(
    annual_cash_flow: Any, total_cash_invested: Any
) -> CalculationResult:
    """
    Calculate cash-on-cash return.

    Formula: (Annual Cash Flow / Total Cash Invested) x 100

    Args:
        annual_cash_flow: Annual cash flow after debt service; may be negative
        total_cash_invested: Down payment plus closing costs

    Returns:
        Cash-on-cash return as a percentage
    """
    if not is_valid_number(annual_cash_flow):
        return CalculationResult.rejected("Annual cash flow must be a valid number")
    if not is_positive_number(total_cash_invested):
        return CalculationResult.rejected(
            "Total cash invested must be a positive number"
        )

    return _finite_result(
        (annual_cash_flow / total_cash_invested) * 100, "Cash-on-cash return"
    )


def calculate_dscr(noi: Any, annual_debt_service: Any) -> CalculationResult:
    """
    Calculate Debt Service Coverage Ratio (DSCR).

    Formula: NOI / Annual Debt Service

    Lenders typically require 1.25 or better; lower ratios are returned as
    valid with a warning.
    """
    if not is_valid_number(noi):
        return CalculationResult.rejected("NOI must be a valid number")
    if not is_positive_number(annual_debt_service):
        return CalculationResult.rejected(
            "Annual debt service must be a positive number"
        )

    dscr = noi / annual_debt_service
    if not math.isfinite(dscr):
        return CalculationResult.rejected("DSCR is not a finite number")

    if dscr < DSCR_WARNING:
        return CalculationResult.warning(
            dscr,
            f"DSCR of {dscr:.2f} is below typical lender requirement of "
            f"{DSCR_WARNING}",
        )

    return CalculationResult.ok(dscr)


def calculate_annual_from_monthly(monthly_rate: Any) -> CalculationResult:
    """Convert a monthly lease rate to an annual one."""
    if not is_valid_number(monthly_rate):
        return CalculationResult.rejected("Monthly rate must be a valid number")
    if monthly_rate < 0:
        return CalculationResult.rejected("Monthly rate cannot be negative")

    return _finite_result(monthly_rate * 12, "Annual rate")


def round_to_decimals(value: Any, decimals: int = 2) -> float:
    """
    Round half away from zero to the given number of decimal places.

    Invalid input returns 0.
    """
    if not is_valid_number(value):
        return 0.0
    quantum = Decimal(1).scaleb(-decimals)
    try:
        return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # More digits than the decimal context holds; float has no fraction left
        return float(value)


# === SANITY CHECKS ===


def validate_cap_rate(cap_rate: Any) -> CalculationResult:
    """
    Check a cap rate entered or derived elsewhere.

    Must lie in 0-100%; values outside 2-20% are flagged but still valid.
    """
    if not is_valid_number(cap_rate):
        return CalculationResult.rejected("CAP rate must be a valid number")
    if cap_rate < 0:
        return CalculationResult.rejected("CAP rate cannot be negative", cap_rate)
    if cap_rate > 100:
        return CalculationResult.rejected("CAP rate cannot exceed 100%", cap_rate)

    if cap_rate < TYPICAL_CAP_RATE_MIN or cap_rate > TYPICAL_CAP_RATE_MAX:
        return CalculationResult.warning(
            cap_rate,
            f"CAP rate of {cap_rate:g}% is outside typical range (2-20%)",
        )

    return CalculationResult.ok(cap_rate)


def validate_price_per_sqft(
    price_per_sqft: Any, property_type: Optional[str] = None
) -> CalculationResult:
    """
    Check a price per square foot.

    Negative prices are rejected; values outside $10-$2000 are flagged but
    still valid. The same band applies to every property type.
    """
    if not is_valid_number(price_per_sqft):
        return CalculationResult.rejected("Price per sqft must be a valid number")
    if price_per_sqft < 0:
        return CalculationResult.rejected(
            "Price per sqft cannot be negative", price_per_sqft
        )

    if (
        price_per_sqft < TYPICAL_PRICE_PER_SQFT_MIN
        or price_per_sqft > TYPICAL_PRICE_PER_SQFT_MAX
    ):
        return CalculationResult.warning(
            price_per_sqft,
            f"Price per sqft of ${price_per_sqft:,.2f} is outside typical range "
            f"($10-$2000)",
        )

    return CalculationResult.ok(price_per_sqft)
