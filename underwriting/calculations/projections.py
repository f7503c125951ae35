"""
Pro Forma Projections

Generates year-by-year operating projections over the holding period.

Income and expenses grow independently at their own annual rates. Debt
service is held constant (the loan is never refinanced or re-amortized
mid-hold). Property value, and therefore implied equity, grows at the income
growth rate; there is no separate appreciation input.
"""

import math
from dataclasses import asdict, dataclass
from typing import Dict, List

from underwriting.calculations.debt import (
    calculate_annual_debt_service,
    calculate_loan_balance,
    calculate_monthly_payment,
)
from underwriting.calculations.validation import is_positive_number, is_valid_number

# Which growth rate drives property value in the projection. Value tracks
# NOI growth rather than a cap-rate-driven appreciation assumption.
PROPERTY_VALUE_GROWTH_BASIS = "income_growth_rate"


@dataclass
class ProjectionInputs:
    """Inputs for a multi-year projection. Rates are whole-number percents."""

    initial_income: float  # Year 1 effective gross income
    initial_expenses: float  # Year 1 total operating expenses
    income_growth_rate: float  # Annual income growth (e.g., 3 for 3%)
    expense_growth_rate: float  # Annual expense growth
    purchase_price: float
    loan_amount: float
    interest_rate: float  # Annual loan rate
    amortization_years: float
    holding_period: int  # Years


@dataclass
class YearProjection:
    """One year of the pro forma. Years are 1-based."""

    year: int
    income: float
    expenses: float
    noi: float
    debt_service: float
    cash_flow: float  # NOI less debt service
    loan_balance: float  # Balance at end of year
    property_value: float
    equity: float  # Property value less loan balance

    def to_dict(self) -> Dict:
        return asdict(self)


def property_value_growth_rate(inputs: ProjectionInputs) -> float:
    """Annual growth rate (percent) applied to the purchase price."""
    return getattr(inputs, PROPERTY_VALUE_GROWTH_BASIS)


def _rate(value: float) -> float:
    return value / 100 if is_valid_number(value) else 0.0


def _amount(value: float) -> float:
    return value if is_valid_number(value) else 0.0


def _grow(amount: float, rate: float, periods: int) -> float:
    """Compound an amount; a factor too large to represent degrades to 0."""
    try:
        grown = amount * math.pow(1 + rate, periods)
    except (OverflowError, ValueError):
        return 0.0
    return grown if math.isfinite(grown) else 0.0


def generate_projections(inputs: ProjectionInputs) -> List[YearProjection]:
    """
    Project income, expenses, NOI, cash flow and equity for each hold year.

    Year t grows income and expenses by (1 + g)^(t-1), so year 1 equals the
    initial figures. The loan balance and property value are measured at the
    end of year t.

    Args:
        inputs: Projection assumptions

    Returns:
        One record per year, 1 through holding_period. Empty if the holding
        period is not a positive number.
    """
    if not is_positive_number(inputs.holding_period):
        return []

    income_growth = _rate(inputs.income_growth_rate)
    expense_growth = _rate(inputs.expense_growth_rate)
    value_growth = _rate(property_value_growth_rate(inputs))
    initial_income = _amount(inputs.initial_income)
    initial_expenses = _amount(inputs.initial_expenses)
    purchase_price = _amount(inputs.purchase_price)

    monthly_payment = calculate_monthly_payment(
        inputs.loan_amount, inputs.interest_rate, inputs.amortization_years
    )
    debt_service = calculate_annual_debt_service(monthly_payment)

    projections = []

    for year in range(1, int(inputs.holding_period) + 1):
        income = _grow(initial_income, income_growth, year - 1)
        expenses = _grow(initial_expenses, expense_growth, year - 1)
        noi = _amount(income - expenses)
        cash_flow = _amount(noi - debt_service)

        loan_balance = calculate_loan_balance(
            inputs.loan_amount, inputs.interest_rate, inputs.amortization_years, year
        )
        property_value = _grow(purchase_price, value_growth, year)

        projections.append(
            YearProjection(
                year=year,
                income=income,
                expenses=expenses,
                noi=noi,
                debt_service=debt_service,
                cash_flow=cash_flow,
                loan_balance=loan_balance,
                property_value=property_value,
                equity=_amount(property_value - loan_balance),
            )
        )

    return projections


def calculate_total_cash_flow(projections: List[YearProjection]) -> float:
    """Sum of annual cash flows over the hold."""
    return sum(p.cash_flow for p in projections)


def calculate_average_cash_on_cash(
    projections: List[YearProjection], total_cash_invested: float
) -> float:
    """
    Average annual cash-on-cash return (percent) across the projection.

    Returns 0 when there are no projection years or no cash invested.
    """
    if not projections or not is_positive_number(total_cash_invested):
        return 0.0
    average_cash_flow = calculate_total_cash_flow(projections) / len(projections)
    return (average_cash_flow / total_cash_invested) * 100
