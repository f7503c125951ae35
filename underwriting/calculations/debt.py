"""
Debt Service Calculations

Loan sizing, fixed-rate amortizing payments (Excel PMT) and remaining
balances for a single acquisition loan.

These functions return plain numbers rather than CalculationResult: callers
validate deal inputs upstream, and malformed financing inputs (zero rate,
zero term, non-finite results) degrade to 0 instead of reporting an error.
Interest rates are whole-number percentages (6.5 for 6.5%).
"""

import math
from datetime import date
from typing import Dict, List, Optional

from dateutil.relativedelta import relativedelta

from underwriting.calculations.validation import is_valid_number


def _growth_factors(annual_interest_rate: float, amortization_years: float):
    """Return (monthly rate, (1+r)^n) for the loan, or None if not computable."""
    monthly_rate = annual_interest_rate / 100 / 12
    num_payments = amortization_years * 12
    try:
        compound = math.pow(1 + monthly_rate, num_payments)
    except (OverflowError, ValueError):
        return None
    return monthly_rate, compound


def calculate_loan_amount(purchase_price: float, ltv_percent: float) -> float:
    """Calculate loan amount from purchase price and loan-to-value percent."""
    if not is_valid_number(purchase_price) or not is_valid_number(ltv_percent):
        return 0.0
    return purchase_price * (ltv_percent / 100)


def calculate_down_payment(purchase_price: float, loan_amount: float) -> float:
    """Calculate equity down payment (purchase price minus loan)."""
    if not is_valid_number(purchase_price) or not is_valid_number(loan_amount):
        return 0.0
    return purchase_price - loan_amount


def calculate_monthly_payment(
    loan_amount: float, annual_interest_rate: float, amortization_years: float
) -> float:
    """
    Calculate monthly payment on a fully amortizing fixed-rate loan.

    Matches Excel's PMT() function:
        PMT = P * (r * (1+r)^n) / ((1+r)^n - 1)

    Args:
        loan_amount: Loan principal
        annual_interest_rate: Annual rate as a percentage (e.g., 6.5 for 6.5%)
        amortization_years: Amortization period in years

    Returns:
        Monthly payment, or 0 if the loan, rate or term is zero or the
        result is not a finite number
    """
    for value in (loan_amount, annual_interest_rate, amortization_years):
        if not is_valid_number(value) or value == 0:
            return 0.0

    factors = _growth_factors(annual_interest_rate, amortization_years)
    if factors is None:
        return 0.0
    monthly_rate, compound = factors

    try:
        payment = loan_amount * (monthly_rate * compound) / (compound - 1)
    except ZeroDivisionError:
        return 0.0

    return payment if math.isfinite(payment) else 0.0


def calculate_annual_debt_service(monthly_payment: float) -> float:
    """Annualize a monthly loan payment."""
    if not is_valid_number(monthly_payment):
        return 0.0
    return monthly_payment * 12


def calculate_loan_balance(
    loan_amount: float,
    annual_interest_rate: float,
    amortization_years: float,
    years_elapsed: float,
) -> float:
    """
    Calculate remaining principal after a number of years of payments.

    Uses the closed-form amortization balance:
        B_k = P * ((1+r)^n - (1+r)^(12k)) / ((1+r)^n - 1)

    Returns 0 for a zero loan, the original principal when the rate or term
    is zero, and never less than 0.
    """
    if not is_valid_number(loan_amount) or loan_amount == 0:
        return 0.0
    if not is_valid_number(years_elapsed):
        return 0.0
    if (
        not is_valid_number(annual_interest_rate)
        or not is_valid_number(amortization_years)
        or annual_interest_rate == 0
        or amortization_years == 0
    ):
        return loan_amount

    factors = _growth_factors(annual_interest_rate, amortization_years)
    if factors is None:
        return 0.0
    monthly_rate, compound = factors

    try:
        elapsed = math.pow(1 + monthly_rate, years_elapsed * 12)
        balance = loan_amount * (compound - elapsed) / (compound - 1)
    except (OverflowError, ValueError, ZeroDivisionError):
        return 0.0

    if not math.isfinite(balance):
        return 0.0
    return max(0.0, balance)


def calculate_closing_costs(
    purchase_price: float, closing_cost_percent: float
) -> float:
    """Calculate acquisition closing costs as a percent of price."""
    if not is_valid_number(purchase_price):
        return 0.0
    if not is_valid_number(closing_cost_percent):
        return 0.0
    return purchase_price * (closing_cost_percent / 100)


def calculate_total_cash_required(down_payment: float, closing_costs: float) -> float:
    """Total equity needed at close (down payment + closing costs)."""
    if not is_valid_number(down_payment) or not is_valid_number(closing_costs):
        return 0.0
    return down_payment + closing_costs


def calculate_before_tax_cash_flow(noi: float, annual_debt_service: float) -> float:
    """Cash flow after debt service, before income taxes."""
    if not is_valid_number(noi) or not is_valid_number(annual_debt_service):
        return 0.0
    return noi - annual_debt_service


def generate_amortization_schedule(
    loan_amount: float,
    annual_interest_rate: float,
    amortization_years: int,
    total_months: Optional[int] = None,
    start_date: Optional[date] = None,
) -> List[Dict]:
    """
    Generate a month-by-month amortization schedule.

    Args:
        loan_amount: Loan principal
        annual_interest_rate: Annual rate as a percentage
        amortization_years: Amortization period in years
        total_months: Months to generate (defaults to the full amortization)
        start_date: Date of first payment (defaults to today)

    Returns:
        List of amortization rows
    """
    schedule = []
    if not is_valid_number(loan_amount) or loan_amount <= 0:
        return schedule
    if not is_valid_number(amortization_years) or amortization_years <= 0:
        return schedule

    amortization_months = int(amortization_years * 12)
    if total_months is None:
        total_months = amortization_months
    if start_date is None:
        start_date = date.today()

    monthly_rate = 0.0
    if is_valid_number(annual_interest_rate):
        monthly_rate = annual_interest_rate / 100 / 12

    payment = calculate_monthly_payment(
        loan_amount, annual_interest_rate, amortization_years
    )
    if payment == 0:
        # Zero-rate loans repay principal evenly
        payment = loan_amount / amortization_months

    balance = loan_amount

    for period in range(1, total_months + 1):
        period_date = start_date + relativedelta(months=period - 1)

        interest = balance * monthly_rate
        principal_pmt = min(payment - interest, balance)
        if period == amortization_months:
            # Final payment clears any rounding residue
            principal_pmt = balance
        ending_balance = balance - principal_pmt

        schedule.append(
            {
                "period": period,
                "date": period_date.isoformat(),
                "beginning_balance": round(balance, 2),
                "payment": round(principal_pmt + interest, 2),
                "interest": round(interest, 2),
                "principal": round(principal_pmt, 2),
                "ending_balance": round(max(0.0, ending_balance), 2),
            }
        )

        balance = max(0.0, ending_balance)

        # Stop if balance is paid off
        if balance == 0:
            break

    return schedule


def summarize_schedule_by_year(schedule: List[Dict]) -> List[Dict]:
    """Roll a monthly amortization schedule up to loan years."""
    annual_data: List[Dict] = []

    for row in schedule:
        year = (row["period"] - 1) // 12 + 1

        if not annual_data or annual_data[-1]["year"] != year:
            annual_data.append(
                {
                    "year": year,
                    "payment": 0.0,
                    "interest": 0.0,
                    "principal": 0.0,
                    "ending_balance": 0.0,
                }
            )

        totals = annual_data[-1]
        totals["payment"] += row["payment"]
        totals["interest"] += row["interest"]
        totals["principal"] += row["principal"]
        totals["ending_balance"] = row["ending_balance"]

    for totals in annual_data:
        for key in ("payment", "interest", "principal"):
            totals[key] = round(totals[key], 2)

    return annual_data
