"""
Tests for debt service calculations.
"""

import math
from datetime import date

import pytest

from underwriting.calculations.debt import (
    calculate_annual_debt_service,
    calculate_before_tax_cash_flow,
    calculate_closing_costs,
    calculate_down_payment,
    calculate_loan_amount,
    calculate_loan_balance,
    calculate_monthly_payment,
    calculate_total_cash_required,
    generate_amortization_schedule,
    summarize_schedule_by_year,
)


class TestLoanSizing:
    """Test loan amount and equity."""

    def test_loan_amount(self):
        assert calculate_loan_amount(10000000, 65) == pytest.approx(6500000)

    def test_down_payment(self):
        assert calculate_down_payment(10000000, 6500000) == 3500000

    def test_closing_costs_and_cash_required(self):
        closing_costs = calculate_closing_costs(10000000, 2)
        assert closing_costs == pytest.approx(200000)
        assert calculate_total_cash_required(3500000, closing_costs) == pytest.approx(
            3700000
        )

    def test_before_tax_cash_flow(self):
        assert calculate_before_tax_cash_flow(500000, 400000) == 100000

    def test_invalid_inputs_degrade_to_zero(self):
        assert calculate_loan_amount(None, 65) == 0
        assert calculate_down_payment(math.nan, 0) == 0


class TestMonthlyPayment:
    """Test PMT calculation."""

    def test_thirty_year_loan(self):
        """$1M at 5% over 30 years is about $5,368/month."""
        payment = calculate_monthly_payment(1000000, 5, 30)
        assert payment == pytest.approx(5368.22, abs=0.01)

    @pytest.mark.parametrize(
        "loan,rate,years", [(0, 5, 30), (1000000, 0, 30), (1000000, 5, 0)]
    )
    def test_zero_inputs_return_zero(self, loan, rate, years):
        assert calculate_monthly_payment(loan, rate, years) == 0

    def test_non_finite_result_returns_zero(self):
        """A term long enough to overflow the growth factor degrades to 0."""
        assert calculate_monthly_payment(1000000, 50, 1e9) == 0

    def test_invalid_inputs_return_zero(self):
        assert calculate_monthly_payment(None, 5, 30) == 0
        assert calculate_monthly_payment(1000000, math.inf, 30) == 0

    def test_annual_debt_service_is_twelve_payments(self):
        payment = calculate_monthly_payment(6500000, 6.5, 25)
        assert calculate_annual_debt_service(payment) == payment * 12


class TestLoanBalance:
    """Test remaining balance calculation."""

    def test_balance_before_any_payments(self):
        assert calculate_loan_balance(1000000, 6, 30, 0) == pytest.approx(1000000)

    def test_balance_fully_amortized(self):
        assert calculate_loan_balance(1000000, 6, 30, 30) == pytest.approx(0, abs=0.01)

    def test_balance_declines(self):
        year_1 = calculate_loan_balance(1000000, 6, 30, 1)
        year_5 = calculate_loan_balance(1000000, 6, 30, 5)
        assert 1000000 > year_1 > year_5 > 0

    def test_balance_matches_schedule(self):
        """Closed form agrees with the month-by-month schedule."""
        schedule = generate_amortization_schedule(
            1000000, 6, 30, total_months=60, start_date=date(2025, 1, 1)
        )
        closed_form = calculate_loan_balance(1000000, 6, 30, 5)
        assert abs(schedule[-1]["ending_balance"] - closed_form) < 1

    def test_balance_floored_at_zero(self):
        assert calculate_loan_balance(1000000, 6, 30, 40) == 0

    def test_zero_rate_or_term_returns_principal(self):
        assert calculate_loan_balance(1000000, 0, 30, 5) == 1000000
        assert calculate_loan_balance(1000000, 6, 0, 5) == 1000000

    def test_zero_loan(self):
        assert calculate_loan_balance(0, 6, 30, 5) == 0


class TestAmortizationSchedule:
    """Test loan amortization schedule."""

    def test_schedule_length(self):
        schedule = generate_amortization_schedule(
            100000, 6, 5, start_date=date(2025, 1, 1)
        )
        assert len(schedule) == 60

    def test_schedule_dates(self):
        schedule = generate_amortization_schedule(
            100000, 6, 5, total_months=3, start_date=date(2025, 1, 31)
        )
        assert [row["date"] for row in schedule] == [
            "2025-01-31",
            "2025-02-28",
            "2025-03-31",
        ]

    def test_final_balance_near_zero(self):
        schedule = generate_amortization_schedule(
            100000, 6, 5, start_date=date(2025, 1, 1)
        )
        assert abs(schedule[-1]["ending_balance"]) < 1

    def test_zero_rate_repays_evenly(self):
        schedule = generate_amortization_schedule(
            12000, 0, 1, start_date=date(2025, 1, 1)
        )
        assert len(schedule) == 12
        assert all(row["principal"] == 1000 for row in schedule)
        assert all(row["interest"] == 0 for row in schedule)

    def test_no_loan_no_schedule(self):
        assert generate_amortization_schedule(0, 6, 5) == []

    def test_annual_summary(self):
        schedule = generate_amortization_schedule(
            100000, 6, 5, start_date=date(2025, 1, 1)
        )
        summary = summarize_schedule_by_year(schedule)
        assert [row["year"] for row in summary] == [1, 2, 3, 4, 5]
        assert summary[0]["principal"] < summary[-1]["principal"]
        assert summary[-1]["ending_balance"] < 1
