"""
Tests for sensitivity grids.
"""

from dataclasses import replace

import pytest

from underwriting.calculations.sensitivity import (
    DEFAULT_EXIT_CAP_RATES,
    DEFAULT_INCOME_GROWTH_RATES,
    cap_rate_value_sensitivity,
    exit_cap_irr_sensitivity,
    income_growth_irr_sensitivity,
)


class TestCapRateValueSensitivity:
    """Test value across cap rates around the asking rate."""

    def test_grid_around_asking_rate(self):
        rows = cap_rate_value_sensitivity(500000, 10000000, 5.0)
        assert [row["cap_rate"] for row in rows] == [
            3.5, 4.0, 4.5, 5.0, 5.5, 6.0, 6.5
        ]

        asking = [row for row in rows if row["is_asking_rate"]]
        assert len(asking) == 1
        assert asking[0]["value"] == pytest.approx(10000000)
        assert asking[0]["vs_ask"] == pytest.approx(0)

    def test_lower_cap_rate_means_higher_value(self):
        rows = cap_rate_value_sensitivity(500000, 10000000, 5.0)
        values = [row["value"] for row in rows]
        assert values == sorted(values, reverse=True)
        assert rows[0]["vs_ask"] > 0
        assert rows[-1]["vs_ask"] < 0

    def test_base_rounds_to_nearest_half(self):
        rows = cap_rate_value_sensitivity(755900, 12000000, 6.3)
        assert rows[0]["cap_rate"] == 5.0
        assert rows[-1]["cap_rate"] == 8.0
        assert not any(row["is_asking_rate"] for row in rows)

    def test_drops_non_positive_cap_rates(self):
        rows = cap_rate_value_sensitivity(100000, 10000000, 1.0)
        assert [row["cap_rate"] for row in rows] == [0.5, 1.0, 1.5, 2.0, 2.5]

    def test_no_price_no_grid(self):
        assert cap_rate_value_sensitivity(500000, 0, 5.0) == []


class TestExitCapIRRSensitivity:
    """Test IRR across exit cap rates."""

    def test_default_grid(self, projection_inputs):
        rows = exit_cap_irr_sensitivity(projection_inputs, 3700000)
        assert [row["exit_cap_rate"] for row in rows] == DEFAULT_EXIT_CAP_RATES

    def test_higher_exit_cap_lowers_irr(self, projection_inputs):
        rows = exit_cap_irr_sensitivity(projection_inputs, 3700000, [5.5, 6.5, 7.5])
        irrs = [row["irr"] for row in rows]
        assert irrs[0] > irrs[1] > irrs[2]
        assert rows[0]["sale_price"] > rows[-1]["sale_price"]

    def test_sale_priced_on_forward_noi(self, projection_inputs):
        """Final-year NOI grown one more year at the income growth rate."""
        row = exit_cap_irr_sensitivity(projection_inputs, 3700000, [6.5])[0]
        final_noi = 600000 * 1.03**4 - 100000 * 1.02**4
        assert row["sale_price"] == pytest.approx(final_noi * 1.03 / 0.065)

    def test_requires_income_and_investment(self, projection_inputs):
        assert exit_cap_irr_sensitivity(projection_inputs, 0) == []
        no_income = replace(projection_inputs, initial_income=0)
        assert exit_cap_irr_sensitivity(no_income, 3700000) == []


class TestIncomeGrowthIRRSensitivity:
    """Test IRR across income growth assumptions."""

    def test_default_grid(self, projection_inputs):
        rows = income_growth_irr_sensitivity(projection_inputs, 3700000)
        assert [row["growth_rate"] for row in rows] == DEFAULT_INCOME_GROWTH_RATES

    def test_faster_growth_raises_returns(self, projection_inputs):
        rows = income_growth_irr_sensitivity(projection_inputs, 3700000)
        irrs = [row["irr"] for row in rows]
        assert irrs == sorted(irrs)
        assert rows[-1]["avg_cash_flow"] > rows[0]["avg_cash_flow"]
        assert rows[-1]["equity_multiple"] > rows[0]["equity_multiple"]

    def test_inputs_not_mutated(self, projection_inputs):
        income_growth_irr_sensitivity(projection_inputs, 3700000)
        assert projection_inputs.income_growth_rate == 3

    def test_requires_income_and_investment(self, projection_inputs):
        assert income_growth_irr_sensitivity(projection_inputs, -1) == []
