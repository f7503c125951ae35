"""
Tests for as-is vs stabilized operations.
"""

import pytest

from underwriting.calculations.stabilization import (
    OperatingScenario,
    calculate_scenario_income,
    calculate_scenario_noi,
    calculate_total_project_cost,
    calculate_value_add_cost,
    compare_as_is_to_stabilized,
)


@pytest.fixture
def as_is():
    """Half-leased flex building at below-market rents."""
    return OperatingScenario(
        rent_psf=9, occupancy=50, other_income=10000, expense_ratio=35
    )


@pytest.fixture
def stabilized():
    return OperatingScenario(
        rent_psf=12, occupancy=95, other_income=20000, expense_ratio=25
    )


class TestScenario:
    """Test income and NOI for one scenario."""

    def test_income(self, as_is):
        # 80,000 SF x $9 x 50% + $10K other income
        assert calculate_scenario_income(80000, as_is) == pytest.approx(370000)

    def test_noi(self, as_is):
        assert calculate_scenario_noi(80000, as_is) == pytest.approx(240500)

    def test_missing_assumptions_are_zero(self):
        assert calculate_scenario_income(80000, OperatingScenario()) == 0
        assert calculate_scenario_noi(None, OperatingScenario(rent_psf=10)) == 0


class TestComparison:
    """Test as-is vs stabilized summary."""

    def test_noi_lift(self, as_is, stabilized):
        summary = compare_as_is_to_stabilized(80000, as_is, stabilized)
        assert summary.as_is_noi == pytest.approx(240500)
        assert summary.stabilized_income == pytest.approx(932000)
        assert summary.stabilized_noi == pytest.approx(699000)
        assert summary.noi_lift == pytest.approx(699000 - 240500)

    def test_lift_can_be_negative(self, as_is, stabilized):
        summary = compare_as_is_to_stabilized(80000, stabilized, as_is)
        assert summary.noi_lift < 0

    def test_to_dict(self, as_is, stabilized):
        data = compare_as_is_to_stabilized(80000, as_is, stabilized).to_dict()
        lift = data["stabilized_noi"] - data["as_is_noi"]
        assert data["noi_lift"] == pytest.approx(lift)


class TestProjectCost:
    """Test value-add budget and all-in basis."""

    def test_value_add_cost(self):
        assert calculate_value_add_cost(400000, 250000, 75000, 40000) == 765000

    def test_value_add_cost_missing_items(self):
        assert calculate_value_add_cost(capex=400000) == 400000
        assert calculate_value_add_cost() == 0

    def test_total_project_cost(self):
        assert calculate_total_project_cost(8000000, 160000, 765000) == 8925000
        assert calculate_total_project_cost(8000000, None, None) == 8000000
