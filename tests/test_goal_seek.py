"""
Tests for goal-seek solvers.
"""

from dataclasses import replace

import pytest

from underwriting.calculations.deal import (
    analyze_deal,
    build_goal_seek_inputs,
    optimize_deal_inputs,
)
from underwriting.calculations.goal_seek import (
    optimize_deal,
    project_irr,
    solve_capex_ceiling,
    solve_max_purchase_price,
    solve_required_noi,
    solve_required_rent_psf,
    solve_target_exit_cap,
)


@pytest.fixture
def seek_inputs(industrial_deal):
    return build_goal_seek_inputs(industrial_deal)


class TestProjectIRR:
    """Test the IRR the solvers search over."""

    def test_matches_deal_analysis(self, industrial_deal, seek_inputs):
        assert project_irr(seek_inputs) == pytest.approx(
            analyze_deal(industrial_deal).exit.irr
        )

    def test_no_income_floors_at_minus_99(self, seek_inputs):
        inputs = replace(seek_inputs, initial_income=0)
        assert project_irr(inputs) == pytest.approx(-99)

    def test_value_add_cost_lowers_irr(self, seek_inputs):
        with_capex = replace(seek_inputs, value_add_cost=1000000)
        assert project_irr(with_capex) < project_irr(seek_inputs)


class TestMaxPurchasePrice:
    """Test the price solver."""

    def test_price_hits_target(self, seek_inputs):
        price = solve_max_purchase_price(14, seek_inputs)
        assert price < seek_inputs.purchase_price
        assert project_irr(replace(seek_inputs, purchase_price=price)) == pytest.approx(
            14, abs=0.05
        )

    def test_lower_target_allows_higher_price(self, seek_inputs):
        assert solve_max_purchase_price(10, seek_inputs) > solve_max_purchase_price(
            14, seek_inputs
        )

    def test_unreachable_target(self, seek_inputs):
        assert solve_max_purchase_price(5000, seek_inputs) is None

    def test_no_price(self, seek_inputs):
        no_price = replace(seek_inputs, purchase_price=0)
        assert solve_max_purchase_price(14, no_price) is None


class TestRequiredNOI:
    """Test the NOI solver."""

    def test_noi_hits_target(self, seek_inputs):
        noi = solve_required_noi(14, seek_inputs)
        assert noi > seek_inputs.noi
        income = seek_inputs.initial_income + (noi - seek_inputs.noi)
        with_income = replace(seek_inputs, initial_income=income)
        assert project_irr(with_income) == pytest.approx(14, abs=0.05)

    def test_lower_target_needs_less_noi(self, seek_inputs):
        assert solve_required_noi(10, seek_inputs) < seek_inputs.noi


class TestCapexCeiling:
    """Test the value-add budget solver."""

    def test_ceiling_hits_target(self, seek_inputs):
        capex = solve_capex_ceiling(10, seek_inputs)
        assert capex > 0
        assert project_irr(replace(seek_inputs, value_add_cost=capex)) == pytest.approx(
            10, abs=0.05
        )

    def test_zero_when_target_already_missed(self, seek_inputs):
        assert solve_capex_ceiling(14, seek_inputs) == 0


class TestTargetExitCap:
    """Test the exit cap solver."""

    def test_exit_cap_hits_target(self, seek_inputs):
        exit_cap = solve_target_exit_cap(10, seek_inputs)
        assert exit_cap > seek_inputs.exit_cap_rate
        assert project_irr(
            replace(seek_inputs, exit_cap_rate=exit_cap)
        ) == pytest.approx(10, abs=0.05)

    def test_higher_target_needs_lower_exit_cap(self, seek_inputs):
        assert solve_target_exit_cap(14, seek_inputs) < seek_inputs.exit_cap_rate

    def test_unreachable_target(self, seek_inputs):
        assert solve_target_exit_cap(5000, seek_inputs) is None


class TestRequiredRentPSF:
    """Test the rent solver."""

    def test_rent_psf(self):
        # 800K NOI at a 20% expense ratio needs $1M of income
        assert solve_required_rent_psf(800000, 100000, 20) == pytest.approx(10)

    def test_no_expenses(self):
        assert solve_required_rent_psf(500000, 50000, 0) == pytest.approx(10)

    @pytest.mark.parametrize(
        "noi,building_sf,expense_ratio",
        [(800000, 0, 20), (800000, None, 20), (800000, 100000, 100), (None, 100, 20)],
    )
    def test_degenerate_inputs(self, noi, building_sf, expense_ratio):
        assert solve_required_rent_psf(noi, building_sf, expense_ratio) == 0


class TestOptimizeDeal:
    """Test the combined goal-seek run."""

    def test_all_solvers(self, seek_inputs):
        result = optimize_deal(14, seek_inputs, building_sf=100000)
        assert result.target_irr == 14
        assert result.max_purchase_price < seek_inputs.purchase_price
        assert result.required_noi_lift == pytest.approx(
            result.required_noi - seek_inputs.noi
        )
        expense_ratio = seek_inputs.initial_expenses / seek_inputs.initial_income * 100
        assert result.required_rent_psf == pytest.approx(
            solve_required_rent_psf(result.required_noi, 100000, expense_ratio)
        )
        assert result.capex_ceiling == 0
        assert result.target_exit_cap_rate < seek_inputs.exit_cap_rate

    def test_needs_price_and_income(self, seek_inputs):
        assert optimize_deal(14, replace(seek_inputs, purchase_price=0)) is None
        assert optimize_deal(14, replace(seek_inputs, initial_income=0)) is None

    def test_to_dict(self, seek_inputs):
        data = optimize_deal(14, seek_inputs, building_sf=100000).to_dict()
        assert set(data) == {
            "target_irr",
            "max_purchase_price",
            "required_noi",
            "required_noi_lift",
            "required_rent_psf",
            "capex_ceiling",
            "target_exit_cap_rate",
        }

    def test_target_defaults_to_strategy_irr(self, industrial_deal):
        assert optimize_deal_inputs(industrial_deal).target_irr == 14.0
        core = replace(industrial_deal, investment_strategy="core")
        assert optimize_deal_inputs(core).target_irr == 8.0
        assert optimize_deal_inputs(core, target_irr=11).target_irr == 11
