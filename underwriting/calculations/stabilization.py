"""
As-Is vs Stabilized Operations

Compares NOI in place today with NOI once the business plan is complete,
and totals the value-add budget that bridges the two.

Like the debt functions, these return plain numbers; missing amounts count
as zero. Occupancy and expense ratio are whole-number percents.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from underwriting.calculations.validation import is_valid_number


def _n(value: Any) -> float:
    return value if is_valid_number(value) else 0.0


@dataclass
class OperatingScenario:
    """Rent roll assumptions for one point in the business plan."""

    rent_psf: Optional[float] = None  # Annual rent per square foot
    occupancy: Optional[float] = None  # Percent of building leased
    other_income: Optional[float] = None
    expense_ratio: Optional[float] = None  # Expenses as a percent of income


@dataclass
class StabilizationSummary:
    as_is_income: float
    as_is_noi: float
    stabilized_income: float
    stabilized_noi: float
    noi_lift: float

    def to_dict(self) -> Dict:
        return asdict(self)


def calculate_scenario_income(building_sf: float, scenario: OperatingScenario) -> float:
    """Gross income: SF x rent/SF x occupancy + other income."""
    rent = _n(building_sf) * _n(scenario.rent_psf) * (_n(scenario.occupancy) / 100)
    return rent + _n(scenario.other_income)


def calculate_scenario_noi(building_sf: float, scenario: OperatingScenario) -> float:
    """NOI after expenses taken as a ratio of scenario income."""
    income = calculate_scenario_income(building_sf, scenario)
    return income - income * (_n(scenario.expense_ratio) / 100)


def compare_as_is_to_stabilized(
    building_sf: float, as_is: OperatingScenario, stabilized: OperatingScenario
) -> StabilizationSummary:
    """
    NOI today against NOI at stabilization.

    Args:
        building_sf: Building size in square feet
        as_is: Current rent, occupancy, other income and expense ratio
        stabilized: The same assumptions after lease-up and repositioning

    Returns:
        StabilizationSummary with the NOI lift (stabilized less as-is)
    """
    as_is_noi = calculate_scenario_noi(building_sf, as_is)
    stabilized_noi = calculate_scenario_noi(building_sf, stabilized)

    return StabilizationSummary(
        as_is_income=calculate_scenario_income(building_sf, as_is),
        as_is_noi=as_is_noi,
        stabilized_income=calculate_scenario_income(building_sf, stabilized),
        stabilized_noi=stabilized_noi,
        noi_lift=stabilized_noi - as_is_noi,
    )


def calculate_value_add_cost(
    capex: Any = None,
    ti_leasing: Any = None,
    carry_costs: Any = None,
    contingency: Any = None,
) -> float:
    """Total value-add budget: capex, TI and leasing, carry and contingency."""
    return _n(capex) + _n(ti_leasing) + _n(carry_costs) + _n(contingency)


def calculate_total_project_cost(
    purchase_price: Any, closing_costs: Any, value_add_cost: Any
) -> float:
    """All-in basis: purchase price plus closing costs plus value-add budget."""
    return _n(purchase_price) + _n(closing_costs) + _n(value_add_cost)
