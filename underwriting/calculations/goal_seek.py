"""
Goal Seek

Backs out the deal terms that hit a target levered IRR: the most you can
pay, the NOI you need, how much value-add capital the deal can carry, and
the exit cap rate you must sell at. Each solver re-runs the projection and
exit analysis and bisects on the one input it varies.

All rates are whole-number percents (a 15% IRR target is 15).
"""

import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, Dict, Optional

from underwriting.calculations import debt
from underwriting.calculations.projections import ProjectionInputs, generate_projections
from underwriting.calculations.returns import MIN_RATE, analyze_exit
from underwriting.calculations.validation import is_positive_number, is_valid_number

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 100
IRR_TOLERANCE = 0.01  # Percentage points from the target

# Search ranges
MIN_PRICE_FACTOR = 0.05
MAX_PRICE_FACTOR = 10.0
MAX_NOI_FACTOR = 10.0
MAX_CAPEX_FACTOR = 2.0
MIN_EXIT_CAP_RATE = 0.5
MAX_EXIT_CAP_RATE = 25.0


@dataclass
class GoalSeekInputs:
    """Deal assumptions a solver starts from. Percentages are whole numbers."""

    purchase_price: float
    initial_income: float  # Year 1 effective gross income
    initial_expenses: float  # Year 1 operating expenses
    income_growth_rate: float
    expense_growth_rate: float
    ltv_percent: float
    interest_rate: float
    amortization_years: float
    closing_costs_percent: float
    holding_period: int
    exit_cap_rate: float
    selling_costs_percent: float
    value_add_cost: float = 0.0

    @property
    def noi(self) -> float:
        return self.initial_income - self.initial_expenses


@dataclass
class GoalSeekResult:
    """Solved terms for one target IRR. None where the target is out of reach."""

    target_irr: float
    max_purchase_price: Optional[float]
    required_noi: Optional[float]
    required_noi_lift: Optional[float]
    required_rent_psf: Optional[float]
    capex_ceiling: Optional[float]
    target_exit_cap_rate: Optional[float]

    def to_dict(self) -> Dict:
        return asdict(self)


def project_irr(
    inputs: GoalSeekInputs, irr_options: Optional[Dict[str, Any]] = None
) -> float:
    """
    Levered IRR (percent) for a set of deal assumptions.

    Financing is sized from the price and LTV; equity is the down payment,
    closing costs and value-add cost. A stream with no positive flow after
    the investment returns the -99% floor.
    """
    loan_amount = debt.calculate_loan_amount(inputs.purchase_price, inputs.ltv_percent)
    down_payment = debt.calculate_down_payment(inputs.purchase_price, loan_amount)
    closing_costs = debt.calculate_closing_costs(
        inputs.purchase_price, inputs.closing_costs_percent
    )
    total_cash_invested = debt.calculate_total_cash_required(
        down_payment, closing_costs
    ) + (inputs.value_add_cost if is_valid_number(inputs.value_add_cost) else 0.0)

    projections = generate_projections(
        ProjectionInputs(
            initial_income=inputs.initial_income,
            initial_expenses=inputs.initial_expenses,
            income_growth_rate=inputs.income_growth_rate,
            expense_growth_rate=inputs.expense_growth_rate,
            purchase_price=inputs.purchase_price,
            loan_amount=loan_amount,
            interest_rate=inputs.interest_rate,
            amortization_years=inputs.amortization_years,
            holding_period=inputs.holding_period,
        )
    )
    exit_analysis = analyze_exit(
        projections,
        total_cash_invested,
        inputs.exit_cap_rate,
        inputs.selling_costs_percent,
        income_growth_rate=inputs.income_growth_rate,
        fallback_noi=inputs.noi,
        fallback_loan_balance=loan_amount,
        irr_options=irr_options,
    )

    if not any(cf > 0 for cf in exit_analysis.cash_flows[1:]):
        return MIN_RATE * 100
    return exit_analysis.irr


def _n_positive(value: Any) -> float:
    return value if is_positive_number(value) else 0.0


def _bisect(
    irr_at: Callable[[float], float],
    low: float,
    high: float,
    target_irr: float,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = IRR_TOLERANCE,
) -> Optional[float]:
    """
    Find x in [low, high] where irr_at(x) equals the target.

    Returns:
        The solved input, or None if the target is not bracketed
    """
    f_low = irr_at(low) - target_irr
    f_high = irr_at(high) - target_irr

    if f_low == 0:
        return low
    if f_high == 0:
        return high
    if f_low * f_high > 0:
        logger.debug(
            f"Target IRR {target_irr}% not bracketed on [{low:,.2f}, {high:,.2f}]"
        )
        return None

    for _ in range(max_iterations):
        mid = (low + high) / 2
        f_mid = irr_at(mid) - target_irr
        if abs(f_mid) < tolerance:
            return mid
        if f_low * f_mid < 0:
            high = mid
        else:
            low, f_low = mid, f_mid

    return (low + high) / 2


def solve_max_purchase_price(
    target_irr: float,
    inputs: GoalSeekInputs,
    irr_options: Optional[Dict[str, Any]] = None,
) -> Optional[float]:
    """
    Highest purchase price that still earns the target IRR.

    Financing and closing costs scale with the price; NOI does not.

    Args:
        target_irr: Target levered IRR (percent)
        inputs: Deal assumptions; the purchase price sets the search range
        irr_options: Optional solver settings passed to calculate_irr

    Returns:
        Purchase price, or None if no price between 5% and 10x the current
        one hits the target
    """
    if not is_positive_number(inputs.purchase_price):
        return None

    def irr_at(price: float) -> float:
        return project_irr(replace(inputs, purchase_price=price), irr_options)

    return _bisect(
        irr_at,
        inputs.purchase_price * MIN_PRICE_FACTOR,
        inputs.purchase_price * MAX_PRICE_FACTOR,
        target_irr,
    )


def solve_required_noi(
    target_irr: float,
    inputs: GoalSeekInputs,
    irr_options: Optional[Dict[str, Any]] = None,
) -> Optional[float]:
    """
    Year 1 NOI needed to earn the target IRR at the current price.

    The NOI change is applied to income; expenses stay as entered.

    Returns:
        Required NOI, or None if the target is out of reach
    """
    base_noi = inputs.noi

    def irr_at(noi: float) -> float:
        income = inputs.initial_income + (noi - base_noi)
        return project_irr(replace(inputs, initial_income=income), irr_options)

    high = max(inputs.purchase_price, abs(base_noi) * MAX_NOI_FACTOR)
    return _bisect(irr_at, 0.0, high, target_irr)


def solve_capex_ceiling(
    target_irr: float,
    inputs: GoalSeekInputs,
    irr_options: Optional[Dict[str, Any]] = None,
) -> Optional[float]:
    """
    Most value-add capital the deal can absorb and still earn the target IRR.

    Returns:
        Capex budget. 0 when the deal misses the target with no capex at all;
        None when even twice the purchase price in capex clears the target.
    """
    def irr_at(capex: float) -> float:
        return project_irr(replace(inputs, value_add_cost=capex), irr_options)

    if irr_at(0.0) < target_irr:
        return 0.0

    return _bisect(
        irr_at, 0.0, _n_positive(inputs.purchase_price) * MAX_CAPEX_FACTOR, target_irr
    )


def solve_target_exit_cap(
    target_irr: float,
    inputs: GoalSeekInputs,
    irr_options: Optional[Dict[str, Any]] = None,
) -> Optional[float]:
    """
    Highest exit cap rate (percent) that still earns the target IRR.

    Returns:
        Exit cap rate between 0.5% and 25%, or None if out of range
    """
    def irr_at(exit_cap_rate: float) -> float:
        return project_irr(replace(inputs, exit_cap_rate=exit_cap_rate), irr_options)

    return _bisect(irr_at, MIN_EXIT_CAP_RATE, MAX_EXIT_CAP_RATE, target_irr)


def solve_required_rent_psf(
    noi: float, building_sf: float, expense_ratio: float
) -> float:
    """
    Annual rent per square foot that produces an NOI.

    Formula: NOI / (1 - expense ratio) / building SF

    Returns:
        Rent per SF, or 0 if the building size is not positive or expenses
        consume all income
    """
    if not is_positive_number(building_sf) or not is_valid_number(noi):
        return 0.0
    ratio = expense_ratio if is_valid_number(expense_ratio) else 0.0
    if ratio >= 100:
        return 0.0
    return noi / (1 - ratio / 100) / building_sf


def optimize_deal(
    target_irr: float,
    inputs: GoalSeekInputs,
    building_sf: Optional[float] = None,
    irr_options: Optional[Dict[str, Any]] = None,
) -> Optional[GoalSeekResult]:
    """
    Run every solver for a target IRR.

    Required rent per SF is solved for the required NOI at the deal's current
    expense ratio.

    Args:
        target_irr: Target levered IRR (percent)
        inputs: Deal assumptions
        building_sf: Building size for the rent solve
        irr_options: Optional solver settings passed to calculate_irr

    Returns:
        GoalSeekResult, or None when the deal has no price or no income
    """
    if not is_positive_number(inputs.purchase_price):
        return None
    if not is_positive_number(inputs.initial_income):
        return None

    required_noi = solve_required_noi(target_irr, inputs, irr_options)
    expense_ratio = (inputs.initial_expenses / inputs.initial_income) * 100

    return GoalSeekResult(
        target_irr=target_irr,
        max_purchase_price=solve_max_purchase_price(target_irr, inputs, irr_options),
        required_noi=required_noi,
        required_noi_lift=(
            required_noi - inputs.noi if required_noi is not None else None
        ),
        required_rent_psf=(
            solve_required_rent_psf(required_noi, building_sf, expense_ratio)
            if required_noi is not None
            else None
        ),
        capex_ceiling=solve_capex_ceiling(target_irr, inputs, irr_options),
        target_exit_cap_rate=solve_target_exit_cap(target_irr, inputs, irr_options),
    )
