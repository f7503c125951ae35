"""
Deal Analysis

Runs a full underwriting pass for one deal: income and expenses, NOI and
valuation ratios, financing, a multi-year projection, exit and returns,
display bands for the headline ratios, and a GO / REVIEW / NO-GO verdict
against the deal's investment strategy.

Data flows one way and everything is recomputed from the inputs on each
call; nothing is cached between analyses.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from underwriting.calculations import debt, metrics
from underwriting.calculations.goal_seek import (
    GoalSeekInputs,
    GoalSeekResult,
    optimize_deal,
)
from underwriting.calculations.projections import (
    ProjectionInputs,
    YearProjection,
    calculate_average_cash_on_cash,
    generate_projections,
)
from underwriting.calculations.returns import ExitAnalysis, analyze_exit
from underwriting.calculations.thresholds import (
    DealDecision,
    evaluate_deal_decision,
    get_cap_rate_status,
    get_cash_on_cash_status,
    get_dscr_status,
    get_expense_ratio_status,
    get_strategy_thresholds,
)
from underwriting.calculations.validation import CalculationResult, is_valid_number

DEFAULT_HOLDING_PERIOD = 5
DEFAULT_EXIT_CAP_RATE = 6.0
DEFAULT_SELLING_COSTS_PERCENT = 2.0


@dataclass
class DealInputs:
    """
    Raw deal inputs as entered on the worksheet.

    Any field may be None; missing amounts are treated as 0. Percentages are
    whole numbers (5 for 5%).
    """

    # Income
    potential_gross_income: Optional[float] = None
    vacancy_rate: Optional[float] = None
    other_income: Optional[float] = None

    # Operating expenses
    property_taxes: Optional[float] = None
    insurance: Optional[float] = None
    utilities: Optional[float] = None
    management_fee_percent: Optional[float] = None
    repairs_maintenance: Optional[float] = None
    reserves_capex: Optional[float] = None
    other_expenses: Optional[float] = None

    # Acquisition and financing
    purchase_price: Optional[float] = None
    square_footage: Optional[float] = None
    ltv_percent: Optional[float] = None
    interest_rate: Optional[float] = None
    amortization_years: Optional[float] = None
    closing_costs_percent: Optional[float] = None
    value_add_cost: Optional[float] = None  # Capex, TI/leasing, carry, contingency

    # Pro forma and exit
    income_growth_rate: Optional[float] = None
    expense_growth_rate: Optional[float] = None
    holding_period: Optional[int] = None
    exit_cap_rate: Optional[float] = None
    selling_costs_percent: Optional[float] = None

    # Strategy the deal is judged against (core, value_add, opportunistic)
    investment_strategy: Optional[str] = None


@dataclass
class DealAnalysis:
    """Everything computed for a deal."""

    metrics: Dict[str, CalculationResult]
    financing: Dict[str, float]
    projections: List[YearProjection]
    exit: ExitAnalysis
    average_cash_on_cash: float
    statuses: Dict[str, Optional[str]] = field(default_factory=dict)
    decision: Optional[DealDecision] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metrics": {name: result.to_dict() for name, result in self.metrics.items()},
            "financing": dict(self.financing),
            "projections": [p.to_dict() for p in self.projections],
            "exit": self.exit.to_dict(),
            "average_cash_on_cash": self.average_cash_on_cash,
            "statuses": dict(self.statuses),
            "decision": self.decision.to_dict() if self.decision else None,
        }


def _n(value: Any) -> float:
    """Missing or malformed amounts count as 0."""
    return value if is_valid_number(value) else 0.0


def _or_default(value: Any, default: float) -> float:
    """Zero or missing falls back to the worksheet default."""
    return value if is_valid_number(value) and value != 0 else default


def _operating_statement(inputs: DealInputs):
    """EGI, management fee and total expenses from the worksheet inputs."""
    egi = metrics.calculate_effective_gross_income(
        _n(inputs.potential_gross_income),
        _n(inputs.vacancy_rate),
        _n(inputs.other_income),
    )
    management_fee = metrics.calculate_management_fee(
        egi.value, _n(inputs.management_fee_percent)
    )
    total_expenses = metrics.calculate_total_expenses(
        property_taxes=_n(inputs.property_taxes),
        insurance=_n(inputs.insurance),
        utilities=_n(inputs.utilities),
        management_fee=management_fee.value,
        repairs_maintenance=_n(inputs.repairs_maintenance),
        reserves_capex=_n(inputs.reserves_capex),
        other_expenses=_n(inputs.other_expenses),
    )
    return egi, management_fee, total_expenses


def analyze_deal(
    inputs: DealInputs, irr_options: Optional[Dict[str, Any]] = None
) -> DealAnalysis:
    """
    Underwrite a deal from raw inputs.

    Args:
        inputs: Deal inputs; missing fields are tolerated
        irr_options: Optional solver settings passed to calculate_irr
            (guess, max_iterations, tolerance)

    Returns:
        DealAnalysis with single-period metrics, financing figures,
        projections, exit returns, status bands and the strategy verdict
    """
    # === INCOME / EXPENSES ===
    pgi = _n(inputs.potential_gross_income)
    vacancy = metrics.calculate_vacancy_amount(pgi, _n(inputs.vacancy_rate))
    egi, management_fee, total_expenses = _operating_statement(inputs)
    noi = metrics.calculate_noi(egi.value, total_expenses.value)

    # === FINANCING ===
    purchase_price = _n(inputs.purchase_price)
    interest_rate = _n(inputs.interest_rate)
    amortization_years = _n(inputs.amortization_years)

    loan_amount = debt.calculate_loan_amount(purchase_price, _n(inputs.ltv_percent))
    down_payment = debt.calculate_down_payment(purchase_price, loan_amount)
    monthly_payment = debt.calculate_monthly_payment(
        loan_amount, interest_rate, amortization_years
    )
    annual_debt_service = debt.calculate_annual_debt_service(monthly_payment)
    closing_costs = debt.calculate_closing_costs(
        purchase_price, _n(inputs.closing_costs_percent)
    )
    total_cash_required = debt.calculate_total_cash_required(down_payment, closing_costs)
    total_cash_invested = total_cash_required + _n(inputs.value_add_cost)
    before_tax_cash_flow = debt.calculate_before_tax_cash_flow(
        noi.value, annual_debt_service
    )

    # === SINGLE-PERIOD RATIOS ===
    single_period = {
        "vacancy_amount": vacancy,
        "effective_gross_income": egi,
        "management_fee": management_fee,
        "total_expenses": total_expenses,
        "noi": noi,
        "operating_expense_ratio": metrics.calculate_operating_expense_ratio(
            total_expenses.value, egi.value
        ),
        "cap_rate": metrics.calculate_cap_rate(noi.value, purchase_price),
        "price_per_sqft": metrics.calculate_price_per_sqft(
            purchase_price, inputs.square_footage
        ),
        "grm": metrics.calculate_grm(purchase_price, pgi),
        "dscr": metrics.calculate_dscr(noi.value, annual_debt_service),
        "cash_on_cash": metrics.calculate_cash_on_cash(
            before_tax_cash_flow, total_cash_invested
        ),
    }

    # === PROJECTION & EXIT ===
    income_growth_rate = _n(inputs.income_growth_rate)
    projection_inputs = ProjectionInputs(
        initial_income=egi.value,
        initial_expenses=total_expenses.value,
        income_growth_rate=income_growth_rate,
        expense_growth_rate=_n(inputs.expense_growth_rate),
        purchase_price=purchase_price,
        loan_amount=loan_amount,
        interest_rate=interest_rate,
        amortization_years=amortization_years,
        holding_period=int(_or_default(inputs.holding_period, DEFAULT_HOLDING_PERIOD)),
    )
    projections = generate_projections(projection_inputs)

    exit_analysis = analyze_exit(
        projections,
        total_cash_invested,
        _or_default(inputs.exit_cap_rate, DEFAULT_EXIT_CAP_RATE),
        _or_default(inputs.selling_costs_percent, DEFAULT_SELLING_COSTS_PERCENT),
        income_growth_rate=income_growth_rate,
        fallback_noi=noi.value,
        fallback_loan_balance=loan_amount,
        irr_options=irr_options,
    )

    # === STATUS BANDS ===
    statuses: Dict[str, Optional[str]] = {
        "dscr": None,
        "cap_rate": None,
        "expense_ratio": None,
        "cash_on_cash": None,
    }
    if single_period["dscr"].is_valid:
        statuses["dscr"] = get_dscr_status(single_period["dscr"].value).value
    if single_period["cap_rate"].is_valid:
        statuses["cap_rate"] = get_cap_rate_status(single_period["cap_rate"].value).value
    if single_period["operating_expense_ratio"].is_valid:
        statuses["expense_ratio"] = get_expense_ratio_status(
            single_period["operating_expense_ratio"].value
        ).value
    if single_period["cash_on_cash"].is_valid:
        statuses["cash_on_cash"] = get_cash_on_cash_status(
            single_period["cash_on_cash"].value
        ).value

    average_cash_on_cash = calculate_average_cash_on_cash(
        projections, total_cash_invested
    )

    # === STRATEGY DECISION ===
    decision = evaluate_deal_decision(
        inputs.investment_strategy,
        cap_rate=single_period["cap_rate"].value,
        average_cash_on_cash=average_cash_on_cash,
        irr=exit_analysis.irr,
        equity_multiple=exit_analysis.equity_multiple,
        dscr=single_period["dscr"].value,
    )

    return DealAnalysis(
        metrics=single_period,
        financing={
            "loan_amount": loan_amount,
            "down_payment": down_payment,
            "monthly_payment": monthly_payment,
            "annual_debt_service": annual_debt_service,
            "closing_costs": closing_costs,
            "total_cash_required": total_cash_required,
            "total_cash_invested": total_cash_invested,
            "before_tax_cash_flow": before_tax_cash_flow,
        },
        projections=projections,
        exit=exit_analysis,
        average_cash_on_cash=average_cash_on_cash,
        statuses=statuses,
        decision=decision,
    )


def build_goal_seek_inputs(inputs: DealInputs) -> GoalSeekInputs:
    """Deal inputs as solver assumptions, with the same defaults as analyze_deal."""
    egi, _, total_expenses = _operating_statement(inputs)

    return GoalSeekInputs(
        purchase_price=_n(inputs.purchase_price),
        initial_income=egi.value,
        initial_expenses=total_expenses.value,
        income_growth_rate=_n(inputs.income_growth_rate),
        expense_growth_rate=_n(inputs.expense_growth_rate),
        ltv_percent=_n(inputs.ltv_percent),
        interest_rate=_n(inputs.interest_rate),
        amortization_years=_n(inputs.amortization_years),
        closing_costs_percent=_n(inputs.closing_costs_percent),
        holding_period=int(_or_default(inputs.holding_period, DEFAULT_HOLDING_PERIOD)),
        exit_cap_rate=_or_default(inputs.exit_cap_rate, DEFAULT_EXIT_CAP_RATE),
        selling_costs_percent=_or_default(
            inputs.selling_costs_percent, DEFAULT_SELLING_COSTS_PERCENT
        ),
        value_add_cost=_n(inputs.value_add_cost),
    )


def optimize_deal_inputs(
    inputs: DealInputs,
    target_irr: Optional[float] = None,
    irr_options: Optional[Dict[str, Any]] = None,
) -> Optional[GoalSeekResult]:
    """
    Goal-seek a deal to a target IRR.

    Args:
        inputs: Deal inputs; missing fields are tolerated
        target_irr: Target levered IRR (percent); defaults to the minimum IRR
            for the deal's investment strategy
        irr_options: Optional solver settings passed to calculate_irr

    Returns:
        GoalSeekResult, or None when the deal has no price or no income
    """
    if not is_valid_number(target_irr):
        target_irr = get_strategy_thresholds(inputs.investment_strategy).irr

    return optimize_deal(
        target_irr,
        build_goal_seek_inputs(inputs),
        building_sf=inputs.square_footage,
        irr_options=irr_options,
    )
