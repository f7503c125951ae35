"""
Financial calculation API endpoints.

These endpoints accept deal inputs and return calculated results. They only
translate between JSON and the calculation engine; no formula lives here.
"""

import logging
import math
from dataclasses import asdict
from datetime import date
from functools import lru_cache
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from underwriting.calculations import debt, metrics, returns, sensitivity
from underwriting.calculations.comps import (
    ComparableSale,
    benchmark_price_per_sqft,
    suggest_exit_cap_rate,
    suggest_strategy,
)
from underwriting.calculations.deal import (
    DealInputs,
    analyze_deal,
    optimize_deal_inputs,
)
from underwriting.calculations.defaults import (
    ExpenseRateTables,
    get_default_insurance,
    get_default_property_taxes,
    get_default_utilities,
    load_rate_tables,
)
from underwriting.calculations.projections import (
    ProjectionInputs,
    calculate_average_cash_on_cash,
    generate_projections,
)
from underwriting.calculations.stabilization import (
    OperatingScenario,
    calculate_total_project_cost,
    calculate_value_add_cost,
    compare_as_is_to_stabilized,
)
from underwriting.calculations.thresholds import (
    STRATEGY_THRESHOLDS,
    THRESHOLDS,
    InvestmentStrategy,
)
from underwriting.config import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache()
def _rate_tables(path: Optional[str]) -> ExpenseRateTables:
    return load_rate_tables(path)


def get_rate_tables(settings: Settings = Depends(get_settings)) -> ExpenseRateTables:
    """Dependency for the configured expense rate tables."""
    return _rate_tables(settings.expense_rates_file)


class MetricsInput(BaseModel):
    """Input for single-period metrics. Percentages are whole numbers."""

    gross_income: Optional[float] = None
    operating_expenses: Optional[float] = None
    purchase_price: Optional[float] = None
    square_footage: Optional[float] = None
    annual_gross_rent: Optional[float] = None
    annual_debt_service: Optional[float] = None
    annual_cash_flow: Optional[float] = None
    total_cash_invested: Optional[float] = None
    occupied_sqft: Optional[float] = None
    total_sqft: Optional[float] = None
    target_cap_rate: Optional[float] = None


class MetricResult(BaseModel):
    """A single calculated metric with its validity signal."""

    value: float
    is_valid: bool
    error: Optional[str] = None


@router.post("/metrics", response_model=Dict[str, MetricResult])
async def calculate_metrics(inputs: MetricsInput):
    """Calculate single-period underwriting metrics."""
    noi = metrics.calculate_noi(inputs.gross_income, inputs.operating_expenses)
    noi_value = noi.value if noi.is_valid else None

    results = {
        "noi": noi,
        "cap_rate": metrics.calculate_cap_rate(noi_value, inputs.purchase_price),
        "price_per_sqft": metrics.calculate_price_per_sqft(
            inputs.purchase_price, inputs.square_footage
        ),
        "grm": metrics.calculate_grm(inputs.purchase_price, inputs.annual_gross_rent),
        "value_at_target_cap": metrics.calculate_value_from_cap_rate(
            noi_value, inputs.target_cap_rate
        ),
        "dscr": metrics.calculate_dscr(noi_value, inputs.annual_debt_service),
        "cash_on_cash": metrics.calculate_cash_on_cash(
            inputs.annual_cash_flow, inputs.total_cash_invested
        ),
        "occupancy_rate": metrics.calculate_occupancy_rate(
            inputs.occupied_sqft, inputs.total_sqft
        ),
    }

    return {name: result.to_dict() for name, result in results.items()}


class ProjectionInput(BaseModel):
    """Input for a multi-year projection with exit."""

    initial_income: float
    initial_expenses: float
    income_growth_rate: float = 3.0
    expense_growth_rate: float = 2.0
    purchase_price: float
    loan_amount: float = 0.0
    interest_rate: float = 0.0
    amortization_years: float = 25
    holding_period: int = 5

    # Exit
    exit_cap_rate: float = 6.5
    selling_costs_percent: float = 2.0
    total_cash_invested: float = 0.0
    forward_noi: bool = False

    def to_projection_inputs(self) -> ProjectionInputs:
        return ProjectionInputs(
            initial_income=self.initial_income,
            initial_expenses=self.initial_expenses,
            income_growth_rate=self.income_growth_rate,
            expense_growth_rate=self.expense_growth_rate,
            purchase_price=self.purchase_price,
            loan_amount=self.loan_amount,
            interest_rate=self.interest_rate,
            amortization_years=self.amortization_years,
            holding_period=self.holding_period,
        )


@router.post("/projections")
async def calculate_projections(
    inputs: ProjectionInput, settings: Settings = Depends(get_settings)
):
    """Project annual operations over the hold and analyze the exit."""
    projections = generate_projections(inputs.to_projection_inputs())

    exit_analysis = returns.analyze_exit(
        projections,
        inputs.total_cash_invested,
        inputs.exit_cap_rate,
        inputs.selling_costs_percent,
        income_growth_rate=inputs.income_growth_rate,
        forward_noi=inputs.forward_noi,
        fallback_loan_balance=inputs.loan_amount,
        irr_options=settings.irr_options(),
    )

    return {
        "projections": [p.to_dict() for p in projections],
        "exit": exit_analysis.to_dict(),
        "average_cash_on_cash": calculate_average_cash_on_cash(
            projections, inputs.total_cash_invested
        ),
    }


class IRRInput(BaseModel):
    """Input for IRR calculation."""

    cash_flows: List[float]


class IRRResponse(BaseModel):
    """Response with IRR calculation. Rates are percentages."""

    irr: float
    converged: bool
    iterations: int
    multiple: float
    profit: float
    npv_at_10_percent: float


@router.post("/irr", response_model=IRRResponse)
async def calculate_irr_endpoint(
    inputs: IRRInput, settings: Settings = Depends(get_settings)
):
    """Calculate IRR for annual cash flows starting with the investment."""
    cash_flows = inputs.cash_flows

    if len(cash_flows) < 2:
        raise HTTPException(status_code=400, detail="At least 2 cash flows required")
    if not all(math.isfinite(cf) for cf in cash_flows):
        raise HTTPException(status_code=400, detail="Cash flows must be finite numbers")
    if cash_flows[0] >= 0:
        raise HTTPException(
            status_code=400, detail="First cash flow must be a negative investment"
        )

    solution = returns.solve_irr(
        cash_flows,
        guess=settings.irr_initial_guess,
        max_iterations=settings.irr_max_iterations,
        tolerance=settings.irr_tolerance,
    )
    logger.info(
        f"IRR for {len(cash_flows)} cash flows: {solution.percent:.4f}% "
        f"(converged={solution.converged}, iterations={solution.iterations})"
    )

    return IRRResponse(
        irr=solution.percent,
        converged=solution.converged,
        iterations=solution.iterations,
        multiple=returns.calculate_equity_multiple(
            -cash_flows[0], sum(cash_flows[1:]), 0.0
        ),
        profit=sum(cash_flows),
        npv_at_10_percent=returns.calculate_npv(cash_flows, 10),
    )


class AmortizationInput(BaseModel):
    """Input for amortization calculation."""

    principal: float
    annual_rate: float  # Percent
    amortization_years: int
    total_months: Optional[int] = None
    start_date: Optional[date] = None


@router.post("/amortization")
async def calculate_amortization(inputs: AmortizationInput):
    """Generate loan amortization schedule."""
    schedule = debt.generate_amortization_schedule(
        loan_amount=inputs.principal,
        annual_interest_rate=inputs.annual_rate,
        amortization_years=inputs.amortization_years,
        total_months=inputs.total_months,
        start_date=inputs.start_date,
    )
    monthly_payment = debt.calculate_monthly_payment(
        inputs.principal, inputs.annual_rate, inputs.amortization_years
    )

    return {
        "monthly_payment": monthly_payment,
        "annual_debt_service": debt.calculate_annual_debt_service(monthly_payment),
        "schedule": schedule,
        "annual_summary": debt.summarize_schedule_by_year(schedule),
        "total_interest": sum(row["interest"] for row in schedule),
        "total_principal": sum(row["principal"] for row in schedule),
    }


class DealInput(BaseModel):
    """Raw deal inputs. Missing fields are treated as 0 or worksheet defaults."""

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
    value_add_cost: Optional[float] = None

    # Pro forma and exit
    income_growth_rate: Optional[float] = None
    expense_growth_rate: Optional[float] = None
    holding_period: Optional[int] = None
    exit_cap_rate: Optional[float] = None
    selling_costs_percent: Optional[float] = None

    # Strategy
    investment_strategy: Optional[InvestmentStrategy] = None


@router.post("/deal")
async def calculate_deal(inputs: DealInput, settings: Settings = Depends(get_settings)):
    """Run the full underwriting analysis for a deal."""
    analysis = analyze_deal(
        DealInputs(**inputs.model_dump()), irr_options=settings.irr_options()
    )
    logger.info(
        f"Deal analyzed: NOI {analysis.metrics['noi'].value:,.2f}, "
        f"IRR {analysis.exit.irr:.2f}%"
    )
    return analysis.to_dict()


class GoalSeekInput(DealInput):
    """Deal inputs plus an optional IRR target (percent)."""

    target_irr: Optional[float] = None


@router.post("/goal-seek")
async def calculate_goal_seek(
    inputs: GoalSeekInput, settings: Settings = Depends(get_settings)
):
    """Solve price, NOI, rent, capex and exit cap for a target IRR."""
    deal_inputs = DealInputs(**inputs.model_dump(exclude={"target_irr"}))
    result = optimize_deal_inputs(
        deal_inputs, target_irr=inputs.target_irr, irr_options=settings.irr_options()
    )
    if result is None:
        raise HTTPException(
            status_code=400,
            detail="Goal seek needs a positive purchase price and income",
        )
    return result.to_dict()


class CompInput(BaseModel):
    """A comparable sale. Cap rate is a percent."""

    sale_price: Optional[float] = None
    square_footage: Optional[float] = None
    price_per_sqft: Optional[float] = None
    cap_rate: Optional[float] = None


class CompsInput(BaseModel):
    comps: List[CompInput]


@router.post("/comps")
async def analyze_comps(inputs: CompsInput):
    """Exit cap rate, strategy and price/SF band suggested by comps."""
    comps = [ComparableSale(**comp.model_dump()) for comp in inputs.comps]
    strategy = suggest_strategy(comps)
    benchmark = benchmark_price_per_sqft(comps)

    return {
        "suggested_exit_cap_rate": suggest_exit_cap_rate(comps),
        "suggested_strategy": strategy.value if strategy else None,
        "price_per_sqft": benchmark.to_dict() if benchmark else None,
    }


class ScenarioInput(BaseModel):
    """Rent roll assumptions. Occupancy and expense ratio are percents."""

    rent_psf: Optional[float] = None
    occupancy: Optional[float] = None
    other_income: Optional[float] = None
    expense_ratio: Optional[float] = None


class StabilizationInput(BaseModel):
    building_sf: float
    as_is: ScenarioInput
    stabilized: ScenarioInput

    # Value-add budget
    purchase_price: Optional[float] = None
    closing_costs: Optional[float] = None
    capex: Optional[float] = None
    ti_leasing: Optional[float] = None
    carry_costs: Optional[float] = None
    contingency: Optional[float] = None


@router.post("/stabilization")
async def calculate_stabilization(inputs: StabilizationInput):
    """As-is vs stabilized NOI and the value-add budget behind the lift."""
    summary = compare_as_is_to_stabilized(
        inputs.building_sf,
        OperatingScenario(**inputs.as_is.model_dump()),
        OperatingScenario(**inputs.stabilized.model_dump()),
    )
    value_add_cost = calculate_value_add_cost(
        inputs.capex, inputs.ti_leasing, inputs.carry_costs, inputs.contingency
    )

    return {
        **summary.to_dict(),
        "value_add_cost": value_add_cost,
        "total_project_cost": calculate_total_project_cost(
            inputs.purchase_price, inputs.closing_costs, value_add_cost
        ),
    }


class SensitivityInput(BaseModel):
    """Input for sensitivity grids."""

    noi: float
    purchase_price: float
    asking_cap_rate: float
    projection: ProjectionInput
    exit_cap_rates: Optional[List[float]] = None
    growth_rates: Optional[List[float]] = None


@router.post("/sensitivity")
async def calculate_sensitivity(inputs: SensitivityInput):
    """Valuation and IRR sensitivity grids."""
    projection_inputs = inputs.projection.to_projection_inputs()
    total_cash_invested = inputs.projection.total_cash_invested
    selling_costs_percent = inputs.projection.selling_costs_percent

    return {
        "cap_rate_values": sensitivity.cap_rate_value_sensitivity(
            inputs.noi, inputs.purchase_price, inputs.asking_cap_rate
        ),
        "exit_cap_irr": sensitivity.exit_cap_irr_sensitivity(
            projection_inputs,
            total_cash_invested,
            exit_cap_rates=inputs.exit_cap_rates,
            selling_costs_percent=selling_costs_percent,
        ),
        "income_growth_irr": sensitivity.income_growth_irr_sensitivity(
            projection_inputs,
            total_cash_invested,
            growth_rates=inputs.growth_rates,
            exit_cap_rate=inputs.projection.exit_cap_rate,
            selling_costs_percent=selling_costs_percent,
        ),
    }


class ExpenseDefaultsInput(BaseModel):
    """Input for default expense population."""

    purchase_price: Optional[float] = None
    building_sf: Optional[float] = None
    city: Optional[str] = None
    property_type: Optional[str] = None


@router.post("/expense-defaults")
async def calculate_expense_defaults(
    inputs: ExpenseDefaultsInput,
    tables: ExpenseRateTables = Depends(get_rate_tables),
):
    """Suggest property taxes, insurance and utilities for a new analysis."""
    return {
        "property_taxes": get_default_property_taxes(
            inputs.purchase_price, inputs.city, tables
        ),
        "insurance": get_default_insurance(
            inputs.building_sf, inputs.property_type, tables
        ),
        "utilities": get_default_utilities(
            inputs.building_sf, inputs.property_type, tables
        ),
    }


@router.get("/thresholds")
async def get_thresholds():
    """Thresholds used to band DSCR, cap rate, expense ratio and cash-on-cash."""
    return THRESHOLDS


@router.get("/strategies")
async def get_strategies():
    """Minimum cap rate, cash-on-cash, IRR, multiple and DSCR per strategy."""
    return {
        strategy.value: asdict(thresholds)
        for strategy, thresholds in STRATEGY_THRESHOLDS.items()
    }
