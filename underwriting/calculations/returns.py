"""
Exit and Return Calculations

Sale proceeds at exit, NPV, IRR (Newton-Raphson) and equity multiple for an
annual cash-flow stream.

Cash-flow streams are ordered by year: index 0 is the (negative) initial
equity investment, indices 1..N are annual cash flows with the final year
including net sale proceeds.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from underwriting.calculations.metrics import calculate_value_from_cap_rate
from underwriting.calculations.projections import (
    YearProjection,
    calculate_total_cash_flow,
)
from underwriting.calculations.validation import is_valid_number

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 100
TOLERANCE = 0.0001  # |NPV| at which the solver stops
DEFAULT_GUESS = 0.10
MIN_RATE = -0.99  # -99%
MAX_RATE = 10.0  # +1000%


@dataclass
class SaleProceeds:
    """Breakdown of a sale at the end of the hold."""

    sale_price: float
    selling_costs: float
    net_sale_proceeds: float
    loan_payoff: float
    net_to_seller: float

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class IRRSolution:
    """Outcome of the IRR root search."""

    rate: float  # Decimal rate (0.12 for 12%)
    iterations: int
    converged: bool

    @property
    def percent(self) -> float:
        return self.rate * 100


def calculate_sale_proceeds(
    exit_noi: float,
    exit_cap_rate: float,
    loan_balance: float,
    selling_costs_percent: float,
) -> SaleProceeds:
    """
    Calculate sale proceeds at exit.

    Args:
        exit_noi: NOI used to value the property at sale
        exit_cap_rate: Exit cap rate as a percentage (e.g., 6.5)
        loan_balance: Loan balance repaid from the sale
        selling_costs_percent: Broker and closing costs as a percent of price

    Returns:
        SaleProceeds record. An invalid exit cap rate yields a sale price of 0.
    """
    sale_price = calculate_value_from_cap_rate(exit_noi, exit_cap_rate).value
    cost_rate = selling_costs_percent if is_valid_number(selling_costs_percent) else 0.0
    loan_payoff = loan_balance if is_valid_number(loan_balance) else 0.0

    selling_costs = sale_price * (cost_rate / 100)
    net_sale_proceeds = sale_price - selling_costs

    return SaleProceeds(
        sale_price=sale_price,
        selling_costs=selling_costs,
        net_sale_proceeds=net_sale_proceeds,
        loan_payoff=loan_payoff,
        net_to_seller=net_sale_proceeds - loan_payoff,
    )


def build_irr_cash_flows(
    total_cash_invested: float,
    projections: Sequence[YearProjection],
    sale_proceeds: float,
) -> List[float]:
    """
    Assemble the cash-flow stream for IRR.

    Args:
        total_cash_invested: Equity invested at close (entered as a positive
            amount; stored as a negative year-0 flow)
        projections: Annual projection records, year 1 first
        sale_proceeds: Proceeds added to the final year's cash flow

    Returns:
        [-invested, cf_1, ..., cf_N + sale_proceeds]
    """
    cash_flows = [-total_cash_invested]
    cash_flows.extend(p.cash_flow for p in projections)
    if projections:
        cash_flows[-1] += sale_proceeds
    return cash_flows


def _npv(values: np.ndarray, rate: float) -> float:
    periods = np.arange(values.size)
    return float(np.sum(values / (1 + rate) ** periods))


def _npv_derivative(values: np.ndarray, rate: float) -> float:
    """Derivative of NPV with respect to rate (for Newton-Raphson)."""
    periods = np.arange(values.size)
    return float(-np.sum(periods * values / (1 + rate) ** (periods + 1)))


def calculate_npv(cash_flows: Sequence[float], discount_rate: float) -> float:
    """
    Calculate NPV of annual cash flows.

    Args:
        cash_flows: Cash flows starting at year 0
        discount_rate: Annual discount rate as a percentage (e.g., 10)

    Returns:
        NPV value
    """
    values = np.asarray(cash_flows, dtype=float)
    return _npv(values, discount_rate / 100)


def solve_irr(
    cash_flows: Sequence[float],
    guess: float = DEFAULT_GUESS,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = TOLERANCE,
    min_rate: float = MIN_RATE,
    max_rate: float = MAX_RATE,
) -> IRRSolution:
    """
    Find the rate where NPV is zero using Newton-Raphson.

    The estimate is clamped to [min_rate, max_rate] after every step. The
    search stops when |NPV| falls below the tolerance, when the derivative
    is zero, or when the iteration budget is spent; in the last two cases
    the current estimate is returned unconverged. There is no bracketing
    fallback.

    Args:
        cash_flows: Cash flows starting at year 0
        guess: Starting rate as a decimal
        max_iterations: Iteration budget
        tolerance: |NPV| accepted as zero
        min_rate: Lower clamp (decimal)
        max_rate: Upper clamp (decimal)

    Returns:
        IRRSolution with the decimal rate
    """
    values = np.asarray(cash_flows, dtype=float)
    rate = guess

    with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
        for iteration in range(max_iterations):
            npv = _npv(values, rate)
            if not np.isfinite(npv):
                logger.debug(f"IRR search hit non-finite NPV at rate {rate}")
                return IRRSolution(rate=rate, iterations=iteration, converged=False)

            if abs(npv) < tolerance:
                return IRRSolution(rate=rate, iterations=iteration, converged=True)

            dnpv = _npv_derivative(values, rate)
            if dnpv == 0 or not np.isfinite(dnpv):
                logger.debug(f"IRR search stopped: zero derivative at rate {rate}")
                return IRRSolution(rate=rate, iterations=iteration, converged=False)

            rate = rate - npv / dnpv
            rate = max(min_rate, min(max_rate, rate))

    converged = abs(_npv(values, rate)) < tolerance
    if not converged:
        logger.debug(
            f"IRR did not converge after {max_iterations} iterations; "
            f"returning {rate:.6f}"
        )
    return IRRSolution(rate=rate, iterations=max_iterations, converged=converged)


def calculate_irr(
    cash_flows: Sequence[float],
    guess: float = DEFAULT_GUESS,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = TOLERANCE,
) -> float:
    """
    Calculate IRR of annual cash flows.

    Args:
        cash_flows: Cash flows starting with the negative initial investment
        guess: Starting rate as a decimal (default 0.10)
        max_iterations: Iteration budget (default 100)
        tolerance: |NPV| accepted as zero (default 0.0001)

    Returns:
        IRR as a percentage (e.g., 12.5 for 12.5%). Returns 0 for fewer than
        two cash flows, a non-negative initial investment, or non-numeric
        flows.
    """
    if len(cash_flows) < 2:
        return 0.0
    if not all(is_valid_number(cf) for cf in cash_flows):
        return 0.0
    if cash_flows[0] >= 0:
        return 0.0

    solution = solve_irr(
        cash_flows, guess=guess, max_iterations=max_iterations, tolerance=tolerance
    )
    return solution.percent


def calculate_equity_multiple(
    total_cash_invested: float, total_cash_flows: float, sale_proceeds: float
) -> float:
    """
    Calculate equity multiple.

    Formula: (sum of annual cash flows + sale proceeds) / cash invested

    Returns:
        Multiple (e.g., 2.0 = 2.0x return), or 0 if nothing was invested or
        the multiple is not finite
    """
    if not is_valid_number(total_cash_invested) or total_cash_invested == 0:
        return 0.0
    multiple = (total_cash_flows + sale_proceeds) / total_cash_invested
    return multiple if is_valid_number(multiple) else 0.0


@dataclass
class ExitAnalysis:
    """Sale, IRR and equity multiple for a projection series."""

    exit_noi: float
    sale: SaleProceeds
    cash_flows: List[float]
    total_cash_flow: float
    irr: float  # Percent
    equity_multiple: float

    def to_dict(self) -> Dict:
        return asdict(self)


def analyze_exit(
    projections: Sequence[YearProjection],
    total_cash_invested: float,
    exit_cap_rate: float,
    selling_costs_percent: float,
    income_growth_rate: float = 0.0,
    forward_noi: bool = False,
    fallback_noi: float = 0.0,
    fallback_loan_balance: float = 0.0,
    irr_options: Optional[Dict] = None,
) -> ExitAnalysis:
    """
    Value the exit and compute returns for a projection series.

    The property sells on the final projection year's NOI, or on that NOI
    grown one more year at the income growth rate when forward_noi is set.
    With no projection years, the fallback NOI and loan balance are used.
    Proceeds to equity are net of selling costs and the loan payoff.
    """
    last_year = projections[-1] if projections else None

    exit_noi = last_year.noi if last_year else fallback_noi
    if forward_noi and is_valid_number(income_growth_rate):
        exit_noi = exit_noi * (1 + income_growth_rate / 100)
    loan_balance = last_year.loan_balance if last_year else fallback_loan_balance

    sale = calculate_sale_proceeds(
        exit_noi, exit_cap_rate, loan_balance, selling_costs_percent
    )
    cash_flows = build_irr_cash_flows(
        total_cash_invested, projections, sale.net_to_seller
    )
    total_cash_flow = calculate_total_cash_flow(projections)

    return ExitAnalysis(
        exit_noi=exit_noi,
        sale=sale,
        cash_flows=cash_flows,
        total_cash_flow=total_cash_flow,
        irr=calculate_irr(cash_flows, **(irr_options or {})),
        equity_multiple=calculate_equity_multiple(
            total_cash_invested, total_cash_flow, sale.net_to_seller
        ),
    )
