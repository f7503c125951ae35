"""
Sensitivity Analysis

Re-runs valuation and projection math across a range of assumptions so a
deal can be read as a grid rather than a single point estimate.
"""

import math
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from underwriting.calculations.metrics import calculate_value_from_cap_rate
from underwriting.calculations.projections import ProjectionInputs, generate_projections
from underwriting.calculations.returns import analyze_exit
from underwriting.calculations.validation import is_positive_number, is_valid_number

CAP_RATE_STEPS = [-1.5, -1.0, -0.5, 0.0, 0.5, 1.0, 1.5]
DEFAULT_EXIT_CAP_RATES = [5.0, 5.5, 6.0, 6.5, 7.0, 7.5, 8.0]
DEFAULT_INCOME_GROWTH_RATES = [1.0, 2.0, 3.0, 4.0, 5.0]
DEFAULT_EXIT_CAP_RATE = 6.5
DEFAULT_SELLING_COSTS_PERCENT = 2.0


def cap_rate_value_sensitivity(
    noi: float, purchase_price: float, asking_cap_rate: float
) -> List[Dict]:
    """
    Value the property at cap rates around the asking cap rate.

    The asking rate is rounded to the nearest 0.5 and stepped +/-1.5 in 0.5
    increments; non-positive cap rates are dropped.

    Returns:
        Rows with cap_rate, value, vs_ask (percent above/below price) and
        is_asking_rate
    """
    if not is_valid_number(asking_cap_rate) or not is_positive_number(purchase_price):
        return []

    base_rate = math.floor(asking_cap_rate * 2 + 0.5) / 2
    rows = []

    for step in CAP_RATE_STEPS:
        cap_rate = base_rate + step
        if cap_rate <= 0:
            continue

        value = calculate_value_from_cap_rate(noi, cap_rate).value
        rows.append(
            {
                "cap_rate": cap_rate,
                "value": value,
                "vs_ask": ((value - purchase_price) / purchase_price) * 100,
                "is_asking_rate": abs(cap_rate - asking_cap_rate) < 0.1,
            }
        )

    return rows


def exit_cap_irr_sensitivity(
    inputs: ProjectionInputs,
    total_cash_invested: float,
    exit_cap_rates: Optional[Sequence[float]] = None,
    selling_costs_percent: float = DEFAULT_SELLING_COSTS_PERCENT,
) -> List[Dict]:
    """
    IRR across exit cap rates, holding the operating projection fixed.

    The exit is valued on forward (next-year) NOI.
    """
    if not is_positive_number(inputs.initial_income):
        return []
    if not is_positive_number(total_cash_invested):
        return []

    projections = generate_projections(inputs)
    rows = []

    for exit_cap_rate in exit_cap_rates or DEFAULT_EXIT_CAP_RATES:
        if not projections:
            rows.append(
                {"exit_cap_rate": exit_cap_rate, "irr": 0.0, "sale_price": 0.0}
            )
            continue

        exit_analysis = analyze_exit(
            projections,
            total_cash_invested,
            exit_cap_rate,
            selling_costs_percent,
            income_growth_rate=inputs.income_growth_rate,
            forward_noi=True,
        )
        rows.append(
            {
                "exit_cap_rate": exit_cap_rate,
                "irr": exit_analysis.irr,
                "sale_price": exit_analysis.sale.sale_price,
                "net_proceeds": exit_analysis.sale.net_to_seller,
            }
        )

    return rows


def income_growth_irr_sensitivity(
    inputs: ProjectionInputs,
    total_cash_invested: float,
    growth_rates: Optional[Sequence[float]] = None,
    exit_cap_rate: float = DEFAULT_EXIT_CAP_RATE,
    selling_costs_percent: float = DEFAULT_SELLING_COSTS_PERCENT,
) -> List[Dict]:
    """IRR and average cash flow across income growth assumptions."""
    if not is_positive_number(inputs.initial_income):
        return []
    if not is_positive_number(total_cash_invested):
        return []

    rows = []

    for growth_rate in growth_rates or DEFAULT_INCOME_GROWTH_RATES:
        scenario = replace(inputs, income_growth_rate=growth_rate)
        projections = generate_projections(scenario)
        if not projections:
            rows.append({"growth_rate": growth_rate, "irr": 0.0})
            continue

        exit_analysis = analyze_exit(
            projections,
            total_cash_invested,
            exit_cap_rate,
            selling_costs_percent,
            income_growth_rate=growth_rate,
            forward_noi=True,
        )
        rows.append(
            {
                "growth_rate": growth_rate,
                "irr": exit_analysis.irr,
                "avg_cash_flow": exit_analysis.total_cash_flow / len(projections),
                "equity_multiple": exit_analysis.equity_multiple,
            }
        )

    return rows
