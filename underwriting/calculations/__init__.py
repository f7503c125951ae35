"""
Financial Calculation Engine

Underwriting metrics, debt service, pro forma projections and return
analysis for commercial real estate deals.
All calculations are pure functions of their inputs.
"""

from underwriting.calculations import (
    validation,
    metrics,
    debt,
    projections,
    returns,
    thresholds,
    sensitivity,
    defaults,
    stabilization,
    comps,
    goal_seek,
    deal,
)

__all__ = [
    "validation",
    "metrics",
    "debt",
    "projections",
    "returns",
    "thresholds",
    "sensitivity",
    "defaults",
    "stabilization",
    "comps",
    "goal_seek",
    "deal",
]
