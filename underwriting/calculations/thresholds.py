"""
Underwriting Thresholds

Maps computed metrics to the qualitative risk bands shown next to them.
The constants are shared with the single-period calculations so the
warning text and the display band always agree.

Also holds the per-strategy minimums that turn a deal's returns into a
GO / REVIEW / NO-GO verdict.
"""

import enum
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

DSCR_WARNING = 1.25  # Below this is risky; typical lender minimum
DSCR_GOOD = 1.5  # At or above this is comfortable
CAP_RATE_LOW = 4.0  # Below this the asset may be overpriced
CAP_RATE_HIGH = 8.0  # Above this the asset may carry extra risk
EXPENSE_RATIO_HIGH = 45.0  # Operating expense ratio, percent of EGI
COC_GOOD = 8.0  # Cash-on-cash return, percent

THRESHOLDS: Dict[str, float] = {
    "dscr_warning": DSCR_WARNING,
    "dscr_good": DSCR_GOOD,
    "cap_rate_low": CAP_RATE_LOW,
    "cap_rate_high": CAP_RATE_HIGH,
    "expense_ratio_high": EXPENSE_RATIO_HIGH,
    "coc_good": COC_GOOD,
}


class DSCRStatus(str, enum.Enum):
    danger = "danger"
    warning = "warning"
    good = "good"


class CapRateStatus(str, enum.Enum):
    low = "low"
    normal = "normal"
    high = "high"


class ExpenseRatioStatus(str, enum.Enum):
    normal = "normal"
    high = "high"


class CashOnCashStatus(str, enum.Enum):
    low = "low"
    good = "good"


def get_dscr_status(dscr: float) -> DSCRStatus:
    """
    Classify a debt service coverage ratio.

    Below 1.25 is danger, 1.25 up to 1.5 is warning, 1.5 and above is good.
    """
    if dscr < DSCR_WARNING:
        return DSCRStatus.danger
    if dscr < DSCR_GOOD:
        return DSCRStatus.warning
    return DSCRStatus.good


def get_cap_rate_status(cap_rate: float) -> CapRateStatus:
    """Classify a cap rate (percent) as low, normal or high."""
    if cap_rate < CAP_RATE_LOW:
        return CapRateStatus.low
    if cap_rate > CAP_RATE_HIGH:
        return CapRateStatus.high
    return CapRateStatus.normal


def get_expense_ratio_status(expense_ratio: float) -> ExpenseRatioStatus:
    if expense_ratio > EXPENSE_RATIO_HIGH:
        return ExpenseRatioStatus.high
    return ExpenseRatioStatus.normal


def get_cash_on_cash_status(cash_on_cash: float) -> CashOnCashStatus:
    if cash_on_cash >= COC_GOOD:
        return CashOnCashStatus.good
    return CashOnCashStatus.low


# === STRATEGY DECISION ===


class InvestmentStrategy(str, enum.Enum):
    core = "core"
    value_add = "value_add"
    opportunistic = "opportunistic"


class DealVerdict(str, enum.Enum):
    go = "GO"
    review = "REVIEW"
    no_go = "NO-GO"


@dataclass(frozen=True)
class StrategyThresholds:
    """Minimum returns a deal must show for a strategy. Rates are percents."""

    cap_rate: Optional[float]  # None means the going-in cap rate is not tested
    cash_on_cash: float  # Average over the hold
    irr: float
    equity_multiple: float
    dscr: float


STRATEGY_THRESHOLDS: Dict[InvestmentStrategy, StrategyThresholds] = {
    InvestmentStrategy.core: StrategyThresholds(
        cap_rate=6.0, cash_on_cash=6.0, irr=8.0, equity_multiple=1.4, dscr=1.35
    ),
    InvestmentStrategy.value_add: StrategyThresholds(
        cap_rate=5.0, cash_on_cash=5.0, irr=14.0, equity_multiple=1.6, dscr=1.25
    ),
    InvestmentStrategy.opportunistic: StrategyThresholds(
        cap_rate=None, cash_on_cash=3.0, irr=18.0, equity_multiple=1.8, dscr=1.15
    ),
}

DEFAULT_STRATEGY = InvestmentStrategy.value_add
REVIEW_MIN_PASSING = 3  # Of the five scorecard metrics

# Comp cap rates at or above these point to the strategy
CORE_COMP_CAP_RATE = 6.5
VALUE_ADD_COMP_CAP_RATE = 5.5


@dataclass
class DecisionMetric:
    """One scorecard line: actual value against the strategy minimum."""

    name: str
    actual: float
    required: Optional[float]
    passed: bool


@dataclass
class DealDecision:
    """Scorecard and verdict for a deal under one strategy."""

    strategy: InvestmentStrategy
    verdict: DealVerdict
    pass_count: int
    metrics: List[DecisionMetric] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "verdict": self.verdict.value,
            "pass_count": self.pass_count,
            "metrics": [asdict(metric) for metric in self.metrics],
        }


def resolve_strategy(strategy: Any) -> InvestmentStrategy:
    """Strategy from an enum member or its name; unknown or missing is value-add."""
    try:
        return InvestmentStrategy(strategy)
    except ValueError:
        return DEFAULT_STRATEGY


def get_strategy_thresholds(strategy: Any) -> StrategyThresholds:
    return STRATEGY_THRESHOLDS[resolve_strategy(strategy)]


def get_strategy_for_cap_rate(cap_rate: float) -> InvestmentStrategy:
    """Strategy that a market (comp) cap rate lines up with."""
    if cap_rate >= CORE_COMP_CAP_RATE:
        return InvestmentStrategy.core
    if cap_rate >= VALUE_ADD_COMP_CAP_RATE:
        return InvestmentStrategy.value_add
    return InvestmentStrategy.opportunistic


def evaluate_deal_decision(
    strategy: Any,
    cap_rate: float,
    average_cash_on_cash: float,
    irr: float,
    equity_multiple: float,
    dscr: float,
) -> DealDecision:
    """
    Score a deal against its strategy's minimums.

    Each metric passes when it meets or exceeds the minimum; a strategy
    without a cap rate minimum passes that line automatically.

    Args:
        strategy: InvestmentStrategy or its name (unknown names use value-add)
        cap_rate: Going-in cap rate (percent)
        average_cash_on_cash: Average cash-on-cash over the hold (percent)
        irr: Levered IRR (percent)
        equity_multiple: Equity multiple
        dscr: Debt service coverage ratio

    Returns:
        DealDecision: GO when every metric passes, REVIEW when at least three
        pass, NO-GO otherwise
    """
    resolved = resolve_strategy(strategy)
    thresholds = STRATEGY_THRESHOLDS[resolved]

    metrics = [
        DecisionMetric(
            name="cap_rate",
            actual=cap_rate,
            required=thresholds.cap_rate,
            passed=thresholds.cap_rate is None or cap_rate >= thresholds.cap_rate,
        ),
        DecisionMetric(
            name="average_cash_on_cash",
            actual=average_cash_on_cash,
            required=thresholds.cash_on_cash,
            passed=average_cash_on_cash >= thresholds.cash_on_cash,
        ),
        DecisionMetric(
            name="irr",
            actual=irr,
            required=thresholds.irr,
            passed=irr >= thresholds.irr,
        ),
        DecisionMetric(
            name="equity_multiple",
            actual=equity_multiple,
            required=thresholds.equity_multiple,
            passed=equity_multiple >= thresholds.equity_multiple,
        ),
        DecisionMetric(
            name="dscr",
            actual=dscr,
            required=thresholds.dscr,
            passed=dscr >= thresholds.dscr,
        ),
    ]

    pass_count = sum(1 for metric in metrics if metric.passed)
    if pass_count == len(metrics):
        verdict = DealVerdict.go
    elif pass_count >= REVIEW_MIN_PASSING:
        verdict = DealVerdict.review
    else:
        verdict = DealVerdict.no_go

    return DealDecision(
        strategy=resolved,
        verdict=verdict,
        pass_count=pass_count,
        metrics=metrics,
    )
