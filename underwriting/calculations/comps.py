"""
Comparable Sales

Market signals drawn from comparable sales: an exit cap rate suggestion,
the strategy that cap rate points to, and a price per square foot band.
"""

from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional

from underwriting.calculations.thresholds import (
    InvestmentStrategy,
    get_strategy_for_cap_rate,
)
from underwriting.calculations.validation import is_positive_number


@dataclass
class ComparableSale:
    """A closed sale used as a comp. Cap rate is a whole-number percent."""

    sale_price: Optional[float] = None
    square_footage: Optional[float] = None
    price_per_sqft: Optional[float] = None
    cap_rate: Optional[float] = None


@dataclass
class PriceBenchmark:
    """Price per square foot range across comps."""

    min: float
    avg: float
    max: float
    comp_count: int

    def to_dict(self) -> Dict:
        return asdict(self)


def _comp_price_per_sqft(comp: ComparableSale) -> Optional[float]:
    """Reported price/SF, or sale price over square footage when absent."""
    if is_positive_number(comp.price_per_sqft):
        return comp.price_per_sqft
    if is_positive_number(comp.sale_price) and is_positive_number(comp.square_footage):
        return comp.sale_price / comp.square_footage
    return None


def suggest_exit_cap_rate(comps: Iterable[ComparableSale]) -> Optional[float]:
    """
    Average cap rate across comps that report a positive one.

    Returns:
        Suggested exit cap rate (percent), or None with no usable comps
    """
    cap_rates = [c.cap_rate for c in comps if is_positive_number(c.cap_rate)]
    if not cap_rates:
        return None
    return sum(cap_rates) / len(cap_rates)


def suggest_strategy(comps: Iterable[ComparableSale]) -> Optional[InvestmentStrategy]:
    """Strategy the comps' average cap rate lines up with."""
    cap_rate = suggest_exit_cap_rate(comps)
    if cap_rate is None:
        return None
    return get_strategy_for_cap_rate(cap_rate)


def benchmark_price_per_sqft(
    comps: Iterable[ComparableSale],
) -> Optional[PriceBenchmark]:
    """Min, average and max price per square foot, or None with no usable comps."""
    prices: List[float] = []
    for comp in comps:
        price = _comp_price_per_sqft(comp)
        if price is not None:
            prices.append(price)

    if not prices:
        return None

    return PriceBenchmark(
        min=min(prices),
        avg=sum(prices) / len(prices),
        max=max(prices),
        comp_count=len(prices),
    )
