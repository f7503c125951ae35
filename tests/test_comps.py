"""
Tests for comparable sales signals.
"""

import pytest

from underwriting.calculations.comps import (
    ComparableSale,
    benchmark_price_per_sqft,
    suggest_exit_cap_rate,
    suggest_strategy,
)
from underwriting.calculations.thresholds import InvestmentStrategy


@pytest.fixture
def warehouse_comps():
    """Three Inland Empire warehouse trades."""
    return [
        ComparableSale(sale_price=9000000, square_footage=60000, cap_rate=5.8),
        ComparableSale(sale_price=15000000, price_per_sqft=180, cap_rate=6.2),
        ComparableSale(sale_price=4000000, square_footage=25000),
    ]


class TestExitCapRate:
    """Test exit cap rate suggestion."""

    def test_average_of_reported_cap_rates(self, warehouse_comps):
        assert suggest_exit_cap_rate(warehouse_comps) == pytest.approx(6.0)

    def test_ignores_missing_and_non_positive(self):
        comps = [
            ComparableSale(cap_rate=7),
            ComparableSale(cap_rate=0),
            ComparableSale(cap_rate=None),
            ComparableSale(cap_rate=-1),
        ]
        assert suggest_exit_cap_rate(comps) == 7

    def test_no_cap_rates(self):
        assert suggest_exit_cap_rate([]) is None
        assert suggest_exit_cap_rate([ComparableSale(sale_price=1)]) is None


class TestStrategy:
    """Test strategy suggested by comps."""

    def test_value_add_market(self, warehouse_comps):
        assert suggest_strategy(warehouse_comps) == InvestmentStrategy.value_add

    def test_core_market(self):
        comps = [ComparableSale(cap_rate=6.5), ComparableSale(cap_rate=7.5)]
        assert suggest_strategy(comps) == InvestmentStrategy.core

    def test_opportunistic_market(self):
        assert suggest_strategy([ComparableSale(cap_rate=4.5)]) == (
            InvestmentStrategy.opportunistic
        )

    def test_no_comps(self):
        assert suggest_strategy([]) is None


class TestPriceBenchmark:
    """Test price per square foot band."""

    def test_benchmark(self, warehouse_comps):
        benchmark = benchmark_price_per_sqft(warehouse_comps)
        assert benchmark.min == pytest.approx(150)
        assert benchmark.max == pytest.approx(180)
        assert benchmark.avg == pytest.approx((150 + 180 + 160) / 3)
        assert benchmark.comp_count == 3

    def test_reported_price_per_sqft_wins(self):
        comp = ComparableSale(
            sale_price=1000000, square_footage=10000, price_per_sqft=90
        )
        assert benchmark_price_per_sqft([comp]).avg == 90

    def test_comps_without_size_are_skipped(self):
        comps = [
            ComparableSale(sale_price=1000000),
            ComparableSale(sale_price=1000000, square_footage=0),
        ]
        assert benchmark_price_per_sqft(comps) is None

    def test_to_dict(self, warehouse_comps):
        assert set(benchmark_price_per_sqft(warehouse_comps).to_dict()) == {
            "min",
            "avg",
            "max",
            "comp_count",
        }
