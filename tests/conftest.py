"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from underwriting.main import app
from underwriting.calculations.deal import DealInputs
from underwriting.calculations.projections import ProjectionInputs


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def projection_inputs():
    """Five-year hold on a $10M asset at 65% LTV."""
    return ProjectionInputs(
        initial_income=600000,
        initial_expenses=100000,
        income_growth_rate=3,
        expense_growth_rate=2,
        purchase_price=10000000,
        loan_amount=6500000,
        interest_rate=6.5,
        amortization_years=25,
        holding_period=5,
    )


@pytest.fixture
def industrial_deal():
    """Stabilized Inland Empire warehouse."""
    return DealInputs(
        potential_gross_income=1000000,
        vacancy_rate=5,
        other_income=20000,
        property_taxes=110000,
        insurance=25000,
        utilities=15000,
        management_fee_percent=3,
        repairs_maintenance=20000,
        reserves_capex=10000,
        other_expenses=5000,
        purchase_price=12000000,
        square_footage=100000,
        ltv_percent=60,
        interest_rate=6,
        amortization_years=25,
        closing_costs_percent=2,
        income_growth_rate=3,
        expense_growth_rate=2.5,
        holding_period=5,
        exit_cap_rate=6,
        selling_costs_percent=2,
    )
