"""
Expense Defaults

Suggested starting values for property taxes, insurance and utilities when a
new analysis is created. The rate tables are configuration passed in by the
caller; nothing in the calculation engine depends on them.
"""

import logging
import math
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel

from underwriting.calculations.validation import is_positive_number

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent / "data"
DEFAULT_RATES_FILE = DATA_DIR / "expense_rates.json"
FALLBACK_PROPERTY_TYPE = "other"


class ExpenseRateTables(BaseModel):
    """Lookup tables for default expense population."""

    default_tax_rate: float = 1.10  # Percent of purchase price
    county_tax_rates: Dict[str, float] = {}  # County -> effective tax rate %
    city_to_county: Dict[str, str] = {}
    insurance_rate_per_sf: Dict[str, float] = {}  # Property type -> $/SF/yr
    utility_rate_per_sf: Dict[str, float] = {}  # Property type -> $/SF/yr


def load_rate_tables(path: Optional[str] = None) -> ExpenseRateTables:
    """Load rate tables from a JSON file (defaults to the bundled tables)."""
    rates_file = Path(path) if path else DEFAULT_RATES_FILE
    logger.info(f"Loading expense rate tables from {rates_file}")
    raw = rates_file.read_text(encoding="utf-8")
    return ExpenseRateTables.model_validate_json(raw)


@lru_cache()
def get_default_rate_tables() -> ExpenseRateTables:
    """Get cached bundled rate tables."""
    return load_rate_tables()


def _round_amount(amount: float) -> int:
    return int(math.floor(amount + 0.5))


def get_tax_rate(city: Optional[str], tables: ExpenseRateTables) -> float:
    """Effective property tax rate (percent) for a city, via its county."""
    if city:
        county = tables.city_to_county.get(city.lower().strip())
        if county:
            return tables.county_tax_rates.get(county, tables.default_tax_rate)
    return tables.default_tax_rate


def get_default_property_taxes(
    purchase_price: float, city: Optional[str], tables: ExpenseRateTables
) -> int:
    """
    Default annual property taxes.

    Uses the county rate for known cities and the default rate otherwise.
    Returns 0 without a positive purchase price.
    """
    if not is_positive_number(purchase_price):
        return 0
    return _round_amount(purchase_price * (get_tax_rate(city, tables) / 100))


def _rate_for_type(
    rates: Dict[str, float], property_type: Optional[str]
) -> float:
    key = property_type.lower() if property_type else FALLBACK_PROPERTY_TYPE
    return rates.get(key, rates.get(FALLBACK_PROPERTY_TYPE, 0.0))


def get_default_insurance(
    building_sf: float, property_type: Optional[str], tables: ExpenseRateTables
) -> int:
    """Default annual insurance from building size and property type."""
    if not is_positive_number(building_sf):
        return 0
    rate = _rate_for_type(tables.insurance_rate_per_sf, property_type)
    return _round_amount(building_sf * rate)


def get_default_utilities(
    building_sf: float, property_type: Optional[str], tables: ExpenseRateTables
) -> int:
    """Default annual utilities from building size and property type."""
    if not is_positive_number(building_sf):
        return 0
    rate = _rate_for_type(tables.utility_rate_per_sf, property_type)
    return _round_amount(building_sf * rate)
