"""
Country-level economic defaults for GoalSim.

Purpose
-------
Resolves inflation, expected return and income growth for a country code
so callers only need to supply what they know. Lookup is case-insensitive
and never fails: unknown or missing countries get the DEFAULT row.

Example
-------
>>> from goalsim.economics import resolve_economic_defaults, build_simulation_input
>>> resolve_economic_defaults("kenya").inflation_rate
0.06
>>> sim_input = build_simulation_input(
...     "NIGERIA",
...     current_savings_rate=0.15,
...     monthly_income=500_000,
...     monthly_expenses=350_000,
...     current_net_worth=1_000_000,
...     goal_amount=5_000_000,
...     goal_deadline=date(2029, 1, 1),
... )
>>> sim_input.expected_return_rate
0.1
"""

from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .goals import SimulationInput

__all__ = [
    "EconomicDefaults",
    "ECONOMIC_DEFAULTS",
    "resolve_economic_defaults",
    "build_simulation_input",
]


@dataclass(frozen=True)
class EconomicDefaults:
    """Annual inflation, expected investment return and income growth."""
    inflation_rate: float
    expected_return: float
    income_growth_rate: float


ECONOMIC_DEFAULTS: Mapping[str, EconomicDefaults] = MappingProxyType({
    "NIGERIA": EconomicDefaults(inflation_rate=0.05, expected_return=0.10, income_growth_rate=0.05),
    "GHANA": EconomicDefaults(inflation_rate=0.08, expected_return=0.12, income_growth_rate=0.04),
    "KENYA": EconomicDefaults(inflation_rate=0.06, expected_return=0.09, income_growth_rate=0.04),
    "SOUTH_AFRICA": EconomicDefaults(inflation_rate=0.05, expected_return=0.08, income_growth_rate=0.03),
    "USA": EconomicDefaults(inflation_rate=0.02, expected_return=0.07, income_growth_rate=0.03),
    "UK": EconomicDefaults(inflation_rate=0.02, expected_return=0.06, income_growth_rate=0.025),
    "DEFAULT": EconomicDefaults(inflation_rate=0.05, expected_return=0.07, income_growth_rate=0.03),
})


def resolve_economic_defaults(country: Optional[str] = None) -> EconomicDefaults:
    """
    Economic defaults for `country`.

    Parameters
    ----------
    country : str, optional
        Country code, case-insensitive ("nigeria", "South_Africa", ...).

    Returns
    -------
    EconomicDefaults
        The country's row, or the DEFAULT row for None/unknown codes.
    """
    if not country:
        return ECONOMIC_DEFAULTS["DEFAULT"]
    return ECONOMIC_DEFAULTS.get(country.strip().upper(), ECONOMIC_DEFAULTS["DEFAULT"])


def build_simulation_input(country: Optional[str] = None, **fields: Any) -> SimulationInput:
    """
    SimulationInput with economic fields filled from the country defaults.

    Fields passed explicitly (and not None) win over the resolved defaults:
    expected_return_rate, inflation_rate, income_growth_rate. All other
    SimulationInput fields are passed through unchanged.

    Raises
    ------
    InvalidInputError
        If the merged fields fail SimulationInput validation.
    """
    defaults = resolve_economic_defaults(country)
    resolved = {
        "expected_return_rate": defaults.expected_return,
        "inflation_rate": defaults.inflation_rate,
        "income_growth_rate": defaults.income_growth_rate,
    }
    resolved.update({k: v for k, v in fields.items() if v is not None})
    return SimulationInput(**resolved)
