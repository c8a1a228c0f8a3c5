"""
Global constants for GoalSim.

Purpose
-------
Centralizes default values and magic numbers used throughout the GoalSim
codebase: Monte Carlo iteration counts, savings-rate search bounds, return
volatility and the projection horizons.

Usage
-----
>>> from goalsim.constants import ITERATIONS, TIME_HORIZON_MONTHS
>>>
>>> results = aggregator.run(sim_input, iterations=ITERATIONS)
>>> TIME_HORIZON_MONTHS["5yr"]
60

Categories
----------
- Simulation: Monte Carlo iteration counts, return volatility
- Optimization: Savings-rate bounds, target probability, tolerances
- Inputs: Goal limits and default growth/tax rates
- Time: Projection horizons
"""

from types import MappingProxyType
from typing import Mapping, Tuple

__all__ = [
    # Simulation
    "ITERATIONS",
    "OPTIMIZATION_ITERATIONS",
    "RETURN_STD_DEV",
    "MIN_VALID_FRACTION",
    # Optimization
    "MIN_SAVINGS_RATE",
    "MAX_SAVINGS_RATE",
    "TARGET_PROBABILITY",
    "OPTIMIZATION_TOLERANCE",
    "MAX_OPTIMIZATION_ITERATIONS",
    # Inputs
    "MAX_GOALS",
    "DEFAULT_INCOME_GROWTH_RATE",
    "DEFAULT_TAX_RATE",
    "CACHE_TTL_SECONDS",
    # Time
    "MONTHS_PER_YEAR",
    "TIME_HORIZONS",
    "TIME_HORIZON_MONTHS",
    "PERCENTILE_LOW",
    "PERCENTILE_HIGH",
]


# =============================================================================
# Simulation Defaults
# =============================================================================

ITERATIONS: int = 10_000
"""Monte Carlo iterations for final (reported) results."""

OPTIMIZATION_ITERATIONS: int = 1_000
"""Iterations per optimizer probe (faster, less accurate)."""

RETURN_STD_DEV: float = 0.15
"""Annual standard deviation of investment returns."""

MIN_VALID_FRACTION: float = 0.5
"""Minimum share of requested iterations that must stay finite."""


# =============================================================================
# Optimization Defaults
# =============================================================================

MIN_SAVINGS_RATE: float = 0.01
"""Lower bound of the savings-rate search."""

MAX_SAVINGS_RATE: float = 0.35
"""Maximum recommended savings rate (upper bound of the search)."""

TARGET_PROBABILITY: float = 0.85
"""Goal probability the optimized path aims for."""

OPTIMIZATION_TOLERANCE: float = 0.005
"""Binary search stops once the bracket is narrower than this."""

MAX_OPTIMIZATION_ITERATIONS: int = 20
"""Hard cap on optimizer probes."""


# =============================================================================
# Input Defaults
# =============================================================================

MAX_GOALS: int = 5
"""Maximum number of goals tracked in one simulation."""

DEFAULT_INCOME_GROWTH_RATE: float = 0.03
"""Annual income growth used when the input leaves it unset."""

DEFAULT_TAX_RATE: float = 0.0
"""Tax rate on investment returns used when the input leaves it unset."""

CACHE_TTL_SECONDS: int = 300
"""How long a caller may reuse a SimulationOutput (5 minutes)."""


# =============================================================================
# Time Horizons
# =============================================================================

MONTHS_PER_YEAR: int = 12
"""Number of months in a year."""

TIME_HORIZONS: Tuple[str, ...] = ("6mo", "1yr", "5yr", "10yr", "20yr")
"""Projection checkpoints, shortest first."""

TIME_HORIZON_MONTHS: Mapping[str, int] = MappingProxyType({
    "6mo": 6,
    "1yr": 12,
    "5yr": 60,
    "10yr": 120,
    "20yr": 240,
})
"""Month mark at which net worth is snapshotted for each horizon."""

PERCENTILE_LOW: float = 0.10
"""Lower bound of the reported confidence interval."""

PERCENTILE_HIGH: float = 0.90
"""Upper bound of the reported confidence interval."""
