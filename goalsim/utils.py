"""General utilities for GoalSim

Contents
--------
- Rate conversions (annual -> monthly)
- Calendar helpers (months_between, add_months)
- Order statistics (percentile_from_sorted)
"""

from __future__ import annotations

import math
from datetime import date
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from .constants import MONTHS_PER_YEAR

__all__ = [
    # Rates
    "annual_to_monthly_simple",
    "monthly_volatility",
    # Calendar
    "months_between",
    "add_months",
    # Order statistics
    "percentile_from_sorted",
]

# ---------------------------------------------------------------------------
# Rate conversions (simple, not compounded)
# ---------------------------------------------------------------------------

def annual_to_monthly_simple(r_annual: float) -> float:
    """Convert an annual rate to a monthly one by simple division: r_a / 12.

    The simulator compounds monthly on top of this, so an annual growth
    rate g becomes (1 + g/12) ** 12 - 1 effective per year.
    """
    return r_annual / MONTHS_PER_YEAR


def monthly_volatility(sigma_annual: float) -> float:
    """Scale an annual standard deviation to monthly: sigma_a / sqrt(12)."""
    return sigma_annual / math.sqrt(MONTHS_PER_YEAR)


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------

def months_between(start: date, end: date) -> int:
    """Whole calendar months from *start* to *end* (day of month ignored).

    Same convention as the month offsets used for goal deadlines:
    (end.year - start.year) * 12 + (end.month - start.month), floored at 1
    so a deadline later in the starting month still gets one month of
    simulation.
    """
    delta = (end.year - start.year) * 12 + (end.month - start.month)
    return max(1, delta)


def add_months(start: date, months: int) -> date:
    """Shift *start* by *months* calendar months (end-of-month aware)."""
    return (pd.Timestamp(start) + pd.DateOffset(months=int(months))).date()


# ---------------------------------------------------------------------------
# Order statistics
# ---------------------------------------------------------------------------

def percentile_from_sorted(sorted_vals: Sequence[float] | np.ndarray, p: float) -> Optional[float]:
    """Return the *p*-quantile (p in [0, 1]) of a pre-sorted sequence.

    Uses index floor(p * (n - 1)) without interpolation so results are
    always an observed value. Returns None for an empty sequence.

    Examples
    --------
    >>> percentile_from_sorted([1, 2, 3, 4], 0.5)
    2
    >>> percentile_from_sorted([1, 2, 3, 4], 0.9)
    3
    """
    n = len(sorted_vals)
    if n == 0:
        return None
    if not (0.0 <= p <= 1.0):
        raise ValueError(f"p must be in [0, 1] (got {p}).")
    idx = int(math.floor(p * (n - 1)))
    return sorted_vals[idx]
