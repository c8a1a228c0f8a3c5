# goalsim/goals.py
"""
Goal and simulation input specifications.

Purpose
-------
Domain-level abstractions for the inputs of one simulation run:
- SimulationGoal: a net worth target with a calendar deadline
- SimulationInput: the immutable per-run configuration (cash flows, rates,
  goals, regime flag, withdrawal, seed)

Goal semantics
--------------
Goal i with amount b_i and deadline d_i is achieved on a path when

    ∃ t ≤ t_i :  W_t ≥ b_i,    t_i = months_between(start_date, d_i)

All goals are compared against the same net worth series W_t (joint
progress, no earmarked sub-accounts). Priority only orders goals for
presentation; the first goal after ordering is the primary goal.

Design Principles
-----------------
- Immutable specifications: frozen dataclasses
- Fail fast: every validation error raises InvalidInputError in
  __post_init__, before any simulation work
- Calendar-aware: deadlines resolve to month offsets from start_date
- Legacy single-goal fields fold into the goals list

Example
-------
>>> from datetime import date, datetime
>>> from goalsim.goals import SimulationGoal, SimulationInput
>>>
>>> sim_input = SimulationInput(
...     current_savings_rate=0.15,
...     monthly_income=500_000,
...     monthly_expenses=350_000,
...     current_net_worth=1_000_000,
...     goals=[SimulationGoal(amount=5_000_000, deadline=date(2029, 1, 1))],
...     expected_return_rate=0.10,
...     inflation_rate=0.05,
...     start_date=date(2026, 1, 1),
... )
>>> sim_input.goal_deadline_months
(36,)
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple
import math
import numbers

from .constants import (
    DEFAULT_INCOME_GROWTH_RATE,
    DEFAULT_TAX_RATE,
    MAX_GOALS,
    TIME_HORIZON_MONTHS,
)
from .exceptions import InvalidInputError
from .utils import months_between

__all__ = [
    "SimulationGoal",
    "SimulationInput",
    "normalize_goals",
]


# ---------------------------------------------------------------------------
# Goal Specification
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SimulationGoal:
    """
    Net worth target with a deadline.

    Parameters
    ----------
    amount : float
        Target net worth, must be > 0.
    deadline : datetime.date
        Date by which the target must be reached. Must be after the
        simulation start date (checked by SimulationInput). A datetime
        is reduced to its date.
    priority : int, optional
        Presentation order (1 = highest). Does not affect simulation.
    goal_id : str, optional
        Identifier echoed in per-goal results.
    name : str, optional
        Display name echoed in per-goal results.

    Examples
    --------
    >>> goal = SimulationGoal(amount=2_000_000, deadline=date(2027, 6, 1),
    ...                       priority=1, name="Emergency fund")
    >>> goal.resolve_month(date(2026, 1, 1))
    17
    """
    amount: float
    deadline: date
    priority: Optional[int] = None
    goal_id: Optional[str] = None
    name: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.deadline, datetime):
            object.__setattr__(self, "deadline", self.deadline.date())
        if not isinstance(self.amount, numbers.Real) or not math.isfinite(self.amount):
            raise InvalidInputError(f"goal amount must be a finite number, got {self.amount!r}")
        if self.amount <= 0:
            raise InvalidInputError(f"goal amount must be > 0, got {self.amount}")
        if not isinstance(self.deadline, date):
            raise InvalidInputError(
                f"goal deadline must be a datetime.date, got {type(self.deadline).__name__}"
            )

    def resolve_month(self, start_date: date) -> int:
        """Deadline as a month offset from start_date (minimum 1)."""
        return months_between(start_date, self.deadline)

    def __repr__(self) -> str:
        label = self.name or self.goal_id or "goal"
        return (
            f"SimulationGoal({label!r}, amount={self.amount:,.0f}, "
            f"deadline={self.deadline.isoformat()}, priority={self.priority})"
        )


def normalize_goals(goals: Sequence[SimulationGoal]) -> Tuple[SimulationGoal, ...]:
    """
    Order goals by priority and fill in ids, names and priorities.

    Goals without a priority sort after prioritized ones; ties keep their
    input order. Missing ids/names become "goal-<i>" / "Goal <i+1>" and a
    missing priority becomes its 1-based position after ordering.
    """
    indexed = sorted(
        enumerate(goals),
        key=lambda pair: (pair[1].priority is None, pair[1].priority or 0, pair[0]),
    )
    normalized = []
    for idx, (_, goal) in enumerate(indexed):
        normalized.append(replace(
            goal,
            goal_id=goal.goal_id if goal.goal_id is not None else f"goal-{idx}",
            name=goal.name if goal.name is not None else f"Goal {idx + 1}",
            priority=goal.priority if goal.priority is not None else idx + 1,
        ))
    return tuple(normalized)


# ---------------------------------------------------------------------------
# Simulation Input
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SimulationInput:
    """
    Immutable configuration of one simulation run.

    Parameters
    ----------
    current_savings_rate : float
        Fraction of monthly net cash flow saved, in [0, 1].
    monthly_income : float
        Monthly income (>= 0).
    current_net_worth : float
        Assets minus liabilities today. May be negative.
    expected_return_rate : float
        Expected annual nominal investment return.
    inflation_rate : float
        Annual inflation. Subtracted from the after-tax return (returns are
        real) and used as the expense growth rate when none is given.
    goals : sequence of SimulationGoal, optional
        1..MAX_GOALS goals. If omitted, `goal_amount` and `goal_deadline`
        define a single primary goal.
    monthly_expenses : float, optional
        Monthly expenses (>= 0). None means 0.
    goal_amount, goal_deadline : optional
        Legacy single-goal fields.
    income_growth_rate : float, optional
        Annual income growth. Default DEFAULT_INCOME_GROWTH_RATE.
    expense_growth_rate : float, optional
        Annual expense growth. Default `inflation_rate`.
    tax_rate_on_returns : float, optional
        Tax on investment returns in [0, 1). Default 0.
    enable_market_regimes : bool, default False
        Enable the bull/normal/bear regime model.
    monthly_withdrawal : float, optional
        Post-goal monthly drawdown (>= 0).
    random_seed : int, optional
        Seed for reproducible runs; any integer. None draws OS entropy per run.
    start_date : datetime.date, optional
        Simulation start. Defaults to today.

    Notes
    -----
    After construction `goals` is a tuple ordered by priority with ids and
    names filled in (see normalize_goals); `goals[0]` is the primary goal.
    """
    current_savings_rate: float
    monthly_income: float
    current_net_worth: float
    expected_return_rate: float
    inflation_rate: float
    goals: Optional[Sequence[SimulationGoal]] = None
    monthly_expenses: Optional[float] = None
    goal_amount: Optional[float] = None
    goal_deadline: Optional[date] = None
    income_growth_rate: Optional[float] = None
    expense_growth_rate: Optional[float] = None
    tax_rate_on_returns: Optional[float] = None
    enable_market_regimes: bool = False
    monthly_withdrawal: Optional[float] = None
    random_seed: Optional[int] = None
    start_date: date = field(default_factory=date.today)

    def __post_init__(self):
        """Validate rates and cash flows, then fold and normalize goals."""
        if isinstance(self.start_date, datetime):
            object.__setattr__(self, "start_date", self.start_date.date())
        if self.random_seed is not None and (
            isinstance(self.random_seed, bool) or not isinstance(self.random_seed, numbers.Integral)
        ):
            raise InvalidInputError(f"random_seed must be an integer, got {self.random_seed!r}")

        for name in ("current_savings_rate", "monthly_income", "current_net_worth",
                     "expected_return_rate", "inflation_rate"):
            value = getattr(self, name)
            if not isinstance(value, numbers.Real) or not math.isfinite(value):
                raise InvalidInputError(f"{name} must be a finite number, got {value!r}")

        if not (0.0 <= self.current_savings_rate <= 1.0):
            raise InvalidInputError(
                f"current_savings_rate must be in [0, 1], got {self.current_savings_rate}"
            )
        if self.monthly_income < 0:
            raise InvalidInputError(f"monthly_income must be >= 0, got {self.monthly_income}")
        if self.monthly_expenses is not None and self.monthly_expenses < 0:
            raise InvalidInputError(
                f"monthly_expenses must be >= 0, got {self.monthly_expenses}"
            )
        if self.monthly_withdrawal is not None and self.monthly_withdrawal < 0:
            raise InvalidInputError(
                f"monthly_withdrawal must be >= 0, got {self.monthly_withdrawal}"
            )
        if self.tax_rate_on_returns is not None and not (0.0 <= self.tax_rate_on_returns < 1.0):
            raise InvalidInputError(
                f"tax_rate_on_returns must be in [0, 1), got {self.tax_rate_on_returns}"
            )
        for name in ("income_growth_rate", "expense_growth_rate"):
            value = getattr(self, name)
            if value is not None and value <= -1.0:
                raise InvalidInputError(f"{name} must be > -1, got {value}")

        goals = self._fold_goals()
        for goal in goals:
            if goal.deadline <= self.start_date:
                raise InvalidInputError(
                    f"goal deadline {goal.deadline.isoformat()} must be after "
                    f"start_date {self.start_date.isoformat()}"
                )
        object.__setattr__(self, "goals", normalize_goals(goals))

    def _fold_goals(self) -> List[SimulationGoal]:
        if self.goals is not None and len(self.goals) > 0:
            goals = list(self.goals)
        elif self.goal_amount is not None and self.goal_deadline is not None:
            goals = [SimulationGoal(
                amount=self.goal_amount,
                deadline=self.goal_deadline,
                priority=1,
                goal_id="primary",
                name="Primary Goal",
            )]
        else:
            raise InvalidInputError(
                "at least one goal is required: pass `goals` or both "
                "`goal_amount` and `goal_deadline`"
            )
        if len(goals) > MAX_GOALS:
            raise InvalidInputError(
                f"at most {MAX_GOALS} goals are supported, got {len(goals)}"
            )
        for goal in goals:
            if not isinstance(goal, SimulationGoal):
                raise InvalidInputError(
                    f"goals must be SimulationGoal instances, got {type(goal).__name__}"
                )
        return goals

    # ------------------------------------------------------------ resolved

    @property
    def primary_goal(self) -> SimulationGoal:
        return self.goals[0]

    @property
    def goal_deadline_months(self) -> Tuple[int, ...]:
        """Deadline month offset for every goal, in goal order."""
        return tuple(g.resolve_month(self.start_date) for g in self.goals)

    @property
    def horizon_months(self) -> int:
        """Months simulated per path: longest deadline or longest horizon."""
        return max(max(self.goal_deadline_months), max(TIME_HORIZON_MONTHS.values()))

    @property
    def resolved_monthly_expenses(self) -> float:
        return float(self.monthly_expenses or 0.0)

    @property
    def resolved_income_growth_rate(self) -> float:
        if self.income_growth_rate is None:
            return DEFAULT_INCOME_GROWTH_RATE
        return float(self.income_growth_rate)

    @property
    def resolved_expense_growth_rate(self) -> float:
        if self.expense_growth_rate is None:
            return float(self.inflation_rate)
        return float(self.expense_growth_rate)

    @property
    def resolved_tax_rate(self) -> float:
        if self.tax_rate_on_returns is None:
            return DEFAULT_TAX_RATE
        return float(self.tax_rate_on_returns)

    @property
    def resolved_monthly_withdrawal(self) -> float:
        return float(self.monthly_withdrawal or 0.0)

    @property
    def base_annual_return(self) -> float:
        """After-tax real annual return: r·(1 - tax) - inflation."""
        return self.expected_return_rate * (1.0 - self.resolved_tax_rate) - self.inflation_rate

    def with_savings_rate(self, rate: float) -> "SimulationInput":
        """Copy of this input at a different savings rate."""
        return replace(self, current_savings_rate=rate)

    def __repr__(self) -> str:
        return (
            f"SimulationInput(rate={self.current_savings_rate:.2%}, "
            f"income={self.monthly_income:,.0f}, net_worth={self.current_net_worth:,.0f}, "
            f"goals={len(self.goals)}, regimes={self.enable_market_regimes}, "
            f"seed={self.random_seed})"
        )
