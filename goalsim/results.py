"""
Result containers for GoalSim.

Purpose
-------
Immutable, presentation-ready views of Monte Carlo output:
- PathResult: outcome of simulating one savings rate
- OptimizedPathResult: PathResult plus the required savings rate
- SimulationOutput: current vs optimized comparison with metadata

Month offsets from the aggregator are turned into calendar dates relative
to SimulationInput.start_date, and per-horizon percentiles into
ConfidenceInterval bands. `to_dict()` methods return JSON-friendly dicts
(see types.py).
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Optional, Tuple

import pandas as pd

from .constants import TIME_HORIZONS
from .goals import SimulationInput
from .montecarlo import MonteCarloAggregatedResults
from .types import (
    GoalResultDict,
    MetadataDict,
    OptimizedPathResultDict,
    PathResultDict,
    SimulationOutputDict,
)
from .utils import add_months

__all__ = [
    "ConfidenceInterval",
    "GoalPathResult",
    "PathResult",
    "OptimizedPathResult",
    "SimulationMetadata",
    "SimulationOutput",
]


def _month_to_date(start_date: date, month: Optional[int]) -> Optional[date]:
    return None if month is None else add_months(start_date, month)


def _iso(value: Optional[date]) -> Optional[str]:
    return None if value is None else value.isoformat()


@dataclass(frozen=True)
class ConfidenceInterval:
    """p10 (`low`) to p90 (`high`) net worth band."""
    low: float
    high: float


@dataclass(frozen=True)
class GoalPathResult:
    """Outcome of one goal on one path."""
    goal_id: str
    name: str
    target_amount: float
    probability: float
    achieve_date: Optional[date]

    def to_dict(self) -> GoalResultDict:
        return {
            "goalId": self.goal_id,
            "goalName": self.name,
            "targetAmount": self.target_amount,
            "probability": self.probability,
            "achieveGoalDate": _iso(self.achieve_date),
        }


@dataclass(frozen=True)
class PathResult:
    """
    Outcome of simulating one savings path.

    Attributes
    ----------
    probability : float
        Probability of reaching the primary goal by its deadline.
    projected_net_worth : Dict[str, float]
        Median net worth per horizon.
    achieve_goal_date : datetime.date, optional
        start_date + median achievement month of the primary goal.
    confidence_intervals : Dict[str, ConfidenceInterval]
        p10/p90 band per horizon.
    all_goals_probability : float, optional
        Probability of reaching every goal (multi-goal only).
    goal_results : Tuple[GoalPathResult, ...], optional
        Per-goal outcomes (multi-goal only).
    """
    probability: float
    projected_net_worth: Dict[str, float]
    achieve_goal_date: Optional[date]
    confidence_intervals: Dict[str, ConfidenceInterval]
    all_goals_probability: Optional[float]
    goal_results: Optional[Tuple[GoalPathResult, ...]]

    @staticmethod
    def _fields_from(results: MonteCarloAggregatedResults, sim_input: SimulationInput) -> dict:
        goal_results = None
        if results.goal_results is not None:
            goal_results = tuple(
                GoalPathResult(
                    goal_id=g.goal_id,
                    name=g.name,
                    target_amount=g.amount,
                    probability=g.probability,
                    achieve_date=_month_to_date(sim_input.start_date, g.median_month),
                )
                for g in results.goal_results
            )
        return dict(
            probability=results.probability,
            projected_net_worth=dict(results.median_net_worth),
            achieve_goal_date=_month_to_date(sim_input.start_date, results.median_goal_month),
            confidence_intervals={
                h: ConfidenceInterval(
                    low=results.percentile10_by_horizon[h],
                    high=results.percentile90_by_horizon[h],
                )
                for h in TIME_HORIZONS
            },
            all_goals_probability=results.all_goals_probability,
            goal_results=goal_results,
        )

    @classmethod
    def from_aggregate(
        cls,
        results: MonteCarloAggregatedResults,
        sim_input: SimulationInput,
    ) -> "PathResult":
        """Build from aggregator output, resolving months to dates."""
        return cls(**cls._fields_from(results, sim_input))

    def to_dict(self) -> PathResultDict:
        data: PathResultDict = {
            "probability": self.probability,
            "projectedNetWorth": dict(self.projected_net_worth),
            "achieveGoalDate": _iso(self.achieve_goal_date),
            "confidenceIntervals": {
                h: {"low": ci.low, "high": ci.high}
                for h, ci in self.confidence_intervals.items()
            },
        }
        if self.all_goals_probability is not None:
            data["allGoalsProbability"] = self.all_goals_probability
        if self.goal_results is not None:
            data["goalResults"] = [g.to_dict() for g in self.goal_results]
        return data


@dataclass(frozen=True)
class OptimizedPathResult(PathResult):
    """PathResult at the savings rate found by the optimizer."""
    required_savings_rate: float

    @classmethod
    def from_aggregate(
        cls,
        results: MonteCarloAggregatedResults,
        sim_input: SimulationInput,
        required_savings_rate: float = 0.0,
    ) -> "OptimizedPathResult":
        return cls(
            **cls._fields_from(results, sim_input),
            required_savings_rate=float(required_savings_rate),
        )

    def to_dict(self) -> OptimizedPathResultDict:
        data = super().to_dict()
        data["requiredSavingsRate"] = self.required_savings_rate
        return data


@dataclass(frozen=True)
class SimulationMetadata:
    iterations: int
    duration_ms: int
    simulated_at: datetime
    currency: str

    def to_dict(self) -> MetadataDict:
        return {
            "iterations": self.iterations,
            "durationMs": self.duration_ms,
            "simulatedAt": self.simulated_at.isoformat(),
            "currency": self.currency,
        }


@dataclass(frozen=True)
class SimulationOutput:
    """
    Current path vs optimized path comparison.

    Attributes
    ----------
    current_path : PathResult
    optimized_path : OptimizedPathResult
    wealth_difference : Dict[str, float]
        Optimized minus current median net worth per horizon.
    metadata : SimulationMetadata

    Examples
    --------
    >>> output = engine.simulate(sim_input, currency="NGN")
    >>> output.horizon_table()
    >>> output.to_dict()["optimizedPath"]["requiredSavingsRate"]
    0.1875
    """
    current_path: PathResult
    optimized_path: OptimizedPathResult
    wealth_difference: Dict[str, float]
    metadata: SimulationMetadata

    def to_dict(self) -> SimulationOutputDict:
        return {
            "currentPath": self.current_path.to_dict(),
            "optimizedPath": self.optimized_path.to_dict(),
            "wealthDifference": dict(self.wealth_difference),
            "metadata": self.metadata.to_dict(),
        }

    def horizon_table(self) -> pd.DataFrame:
        """
        Per-horizon comparison.

        Returns
        -------
        pd.DataFrame
            Index TIME_HORIZONS, columns current/optimized median, p10, p90
            and the wealth difference.
        """
        current, optimized = self.current_path, self.optimized_path
        return pd.DataFrame(
            {
                "current_p10": [current.confidence_intervals[h].low for h in TIME_HORIZONS],
                "current_median": [current.projected_net_worth[h] for h in TIME_HORIZONS],
                "current_p90": [current.confidence_intervals[h].high for h in TIME_HORIZONS],
                "optimized_p10": [optimized.confidence_intervals[h].low for h in TIME_HORIZONS],
                "optimized_median": [optimized.projected_net_worth[h] for h in TIME_HORIZONS],
                "optimized_p90": [optimized.confidence_intervals[h].high for h in TIME_HORIZONS],
                "wealth_difference": [self.wealth_difference[h] for h in TIME_HORIZONS],
            },
            index=pd.Index(TIME_HORIZONS, name="horizon"),
        )
