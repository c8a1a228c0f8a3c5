"""
Type definitions for GoalSim.

Purpose
-------
TypedDict definitions for the plain-dict shapes produced by
SimulationOutput.to_dict(). Presentation and persistence services consume
these dicts; keys are camelCase to match the payloads those services expect.

Usage
-----
>>> from goalsim.types import SimulationOutputDict
>>>
>>> payload: SimulationOutputDict = engine.simulate(sim_input).to_dict()
>>> payload["currentPath"]["probability"]
0.62

Type Definitions
----------------
ConfidenceIntervalDict
    {"low", "high"} net worth band for one horizon

GoalResultDict
    Per-goal outcome: {"goalId", "goalName", "targetAmount", "probability", "achieveGoalDate"}

PathResultDict / OptimizedPathResultDict
    Current and optimized path outcomes

MetadataDict
    {"iterations", "durationMs", "simulatedAt", "currency"}

SimulationOutputDict
    Full comparison payload
"""

from typing import Dict, List, Optional
from typing_extensions import TypedDict, NotRequired

__all__ = [
    "ConfidenceIntervalDict",
    "GoalResultDict",
    "PathResultDict",
    "OptimizedPathResultDict",
    "MetadataDict",
    "SimulationOutputDict",
]


class ConfidenceIntervalDict(TypedDict):
    """
    10th/90th percentile net worth band at one horizon.

    Examples
    --------
    >>> band: ConfidenceIntervalDict = {"low": 3_400_000.0, "high": 4_050_000.0}
    """

    low: float
    high: float


class GoalResultDict(TypedDict):
    """
    Outcome of one goal in a multi-goal simulation.

    Attributes
    ----------
    goalId : str
    goalName : str
    targetAmount : float
    probability : float
        Share of valid iterations reaching the goal by its deadline.
    achieveGoalDate : str or None
        ISO date of the median achievement month, None if never achieved.
    """

    goalId: str
    goalName: str
    targetAmount: float
    probability: float
    achieveGoalDate: Optional[str]


class PathResultDict(TypedDict):
    """
    Outcome of one savings path (current or optimized).

    `allGoalsProbability` and `goalResults` are present only for
    multi-goal simulations.
    """

    probability: float
    projectedNetWorth: Dict[str, float]
    achieveGoalDate: Optional[str]
    confidenceIntervals: Dict[str, ConfidenceIntervalDict]
    allGoalsProbability: NotRequired[float]
    goalResults: NotRequired[List[GoalResultDict]]


class OptimizedPathResultDict(PathResultDict):
    """Optimized path outcome plus the savings rate that produced it."""

    requiredSavingsRate: float


class MetadataDict(TypedDict):
    """
    Run metadata.

    Examples
    --------
    >>> meta: MetadataDict = {
    ...     "iterations": 10_000,
    ...     "durationMs": 812,
    ...     "simulatedAt": "2026-01-01T09:30:00+00:00",
    ...     "currency": "NGN",
    ... }
    """

    iterations: int
    durationMs: int
    simulatedAt: str
    currency: str


class SimulationOutputDict(TypedDict):
    """Current vs optimized comparison handed to presentation services."""

    currentPath: PathResultDict
    optimizedPath: OptimizedPathResultDict
    wealthDifference: Dict[str, float]
    metadata: MetadataDict
