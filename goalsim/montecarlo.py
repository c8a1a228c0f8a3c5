"""
Monte Carlo aggregation module for GoalSim.

Purpose
-------
Runs N independent net worth paths for one SimulationInput and reduces
them to goal probabilities, horizon percentiles and achievement timing.

Aggregation
-----------
Over the valid (finite) paths V ⊆ {1..N}:

    P(goal)           = #{i ∈ V : goal achieved on i} / |V|
    median_net_worth  = Q_0.5 of W_h over V,  per horizon h
    p10 / p90         = Q_0.1 / Q_0.9 of W_h over V
    median_goal_month = Q_0.5 of achievement month over achieved paths only

with Q_p(x) = sorted(x)[floor(p·(n-1))] (no interpolation). If
|V| < min_valid_fraction · N the run raises NumericalInstabilityError.

Execution
---------
Path indices 0..N-1 are split into contiguous batches. Batches run in the
calling process or on a ProcessPoolExecutor (EngineConfig.n_workers > 1).
Each path draws from its own seed-derived stream, so both modes produce
identical results for the same seed.

Example
-------
>>> from goalsim.config import EngineConfig
>>> from goalsim.montecarlo import MonteCarloAggregator
>>> aggregator = MonteCarloAggregator(EngineConfig(n_workers=4))
>>> results = aggregator.run(sim_input, iterations=10_000)
>>> results.probability
0.7342
>>> results.to_frame()
"""

from __future__ import annotations
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import logging
import math
import os

import numpy as np
import pandas as pd

from .config import EngineConfig
from .constants import PERCENTILE_HIGH, PERCENTILE_LOW, TIME_HORIZONS
from .exceptions import ConfigurationError, NumericalInstabilityError
from .goals import SimulationInput
from .paths import PathBatch, PathSimulator
from .regimes import RegimeModel
from .utils import percentile_from_sorted

logger = logging.getLogger(__name__)

__all__ = [
    "GoalProbability",
    "MonteCarloAggregatedResults",
    "MonteCarloAggregator",
    "build_path_simulator",
]


BATCH_SIZE: int = 2_000


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GoalProbability:
    """Per-goal breakdown of a multi-goal run."""
    goal_id: str
    name: str
    amount: float
    probability: float
    median_month: Optional[int]


@dataclass(frozen=True)
class MonteCarloAggregatedResults:
    """
    Reduced output of one Monte Carlo run.

    Attributes
    ----------
    probability : float
        Share of valid paths reaching the primary goal by its deadline.
    median_net_worth : Dict[str, float]
        Median net worth per horizon.
    percentile10_by_horizon, percentile90_by_horizon : Dict[str, float]
        10th / 90th percentile net worth per horizon.
    median_goal_month : int, optional
        Median primary-goal achievement month over achieving paths.
        None when no path achieved it.
    iterations : int
        Requested iterations.
    valid_iterations : int
        Iterations left after discarding non-finite paths.
    all_goals_probability : float, optional
        Share of valid paths reaching every goal (multi-goal runs only).
    goal_results : Tuple[GoalProbability, ...], optional
        Per-goal probabilities and median months (multi-goal runs only).
    """
    probability: float
    median_net_worth: Dict[str, float]
    percentile10_by_horizon: Dict[str, float]
    percentile90_by_horizon: Dict[str, float]
    median_goal_month: Optional[int]
    iterations: int
    valid_iterations: int
    all_goals_probability: Optional[float] = None
    goal_results: Optional[Tuple[GoalProbability, ...]] = None

    def to_frame(self) -> pd.DataFrame:
        """
        Horizon percentiles as a DataFrame.

        Returns
        -------
        pd.DataFrame
            Index TIME_HORIZONS, columns ["p10", "median", "p90"].
        """
        return pd.DataFrame(
            {
                "p10": [self.percentile10_by_horizon[h] for h in TIME_HORIZONS],
                "median": [self.median_net_worth[h] for h in TIME_HORIZONS],
                "p90": [self.percentile90_by_horizon[h] for h in TIME_HORIZONS],
            },
            index=pd.Index(TIME_HORIZONS, name="horizon"),
        )

    def __repr__(self) -> str:
        return (
            f"MonteCarloAggregatedResults(probability={self.probability:.2%}, "
            f"valid={self.valid_iterations}/{self.iterations}, "
            f"median_goal_month={self.median_goal_month})"
        )


# ---------------------------------------------------------------------------
# Batch execution helpers
# ---------------------------------------------------------------------------

def build_path_simulator(config: EngineConfig) -> PathSimulator:
    """PathSimulator wired with the regime table and volatility from config."""
    model = RegimeModel(
        regimes=config.regime_table(),
        enabled=True,
        return_std_dev=config.return_std_dev,
    )
    return PathSimulator(model, withdrawal_trigger=config.withdrawal_trigger)


def _resolve_max_workers(max_workers: Optional[int], runs: int) -> int:
    """Bound pool size by requested max, run count and CPU availability."""
    if runs <= 1 or max_workers is None or max_workers <= 1:
        return 1
    return max(1, min(max_workers, runs, os.cpu_count() or 1))


def _chunk(n: int, size: int) -> List[range]:
    """Contiguous index ranges covering 0..n-1."""
    return [range(start, min(start + size, n)) for start in range(0, n, size)]


def _simulate_chunk(
    args: Tuple[EngineConfig, SimulationInput, range, int, Optional[float], bool],
) -> PathBatch:
    """Worker entry point: rebuilds the simulator from a picklable config."""
    config, sim_input, indices, entropy, savings_rate, clamp = args
    simulator = build_path_simulator(config)
    return simulator.simulate_batch(
        sim_input, indices, entropy,
        savings_rate=savings_rate, clamp_cash_flow=clamp,
    )


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------

class MonteCarloAggregator:
    """
    Runs Monte Carlo iterations and aggregates them.

    Parameters
    ----------
    config : EngineConfig, optional
        Engine configuration. Defaults to EngineConfig().

    Examples
    --------
    >>> aggregator = MonteCarloAggregator()
    >>> quick = aggregator.run(sim_input, iterations=1_000, savings_rate=0.2,
    ...                        clamp_cash_flow=False)
    >>> quick.median_net_worth["5yr"]
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.simulator = build_path_simulator(self.config)

    def run(
        self,
        sim_input: SimulationInput,
        iterations: Optional[int] = None,
        savings_rate: Optional[float] = None,
        clamp_cash_flow: bool = True,
    ) -> MonteCarloAggregatedResults:
        """
        Simulate `iterations` paths and aggregate them.

        Parameters
        ----------
        sim_input : SimulationInput
            Run configuration. `random_seed` fixes the streams; without it
            fresh OS entropy is drawn once for this run.
        iterations : int, optional
            Number of paths. Defaults to config.iterations.
        savings_rate : float, optional
            Override of the input's savings rate.
        clamp_cash_flow : bool, default True
            See PathSimulator.simulate_batch.

        Returns
        -------
        MonteCarloAggregatedResults

        Raises
        ------
        ConfigurationError
            If iterations < 1.
        NumericalInstabilityError
            If fewer than min_valid_fraction of paths stay finite.
        """
        iterations = self.config.iterations if iterations is None else int(iterations)
        if iterations < 1:
            raise ConfigurationError(f"iterations must be >= 1, got {iterations}")

        entropy = (
            sim_input.random_seed
            if sim_input.random_seed is not None
            else np.random.SeedSequence().entropy
        )
        batch = self._simulate(sim_input, iterations, entropy, savings_rate, clamp_cash_flow)

        valid = batch.valid()
        min_valid = math.ceil(self.config.min_valid_fraction * iterations)
        if valid.n_paths < min_valid:
            raise NumericalInstabilityError(
                f"Only {valid.n_paths}/{iterations} iterations produced finite net worth "
                f"(minimum {min_valid}). Check return volatility settings."
            )
        if valid.n_paths < iterations:
            logger.warning(
                "Discarded %d non-finite iterations out of %d",
                iterations - valid.n_paths, iterations,
            )

        return self._aggregate(sim_input, valid, iterations)

    def _simulate(
        self,
        sim_input: SimulationInput,
        iterations: int,
        entropy: int,
        savings_rate: Optional[float],
        clamp_cash_flow: bool,
    ) -> PathBatch:
        workers = _resolve_max_workers(self.config.n_workers, iterations)
        if workers > 1:
            # Several batches per worker keep every process busy
            size = max(1, math.ceil(iterations / (workers * 4)))
            chunks = _chunk(iterations, min(size, BATCH_SIZE))
            logger.debug("Running %d iterations on %d workers (%d batches)",
                         iterations, workers, len(chunks))
            args = [
                (self.config, sim_input, chunk, entropy, savings_rate, clamp_cash_flow)
                for chunk in chunks
            ]
            with ProcessPoolExecutor(max_workers=workers) as pool:
                batches = list(pool.map(_simulate_chunk, args))
        else:
            batches = [
                self.simulator.simulate_batch(
                    sim_input, chunk, entropy,
                    savings_rate=savings_rate, clamp_cash_flow=clamp_cash_flow,
                )
                for chunk in _chunk(iterations, BATCH_SIZE)
            ]
        return PathBatch.concat(batches)

    @staticmethod
    def _aggregate(
        sim_input: SimulationInput,
        valid: PathBatch,
        iterations: int,
    ) -> MonteCarloAggregatedResults:
        n_valid = valid.n_paths
        achieved = valid.goal_achieved

        median_nw: Dict[str, float] = {}
        p10: Dict[str, float] = {}
        p90: Dict[str, float] = {}
        for j, horizon in enumerate(TIME_HORIZONS):
            column = np.sort(valid.horizon_net_worth[:, j])
            median_nw[horizon] = float(percentile_from_sorted(column, 0.5))
            p10[horizon] = float(percentile_from_sorted(column, PERCENTILE_LOW))
            p90[horizon] = float(percentile_from_sorted(column, PERCENTILE_HIGH))

        goal_stats = [
            _goal_stats(valid.goal_month[:, g], achieved[:, g], n_valid)
            for g in range(len(sim_input.goals))
        ]
        probability, median_month = goal_stats[0]

        all_goals_probability = None
        goal_results = None
        if len(sim_input.goals) > 1:
            all_goals_probability = float(achieved.all(axis=1).sum() / n_valid)
            goal_results = tuple(
                GoalProbability(
                    goal_id=goal.goal_id,
                    name=goal.name,
                    amount=float(goal.amount),
                    probability=prob,
                    median_month=month,
                )
                for goal, (prob, month) in zip(sim_input.goals, goal_stats)
            )

        return MonteCarloAggregatedResults(
            probability=probability,
            median_net_worth=median_nw,
            percentile10_by_horizon=p10,
            percentile90_by_horizon=p90,
            median_goal_month=median_month,
            iterations=iterations,
            valid_iterations=n_valid,
            all_goals_probability=all_goals_probability,
            goal_results=goal_results,
        )


def _goal_stats(
    months: np.ndarray,
    achieved: np.ndarray,
    n_valid: int,
) -> Tuple[float, Optional[int]]:
    """(probability, median achievement month) for one goal column."""
    probability = float(achieved.sum() / n_valid)
    hit_months = np.sort(months[achieved])
    median = percentile_from_sorted(hit_months, 0.5)
    return probability, (int(median) if median is not None else None)
