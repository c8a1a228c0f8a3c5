"""
Savings-rate optimization module for GoalSim.

Purpose
-------
Finds the minimum monthly savings rate whose goal probability reaches a
target, by binary search over Monte Carlo probes.

Mathematical Framework
----------------------
    s* = min s ∈ [s_min, s_max]  s.t.  P̂_N(goal | s) ≥ p_target

where P̂_N is the Monte Carlo estimate from N = optimization_iterations
paths. The search assumes P̂ is non-decreasing in s, which holds exactly
when every probe reuses the same random streams (common random numbers):
the optimizer pins the run seed once and each probe replays it.

Algorithm
---------
1. Probe s_max. If P̂(s_max) < p_target, probe s_min: with negative net
   cash flow saving more loses more, so s_min may still reach the target.
   Return s_min if it does, otherwise s_max (best effort).
2. low, high = s_min, s_max
3. While high - low ≥ tolerance and probes < max_iterations:
   a. mid = (low + high) / 2
   b. P̂(mid) ≥ p_target → high = mid (record as best)
   c. otherwise           → low = mid
4. Re-run the best rate with the full iteration count; that run is the
   reported result.

Non-convergence within the probe budget is not an error: the best rate
found so far is returned and the trace records `converged=False`.

Example
-------
>>> from goalsim.montecarlo import MonteCarloAggregator
>>> from goalsim.optimization import SavingsRateOptimizer
>>> optimizer = SavingsRateOptimizer(MonteCarloAggregator())
>>> optimized = optimizer.find_required_rate(sim_input)
>>> optimized.required_savings_rate
0.184375
>>> optimizer.trace.to_frame()
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import List, Optional
import logging
import time

import numpy as np
import pandas as pd

from .config import EngineConfig
from .goals import SimulationInput
from .montecarlo import MonteCarloAggregator
from .results import OptimizedPathResult

logger = logging.getLogger(__name__)

__all__ = [
    "OptimizationProbe",
    "OptimizationTrace",
    "SavingsRateOptimizer",
]


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OptimizationProbe:
    """One Monte Carlo evaluation during the search."""
    rate: float
    probability: float


@dataclass
class OptimizationTrace:
    """
    Record of an optimizer run.

    Attributes
    ----------
    probes : List[OptimizationProbe]
        Evaluations in order, including the initial max-rate probe.
    converged : bool
        True when the bracket shrank below tolerance, or when the
        max-rate probe already missed the target (nothing to search).
    target_reached : bool
        Whether any probe reached the target probability.
    solve_time : float
        Seconds spent on probes and the final run.
    """
    probes: List[OptimizationProbe] = field(default_factory=list)
    converged: bool = False
    target_reached: bool = False
    solve_time: float = 0.0

    @property
    def n_probes(self) -> int:
        return len(self.probes)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "rate": [p.rate for p in self.probes],
                "probability": [p.probability for p in self.probes],
            },
            index=pd.RangeIndex(1, len(self.probes) + 1, name="probe"),
        )


# ---------------------------------------------------------------------------
# Optimizer
# ---------------------------------------------------------------------------

class SavingsRateOptimizer:
    """
    Binary search for the minimum savings rate reaching the target probability.

    Parameters
    ----------
    aggregator : MonteCarloAggregator
        Runs the Monte Carlo probes.
    config : EngineConfig, optional
        Search bounds, target, tolerance and iteration counts. Defaults to
        the aggregator's config.

    Attributes
    ----------
    trace : OptimizationTrace, optional
        Diagnostics of the last `find_required_rate` call.

    Examples
    --------
    >>> config = EngineConfig(target_probability=0.9, optimization_iterations=500)
    >>> optimizer = SavingsRateOptimizer(MonteCarloAggregator(config))
    >>> result = optimizer.find_required_rate(sim_input)
    >>> optimizer.trace.n_probes
    7
    """

    def __init__(
        self,
        aggregator: MonteCarloAggregator,
        config: Optional[EngineConfig] = None,
    ):
        if not isinstance(aggregator, MonteCarloAggregator):
            raise TypeError(
                f"aggregator must be MonteCarloAggregator, got {type(aggregator)}"
            )
        self.aggregator = aggregator
        self.config = config or aggregator.config
        self.trace: Optional[OptimizationTrace] = None

    def _probe(
        self,
        sim_input: SimulationInput,
        rate: float,
        trace: OptimizationTrace,
    ) -> float:
        results = self.aggregator.run(
            sim_input,
            iterations=self.config.optimization_iterations,
            savings_rate=rate,
            clamp_cash_flow=False,
        )
        trace.probes.append(OptimizationProbe(rate=rate, probability=results.probability))
        logger.debug(
            "[Probe %d] rate=%.4f -> probability=%.4f",
            trace.n_probes, rate, results.probability,
        )
        return results.probability

    def find_required_rate(self, sim_input: SimulationInput) -> OptimizedPathResult:
        """
        Minimum savings rate reaching the target probability.

        Parameters
        ----------
        sim_input : SimulationInput
            Run configuration. Its own savings rate is ignored.

        Returns
        -------
        OptimizedPathResult
            Result of a full-size run at the found rate. The rate lies in
            [min_savings_rate, max_savings_rate]; it is max_savings_rate
            when neither bound reaches the target.
        """
        cfg = self.config
        start = time.perf_counter()
        trace = OptimizationTrace()

        # Probes share one seed so they see the same return paths
        if sim_input.random_seed is None:
            sim_input = replace(sim_input, random_seed=np.random.SeedSequence().entropy)

        if self._probe(sim_input, cfg.max_savings_rate, trace) < cfg.target_probability:
            trace.converged = True
            if (
                trace.n_probes < cfg.max_optimization_iterations
                and self._probe(sim_input, cfg.min_savings_rate, trace) >= cfg.target_probability
            ):
                logger.info(
                    "Target %.0f%% reached at min savings rate %.1f%% but not at max; "
                    "net cash flow is negative",
                    cfg.target_probability * 100, cfg.min_savings_rate * 100,
                )
                best_rate = cfg.min_savings_rate
                trace.target_reached = True
            else:
                logger.info(
                    "Target %.0f%% not reachable at max savings rate %.1f%%; using max rate",
                    cfg.target_probability * 100, cfg.max_savings_rate * 100,
                )
                best_rate = cfg.max_savings_rate
        else:
            trace.target_reached = True
            low, high = cfg.min_savings_rate, cfg.max_savings_rate
            best_rate = high
            while high - low >= cfg.optimization_tolerance and trace.n_probes < cfg.max_optimization_iterations:
                mid = (low + high) / 2
                if self._probe(sim_input, mid, trace) >= cfg.target_probability:
                    best_rate = mid
                    high = mid
                else:
                    low = mid
            trace.converged = high - low < cfg.optimization_tolerance
            if not trace.converged:
                logger.info(
                    "Savings-rate search stopped after %d probes (bracket [%.4f, %.4f])",
                    trace.n_probes, low, high,
                )

        final = self.aggregator.run(
            sim_input,
            iterations=cfg.iterations,
            savings_rate=best_rate,
            clamp_cash_flow=False,
        )
        trace.solve_time = time.perf_counter() - start
        self.trace = trace

        logger.debug(
            "Required savings rate %.4f (probability %.4f, %d probes, %.3fs)",
            best_rate, final.probability, trace.n_probes, trace.solve_time,
        )
        return OptimizedPathResult.from_aggregate(
            final, sim_input, required_savings_rate=best_rate,
        )
