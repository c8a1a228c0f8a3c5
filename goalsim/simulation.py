"""Simulation orchestrator for GoalSim

Connects `montecarlo.py` and `optimization.py` to compare the user's
current savings path with the optimized one (minimum rate reaching the
target probability), and packages the comparison with run metadata.

Design goals
------------
- Deterministic when SimulationInput.random_seed is set.
- Validation happens before any simulation work (SimulationInput).
- One INFO log line per simulation; optimizer probes at DEBUG.

Typical usage
-------------
>>> from datetime import date
>>> from goalsim import SimulationEngine, EngineConfig, build_simulation_input
>>> sim_input = build_simulation_input(
...     "NIGERIA",
...     current_savings_rate=0.10,
...     monthly_income=500_000,
...     monthly_expenses=350_000,
...     current_net_worth=1_000_000,
...     goal_amount=5_000_000,
...     goal_deadline=date(2029, 1, 1),
...     random_seed=42,
... )
>>> engine = SimulationEngine(EngineConfig(n_workers=4))
>>> output = engine.simulate(sim_input, currency="NGN")
>>> output.horizon_table()
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional
import logging
import time

from .config import AppSettings, EngineConfig
from .constants import TIME_HORIZONS
from .economics import build_simulation_input
from .goals import SimulationInput
from .montecarlo import MonteCarloAggregator
from .optimization import SavingsRateOptimizer
from .results import (
    ConfidenceInterval,
    GoalPathResult,
    OptimizedPathResult,
    PathResult,
    SimulationMetadata,
    SimulationOutput,
)

logger = logging.getLogger(__name__)

__all__ = [
    "SimulationEngine",
    "ConfidenceInterval",
    "GoalPathResult",
    "PathResult",
    "OptimizedPathResult",
    "SimulationMetadata",
    "SimulationOutput",
]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class SimulationEngine:
    """High-level orchestrator that runs the current path and the optimized
    path and returns their comparison.

    Parameters
    ----------
    config : EngineConfig, optional
        Engine configuration. Defaults to `settings.engine_config()`.
    settings : AppSettings, optional
        Application settings (default currency/country, worker count).
        Defaults to AppSettings() read from the environment.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        settings: Optional[AppSettings] = None,
    ):
        self.settings = settings or AppSettings()
        self.config = config or self.settings.engine_config()
        self.aggregator = MonteCarloAggregator(self.config)
        self.optimizer = SavingsRateOptimizer(self.aggregator, self.config)

    # -------------------- Paths --------------------
    def current_path(self, sim_input: SimulationInput) -> PathResult:
        """Simulate the user's own savings rate with the full iteration count."""
        results = self.aggregator.run(sim_input, iterations=self.config.iterations)
        return PathResult.from_aggregate(results, sim_input)

    def optimized_path(self, sim_input: SimulationInput) -> OptimizedPathResult:
        """Minimum savings rate reaching the target probability."""
        return self.optimizer.find_required_rate(sim_input)

    # -------------------- Comparison --------------------
    def simulate(
        self,
        sim_input: SimulationInput,
        currency: Optional[str] = None,
    ) -> SimulationOutput:
        """Run both paths and return the comparison.

        Parameters
        ----------
        sim_input : SimulationInput
            Validated run configuration.
        currency : str, optional
            Currency code stamped on the metadata. Defaults to
            settings.default_currency.

        Raises
        ------
        NumericalInstabilityError
            If either path loses too many iterations to non-finite values.
        """
        start = time.perf_counter()
        current = self.current_path(sim_input)
        optimized = self.optimized_path(sim_input)

        wealth_difference = {
            h: optimized.projected_net_worth[h] - current.projected_net_worth[h]
            for h in TIME_HORIZONS
        }
        duration_ms = int(round((time.perf_counter() - start) * 1000))

        logger.info(
            "Simulation done: current=%.1f%% optimized=%.1f%% required_rate=%.2f%% (%d ms)",
            current.probability * 100,
            optimized.probability * 100,
            optimized.required_savings_rate * 100,
            duration_ms,
        )

        return SimulationOutput(
            current_path=current,
            optimized_path=optimized,
            wealth_difference=wealth_difference,
            metadata=SimulationMetadata(
                iterations=self.config.iterations,
                duration_ms=duration_ms,
                simulated_at=datetime.now(timezone.utc),
                currency=currency or self.settings.default_currency,
            ),
        )

    def simulate_for_country(
        self,
        country: Optional[str] = None,
        currency: Optional[str] = None,
        **fields: Any,
    ) -> SimulationOutput:
        """Fill economic defaults for `country` (or settings.default_country)
        and simulate.

        Explicit `fields` override the country defaults; see
        economics.build_simulation_input.
        """
        sim_input = build_simulation_input(country or self.settings.default_country, **fields)
        return self.simulate(sim_input, currency=currency)
