"""
Single-path net worth simulator for GoalSim.

Purpose
-------
Evolves net worth month by month for one or many independent Monte Carlo
paths and records horizon snapshots and goal achievement months. The
Monte Carlo aggregator consumes the resulting PathBatch.

Mathematical Model
------------------
For month t = 1..T (T = SimulationInput.horizon_months), on every path:

    regime:    k_t = advance(k_{t-1}, u_t)                   (if enabled)
    return:    r_t = μ_t / 12 + σ_t / √12 · z_t,   z_t ~ N(0, 1)
    income:    I_t = I_0 · (1 + g_I / 12)^(t-1)
    expenses:  E_t = E_0 · (1 + g_E / 12)^(t-1)
    savings:   S_t = s · max(0, I_t - E_t)      (clamped, current path)
               S_t = s · (I_t - E_t)            (unclamped, optimizer probes)
    net worth: W_t = max(0, W_{t-1} · (1 + r_t) + S_t)

with μ_t = base_annual_return + δ_{k_t} and σ_t = σ · v_{k_t}. Once the
withdrawal trigger holds on a path, S_t is replaced by -withdrawal.

Random streams
--------------
Path i draws from its own Generator seeded with
SeedSequence(entropy, spawn_key=(i,)), which is exactly the i-th child of
SeedSequence(entropy).spawn(n). Draw order per path is fixed: a (T, 2)
block of uniforms when regimes are enabled (stay test, transition pick),
then T standard normals. Results therefore do not depend on how path
indices are split into batches or across worker processes.

Design Principles
-----------------
- Vectorized over paths: the month loop runs once per batch, not per path
- Pure function of (input, path indices, entropy): no hidden state
- Instability is flagged, not raised: the aggregator decides what to discard

Example
-------
>>> from goalsim.paths import PathSimulator
>>> from goalsim.regimes import RegimeModel
>>> simulator = PathSimulator(RegimeModel(enabled=False))
>>> batch = simulator.simulate_batch(sim_input, range(1_000), entropy=42)
>>> batch.goal_achieved[:, 0].mean()
0.512
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterator, Literal, Optional, Sequence, Tuple
import logging

import numpy as np

from .constants import TIME_HORIZONS, TIME_HORIZON_MONTHS
from .exceptions import ConfigurationError
from .goals import SimulationInput
from .regimes import RegimeModel
from .utils import annual_to_monthly_simple, monthly_volatility

logger = logging.getLogger(__name__)

__all__ = [
    "WITHDRAWAL_TRIGGERS",
    "MonteCarloIteration",
    "PathBatch",
    "PathSimulator",
    "path_generator",
]


WITHDRAWAL_TRIGGERS: Tuple[str, ...] = ("primary", "any", "all")

SEED_MASK = (1 << 128) - 1


def path_generator(entropy: int, index: int) -> np.random.Generator:
    """
    Independent Generator for path `index` of a run seeded with `entropy`.

    Any integer is accepted; negative seeds wrap to 128 bits (two's
    complement) since SeedSequence only takes non-negative entropy.
    """
    seed = int(entropy) & SEED_MASK
    return np.random.default_rng(np.random.SeedSequence(seed, spawn_key=(int(index),)))


# ---------------------------------------------------------------------------
# Per-path record
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MonteCarloIteration:
    """
    Outcome of a single simulated path.

    Attributes
    ----------
    net_worth_at_horizons : Dict[str, float]
        Net worth at each horizon month ("6mo", "1yr", ...).
    goal_achieved : bool
        Whether the primary goal was reached by its deadline.
    goal_achieved_month : int, optional
        First month at which the primary goal was reached.
    goals : Tuple[Tuple[bool, Optional[int]], ...]
        (achieved, month) for every goal, in goal order.
    all_goals_achieved : bool
        Whether every goal was reached by its own deadline.
    """
    net_worth_at_horizons: Dict[str, float]
    goal_achieved: bool
    goal_achieved_month: Optional[int]
    goals: Tuple[Tuple[bool, Optional[int]], ...]
    all_goals_achieved: bool


# ---------------------------------------------------------------------------
# Batch container
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PathBatch:
    """
    Array form of many simulated paths.

    Attributes
    ----------
    horizon_net_worth : np.ndarray, shape (n, len(TIME_HORIZONS))
        Net worth snapshots, columns ordered as TIME_HORIZONS.
    goal_month : np.ndarray of int, shape (n, G)
        Month each goal was first reached by its deadline; 0 if never.
    unstable : np.ndarray of bool, shape (n,)
        Paths whose net worth became non-finite at any month.
    """
    horizon_net_worth: np.ndarray
    goal_month: np.ndarray
    unstable: np.ndarray

    @property
    def n_paths(self) -> int:
        return int(self.unstable.shape[0])

    @property
    def goal_achieved(self) -> np.ndarray:
        return self.goal_month > 0

    def valid(self) -> "PathBatch":
        """Batch restricted to stable paths."""
        keep = ~self.unstable
        return PathBatch(
            horizon_net_worth=self.horizon_net_worth[keep],
            goal_month=self.goal_month[keep],
            unstable=self.unstable[keep],
        )

    @classmethod
    def concat(cls, batches: Sequence["PathBatch"]) -> "PathBatch":
        """Stack batches in order."""
        if not batches:
            raise ValueError("at least one batch is required")
        return cls(
            horizon_net_worth=np.concatenate([b.horizon_net_worth for b in batches]),
            goal_month=np.concatenate([b.goal_month for b in batches]),
            unstable=np.concatenate([b.unstable for b in batches]),
        )

    def iterations(self) -> Iterator[MonteCarloIteration]:
        """Per-path records, for inspection and tests."""
        for i in range(self.n_paths):
            months = [int(m) for m in self.goal_month[i]]
            goals = tuple((m > 0, m if m > 0 else None) for m in months)
            yield MonteCarloIteration(
                net_worth_at_horizons={
                    h: float(self.horizon_net_worth[i, j])
                    for j, h in enumerate(TIME_HORIZONS)
                },
                goal_achieved=goals[0][0],
                goal_achieved_month=goals[0][1],
                goals=goals,
                all_goals_achieved=all(achieved for achieved, _ in goals),
            )


# ---------------------------------------------------------------------------
# Simulator
# ---------------------------------------------------------------------------

class PathSimulator:
    """
    Vectorized month-by-month net worth simulator.

    Parameters
    ----------
    regime_model : RegimeModel
        Source of monthly return parameters. Its `enabled` flag is combined
        with SimulationInput.enable_market_regimes: regimes only apply when
        both are on.
    withdrawal_trigger : {"primary", "any", "all"}, default "all"
        Which achieved goals switch a path from saving to withdrawing.
        Achievement for this purpose ignores deadlines: once net worth has
        touched a goal amount, that goal counts as funded.

    Examples
    --------
    >>> simulator = PathSimulator(RegimeModel(), withdrawal_trigger="primary")
    >>> batch = simulator.simulate_batch(sim_input, range(100), entropy=7)
    >>> next(batch.iterations()).net_worth_at_horizons["1yr"]
    """

    def __init__(
        self,
        regime_model: RegimeModel,
        withdrawal_trigger: Literal["primary", "any", "all"] = "all",
    ):
        if withdrawal_trigger not in WITHDRAWAL_TRIGGERS:
            raise ConfigurationError(
                f"withdrawal_trigger must be one of {WITHDRAWAL_TRIGGERS}, "
                f"got {withdrawal_trigger!r}"
            )
        self.regime_model = regime_model
        self.withdrawal_trigger = withdrawal_trigger

    def _regimes_active(self, sim_input: SimulationInput) -> bool:
        return bool(sim_input.enable_market_regimes and self.regime_model.enabled)

    def _draw(
        self,
        indices: np.ndarray,
        entropy: int,
        months: int,
        with_regimes: bool,
    ) -> Tuple[Optional[np.ndarray], np.ndarray]:
        """Uniform (n, T, 2) and normal (n, T) blocks in per-path draw order."""
        uniforms = np.empty((len(indices), months, 2)) if with_regimes else None
        normals = np.empty((len(indices), months))
        for row, idx in enumerate(indices):
            gen = path_generator(entropy, idx)
            if with_regimes:
                uniforms[row] = gen.random((months, 2))
            normals[row] = gen.standard_normal(months)
        return uniforms, normals

    def simulate_batch(
        self,
        sim_input: SimulationInput,
        indices: Sequence[int],
        entropy: int,
        savings_rate: Optional[float] = None,
        clamp_cash_flow: bool = True,
    ) -> PathBatch:
        """
        Simulate the paths with the given indices.

        Parameters
        ----------
        sim_input : SimulationInput
            Run configuration.
        indices : Sequence[int]
            Path indices; each selects its own random stream.
        entropy : int
            Run-level seed entropy shared by all paths.
        savings_rate : float, optional
            Override of sim_input.current_savings_rate.
        clamp_cash_flow : bool, default True
            Save only positive cash flow (current path). False lets a
            negative cash flow reduce net worth (optimizer probes).

        Returns
        -------
        PathBatch
        """
        indices = np.asarray(list(indices), dtype=np.int64)
        n = len(indices)
        months = sim_input.horizon_months
        rate = sim_input.current_savings_rate if savings_rate is None else float(savings_rate)
        with_regimes = self._regimes_active(sim_input)

        uniforms, normals = self._draw(indices, entropy, months, with_regimes)

        amounts = np.array([g.amount for g in sim_input.goals])
        deadlines = np.array(sim_input.goal_deadline_months)
        n_goals = len(amounts)

        income_step = 1.0 + annual_to_monthly_simple(sim_input.resolved_income_growth_rate)
        expense_step = 1.0 + annual_to_monthly_simple(sim_input.resolved_expense_growth_rate)
        income = float(sim_input.monthly_income)
        expenses = sim_input.resolved_monthly_expenses
        withdrawal = sim_input.resolved_monthly_withdrawal
        base_return = sim_input.base_annual_return

        snapshot_col = {TIME_HORIZON_MONTHS[h]: j for j, h in enumerate(TIME_HORIZONS)}

        net_worth = np.full(n, float(sim_input.current_net_worth))
        states = self.regime_model.initial_states(n) if with_regimes else None
        horizon_nw = np.zeros((n, len(TIME_HORIZONS)))
        goal_month = np.zeros((n, n_goals), dtype=np.int32)
        funded = np.zeros((n, n_goals), dtype=bool)
        unstable = np.zeros(n, dtype=bool)

        with np.errstate(over="ignore", invalid="ignore"):
            for t in range(1, months + 1):
                if with_regimes:
                    states = self.regime_model.advance(
                        states, uniforms[:, t - 1, 0], uniforms[:, t - 1, 1]
                    )
                mu, sigma = self.regime_model.parameters(states, base_return)
                monthly_return = annual_to_monthly_simple(mu) + monthly_volatility(sigma) * normals[:, t - 1]

                cash_flow = income - expenses
                savings = max(0.0, cash_flow) * rate if clamp_cash_flow else cash_flow * rate
                contribution = np.full(n, savings)
                if withdrawal > 0:
                    contribution = np.where(self._withdrawing(funded), -withdrawal, contribution)

                updated = net_worth * (1.0 + monthly_return) + contribution
                unstable |= ~np.isfinite(updated)
                net_worth = np.maximum(0.0, updated)

                reached = net_worth[:, None] >= amounts[None, :]
                funded |= reached
                hit = reached & (goal_month == 0) & (t <= deadlines)[None, :]
                goal_month[hit] = t

                if t in snapshot_col:
                    horizon_nw[:, snapshot_col[t]] = net_worth

                income *= income_step
                expenses *= expense_step

        if unstable.any():
            logger.debug("%d of %d paths produced non-finite net worth", int(unstable.sum()), n)

        return PathBatch(horizon_net_worth=horizon_nw, goal_month=goal_month, unstable=unstable)

    def _withdrawing(self, funded: np.ndarray) -> np.ndarray:
        if self.withdrawal_trigger == "primary":
            return funded[:, 0]
        if self.withdrawal_trigger == "any":
            return funded.any(axis=1)
        return funded.all(axis=1)

    def simulate_path(
        self,
        sim_input: SimulationInput,
        index: int,
        entropy: int,
        savings_rate: Optional[float] = None,
        clamp_cash_flow: bool = True,
    ) -> MonteCarloIteration:
        """Simulate one path and return its per-path record."""
        batch = self.simulate_batch(
            sim_input, [index], entropy,
            savings_rate=savings_rate, clamp_cash_flow=clamp_cash_flow,
        )
        return next(batch.iterations())
