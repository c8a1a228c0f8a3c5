"""
Market regime transition model for GoalSim.

Mathematical Model
------------------
Three-state Markov chain over {bull, normal, bear}. Each regime k carries

    return_adjustment      δ_k   (additive annual return delta)
    volatility_multiplier  v_k
    average_duration       D_k   (months)
    transition row         P_k = (p_k,bull, p_k,normal, p_k,bear),  Σ P_k = 1

Every month, with uniforms u_stay, u_move ~ U[0, 1):

    stay  if u_stay <= 1 - 1/D_k
    else  next = first j with u_move < Σ_{i<=j} p_k,i

so the expected run length is roughly D_k months. The month's annual return
parameters are

    μ_t = μ_base + δ_{k_t},    σ_t = σ_base · v_{k_t}

Design principles
-----------------
- Table injected at construction: regime parameters are immutable data
  (MappingProxyType), overridable per model instance for tests
- No hidden RNG: callers pass uniforms, so draw order stays under the
  simulator's control and is reproducible for a given seed
- Disabled model consumes no draws and returns the base parameters
- Vectorized: `advance` evolves a batch of independent paths in lockstep
"""

from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

import numpy as np

from .constants import RETURN_STD_DEV
from .exceptions import ConfigurationError

__all__ = [
    "REGIME_NAMES",
    "INITIAL_REGIME",
    "MarketRegimeParams",
    "MARKET_REGIMES",
    "RegimeModel",
]


REGIME_NAMES: Tuple[str, ...] = ("bull", "normal", "bear")
INITIAL_REGIME: str = "normal"


@dataclass(frozen=True)
class MarketRegimeParams:
    """
    Parameters of one market regime.

    Parameters
    ----------
    return_adjustment : float
        Additive delta on the annual expected return (e.g. +0.03 in bull).
    volatility_multiplier : float
        Multiplier on the annual return standard deviation.
    average_duration : float
        Mean regime length in months; continuation probability is
        1 - 1/average_duration.
    transition_probabilities : Mapping[str, float]
        Probability of moving to each regime when a transition fires.
        Must cover exactly REGIME_NAMES and sum to 1.
    """
    return_adjustment: float
    volatility_multiplier: float
    average_duration: float
    transition_probabilities: Mapping[str, float]

    def __post_init__(self):
        if self.volatility_multiplier < 0:
            raise ConfigurationError(
                f"volatility_multiplier must be >= 0, got {self.volatility_multiplier}"
            )
        if self.average_duration < 1:
            raise ConfigurationError(
                f"average_duration must be >= 1 month, got {self.average_duration}"
            )
        row = dict(self.transition_probabilities)
        if set(row) != set(REGIME_NAMES):
            raise ConfigurationError(
                f"transition_probabilities must have keys {REGIME_NAMES}, "
                f"got {tuple(row)}"
            )
        if any(p < 0 for p in row.values()):
            raise ConfigurationError("transition probabilities must be non-negative")
        total = sum(row.values())
        if not np.isclose(total, 1.0):
            raise ConfigurationError(
                f"transition_probabilities sum to {total:.4f}, expected 1.0"
            )
        object.__setattr__(self, "transition_probabilities", MappingProxyType(row))

    @property
    def continuation_probability(self) -> float:
        """Probability of staying in this regime for another month."""
        return 1.0 - 1.0 / self.average_duration


MARKET_REGIMES: Mapping[str, MarketRegimeParams] = MappingProxyType({
    "bull": MarketRegimeParams(
        return_adjustment=0.03,
        volatility_multiplier=0.8,
        average_duration=36,
        transition_probabilities={"bull": 0.85, "normal": 0.12, "bear": 0.03},
    ),
    "normal": MarketRegimeParams(
        return_adjustment=0.0,
        volatility_multiplier=1.0,
        average_duration=24,
        transition_probabilities={"bull": 0.15, "normal": 0.70, "bear": 0.15},
    ),
    "bear": MarketRegimeParams(
        return_adjustment=-0.05,
        volatility_multiplier=1.5,
        average_duration=12,
        transition_probabilities={"bull": 0.10, "normal": 0.30, "bear": 0.60},
    ),
})


class RegimeModel:
    """
    Bull/normal/bear Markov chain producing monthly return parameters.

    Regimes are handled internally as integer codes (index into
    REGIME_NAMES) so a whole batch of paths can be advanced with array
    operations.

    Parameters
    ----------
    regimes : Mapping[str, MarketRegimeParams], optional
        Regime table. Defaults to MARKET_REGIMES.
    enabled : bool, default True
        If False, the model never changes state, never needs uniforms and
        always returns the base parameters.
    return_std_dev : float, default RETURN_STD_DEV
        Base annual return standard deviation.

    Examples
    --------
    >>> model = RegimeModel()
    >>> states = model.initial_states(3)
    >>> states = model.advance(states, u_stay=np.array([0.1, 0.99, 0.99]),
    ...                        u_move=np.array([0.5, 0.05, 0.95]))
    >>> [model.name(s) for s in states]
    ['normal', 'bull', 'bear']
    >>> mu, sigma = model.parameters(states, base_annual_return=0.05)
    """

    def __init__(
        self,
        regimes: Optional[Mapping[str, MarketRegimeParams]] = None,
        enabled: bool = True,
        return_std_dev: float = RETURN_STD_DEV,
    ):
        regimes = MARKET_REGIMES if regimes is None else regimes
        if set(regimes) != set(REGIME_NAMES):
            raise ConfigurationError(
                f"regime table must define {REGIME_NAMES}, got {tuple(regimes)}"
            )
        if return_std_dev < 0:
            raise ConfigurationError(f"return_std_dev must be >= 0, got {return_std_dev}")

        self.regimes = MappingProxyType(dict(regimes))
        self.enabled = enabled
        self.return_std_dev = float(return_std_dev)

        ordered = [self.regimes[name] for name in REGIME_NAMES]
        self._adjustment = np.array([r.return_adjustment for r in ordered])
        self._vol_mult = np.array([r.volatility_multiplier for r in ordered])
        self._stay = np.array([r.continuation_probability for r in ordered])
        rows = np.array([
            [r.transition_probabilities[name] for name in REGIME_NAMES]
            for r in ordered
        ])
        self._cumulative = np.cumsum(rows, axis=1)
        # Guard the last bucket against float round-off in the cumsum
        self._cumulative[:, -1] = 1.0

    # ---------------------------------------------------------------- state

    @staticmethod
    def code(name: str) -> int:
        """Integer code for a regime name."""
        return REGIME_NAMES.index(name)

    @staticmethod
    def name(code: int) -> str:
        """Regime name for an integer code."""
        return REGIME_NAMES[int(code)]

    def initial_states(self, n_paths: int) -> np.ndarray:
        """All paths start in the `normal` regime."""
        return np.full(int(n_paths), self.code(INITIAL_REGIME), dtype=np.int8)

    def advance(
        self,
        states: np.ndarray,
        u_stay: np.ndarray,
        u_move: np.ndarray,
    ) -> np.ndarray:
        """
        One monthly transition step for a batch of paths.

        Parameters
        ----------
        states : np.ndarray of int, shape (n,)
            Current regime codes.
        u_stay : np.ndarray, shape (n,)
            Uniforms for the continuation test.
        u_move : np.ndarray, shape (n,)
            Uniforms for the cumulative-probability pick. Only used where
            the continuation test fails.

        Returns
        -------
        np.ndarray of int, shape (n,)
            Next regime codes. Unchanged when the model is disabled.
        """
        if not self.enabled:
            return states
        states = np.asarray(states)
        move = np.asarray(u_stay) > self._stay[states]
        if not move.any():
            return states
        cumulative = self._cumulative[states[move]]
        picked = (np.asarray(u_move)[move][:, None] >= cumulative).sum(axis=1)
        next_states = states.copy()
        next_states[move] = np.minimum(picked, len(REGIME_NAMES) - 1)
        return next_states

    # ----------------------------------------------------------- parameters

    def parameters(
        self,
        states: Optional[np.ndarray],
        base_annual_return: float,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Annual return mean and standard deviation for each path this month.

        Returns (base_annual_return, return_std_dev) broadcastable scalars
        when the model is disabled or `states` is None.
        """
        if not self.enabled or states is None:
            return np.float64(base_annual_return), np.float64(self.return_std_dev)
        mu = base_annual_return + self._adjustment[states]
        sigma = self.return_std_dev * self._vol_mult[states]
        return mu, sigma

    def stationary_distribution(self) -> Dict[str, float]:
        """
        Long-run share of months spent in each regime.

        Solves π = π·Q for the monthly kernel
        Q = diag(s) + diag(1 - s)·P, with s the continuation probabilities.
        """
        P = self._cumulative.copy()
        P[:, 1:] = np.diff(self._cumulative, axis=1)
        Q = np.diag(self._stay) + (1.0 - self._stay)[:, None] * P
        eigvals, eigvecs = np.linalg.eig(Q.T)
        vec = np.real(eigvecs[:, np.argmin(np.abs(eigvals - 1.0))])
        vec = vec / vec.sum()
        return {name: float(p) for name, p in zip(REGIME_NAMES, vec)}

    def __repr__(self) -> str:
        status = "enabled" if self.enabled else "disabled"
        return f"RegimeModel({status}, return_std_dev={self.return_std_dev:.2%})"
