"""
Configuration management module for GoalSim.

Purpose
-------
Centralized configuration using Pydantic models for type-safe parameter management,
validation, and serialization. Covers the engine knobs (iteration counts, search
bounds, volatility, regime table), JSON-friendly input payloads handed over by
collaborating services, and environment-driven application settings.

Design Principles
-----------------
- Type-safe: Pydantic enforces types and validates ranges
- Immutable: Frozen models prevent accidental mutation
- Serializable: Easy conversion to/from JSON for payloads and config files
- Environment-aware: Supports .env files and GOALSIM_ variables
- Defaults: Every engine knob defaults to the constants in constants.py

Example
-------
>>> from goalsim.config import EngineConfig, SimulationInputConfig
>>> engine_config = EngineConfig(iterations=2_000, n_workers=4)
>>>
>>> payload = {
...     "current_savings_rate": 0.1,
...     "monthly_income": 500_000,
...     "current_net_worth": 1_000_000,
...     "expected_return_rate": 0.10,
...     "inflation_rate": 0.05,
...     "goals": [{"amount": 5_000_000, "deadline": "2029-01-01"}],
... }
>>> sim_input = SimulationInputConfig.model_validate(payload).to_input()
"""

from __future__ import annotations
from typing import Dict, List, Literal, Mapping, Optional
import datetime
import logging

from pydantic import BaseModel, Field, field_validator, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    CACHE_TTL_SECONDS,
    ITERATIONS,
    MAX_GOALS,
    MAX_OPTIMIZATION_ITERATIONS,
    MAX_SAVINGS_RATE,
    MIN_SAVINGS_RATE,
    MIN_VALID_FRACTION,
    OPTIMIZATION_ITERATIONS,
    OPTIMIZATION_TOLERANCE,
    RETURN_STD_DEV,
    TARGET_PROBABILITY,
)
from .goals import SimulationGoal, SimulationInput
from .regimes import MARKET_REGIMES, MarketRegimeParams

__all__ = [
    "RegimeParamsConfig",
    "EngineConfig",
    "GoalConfig",
    "SimulationInputConfig",
    "AppSettings",
    "configure_logging",
]


WithdrawalTrigger = Literal["primary", "any", "all"]


# ---------------------------------------------------------------------------
# Regime Configuration
# ---------------------------------------------------------------------------

class RegimeParamsConfig(BaseModel):
    """
    Serializable form of MarketRegimeParams.

    Examples
    --------
    >>> bear = RegimeParamsConfig(
    ...     return_adjustment=-0.08,
    ...     volatility_multiplier=2.0,
    ...     average_duration=18,
    ...     transition_probabilities={"bull": 0.1, "normal": 0.3, "bear": 0.6},
    ... )
    >>> bear.to_params().continuation_probability
    0.9444444444444444
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    return_adjustment: float = Field(
        ge=-1.0,
        le=1.0,
        description="Additive delta on the annual expected return"
    )
    volatility_multiplier: float = Field(
        ge=0,
        le=10.0,
        description="Multiplier on the annual return standard deviation"
    )
    average_duration: float = Field(
        ge=1,
        description="Mean regime length in months"
    )
    transition_probabilities: Dict[str, float] = Field(
        description="Next-regime probabilities when a transition fires"
    )

    def to_params(self) -> MarketRegimeParams:
        return MarketRegimeParams(
            return_adjustment=self.return_adjustment,
            volatility_multiplier=self.volatility_multiplier,
            average_duration=self.average_duration,
            transition_probabilities=dict(self.transition_probabilities),
        )


# ---------------------------------------------------------------------------
# Engine Configuration
# ---------------------------------------------------------------------------

class EngineConfig(BaseModel):
    """
    Configuration of the simulation engine.

    Attributes
    ----------
    iterations : int
        Monte Carlo iterations for reported results (default 10,000).
    optimization_iterations : int
        Iterations per optimizer probe (default 1,000).
    return_std_dev : float
        Annual return standard deviation before regime multipliers.
    min_savings_rate, max_savings_rate : float
        Savings-rate search bracket.
    target_probability : float
        Probability the optimized path aims for.
    optimization_tolerance : float
        Bracket width at which the binary search stops.
    max_optimization_iterations : int
        Maximum number of optimizer probes.
    min_valid_fraction : float
        Share of iterations that must stay finite for a run to count.
    withdrawal_trigger : {"primary", "any", "all"}
        Which achieved goals switch a path from saving to withdrawing.
    n_workers : int, optional
        Worker processes for the Monte Carlo fan-out. None or 1 runs serially.
    regimes : Dict[str, RegimeParamsConfig], optional
        Regime table override. None uses MARKET_REGIMES.

    Examples
    --------
    >>> config = EngineConfig(iterations=5_000, target_probability=0.9)
    >>> config.optimization_iterations
    1000
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    iterations: int = Field(
        default=ITERATIONS,
        ge=1,
        le=1_000_000,
        description="Monte Carlo iterations for reported results"
    )
    optimization_iterations: int = Field(
        default=OPTIMIZATION_ITERATIONS,
        ge=1,
        le=1_000_000,
        description="Monte Carlo iterations per optimizer probe"
    )
    return_std_dev: float = Field(
        default=RETURN_STD_DEV,
        ge=0,
        description="Annual return standard deviation"
    )
    min_savings_rate: float = Field(
        default=MIN_SAVINGS_RATE,
        ge=0,
        le=1,
        description="Lower bound of the savings-rate search"
    )
    max_savings_rate: float = Field(
        default=MAX_SAVINGS_RATE,
        ge=0,
        le=1,
        description="Upper bound of the savings-rate search"
    )
    target_probability: float = Field(
        default=TARGET_PROBABILITY,
        gt=0,
        le=1,
        description="Goal probability the optimized path aims for"
    )
    optimization_tolerance: float = Field(
        default=OPTIMIZATION_TOLERANCE,
        gt=0,
        le=0.5,
        description="Binary search stops when high - low < tolerance"
    )
    max_optimization_iterations: int = Field(
        default=MAX_OPTIMIZATION_ITERATIONS,
        ge=1,
        le=100,
        description="Maximum optimizer probes"
    )
    min_valid_fraction: float = Field(
        default=MIN_VALID_FRACTION,
        gt=0,
        le=1,
        description="Minimum share of finite iterations per run"
    )
    withdrawal_trigger: WithdrawalTrigger = Field(
        default="all",
        description="Goals that must be achieved before withdrawals start"
    )
    n_workers: Optional[int] = Field(
        default=None,
        ge=1,
        le=256,
        description="Worker processes for Monte Carlo iterations"
    )
    regimes: Optional[Dict[str, RegimeParamsConfig]] = Field(
        default=None,
        description="Regime table override"
    )

    @field_validator("max_savings_rate")
    @classmethod
    def validate_rate_bounds(cls, v, info):
        """Ensure min_savings_rate <= max_savings_rate."""
        low = info.data.get("min_savings_rate", MIN_SAVINGS_RATE)
        if v < low:
            raise ValueError(f"max_savings_rate ({v}) must be >= min_savings_rate ({low})")
        return v

    def regime_table(self) -> Mapping[str, MarketRegimeParams]:
        """Regime table to inject into RegimeModel."""
        if self.regimes is None:
            return MARKET_REGIMES
        return {name: cfg.to_params() for name, cfg in self.regimes.items()}


# ---------------------------------------------------------------------------
# Input Payloads
# ---------------------------------------------------------------------------

class GoalConfig(BaseModel):
    """Serializable form of SimulationGoal."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    amount: float = Field(
        gt=0,
        description="Target net worth"
    )
    deadline: datetime.date = Field(
        description="Date by which the target must be reached"
    )
    priority: Optional[int] = Field(
        default=None,
        ge=1,
        description="Presentation order (1 = highest)"
    )
    id: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Goal identifier"
    )
    name: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Goal display name"
    )

    def to_goal(self) -> SimulationGoal:
        return SimulationGoal(
            amount=self.amount,
            deadline=self.deadline,
            priority=self.priority,
            goal_id=self.id,
            name=self.name,
        )


class SimulationInputConfig(BaseModel):
    """
    Payload form of SimulationInput, as assembled by the income/expense and
    goal services.

    Field ranges mirror the checks performed by SimulationInput; cross-field
    rules (deadline after start date, at least one goal) are enforced when
    converting with `to_input()`.

    Examples
    --------
    >>> cfg = SimulationInputConfig(
    ...     current_savings_rate=0.2,
    ...     monthly_income=400_000,
    ...     current_net_worth=0,
    ...     expected_return_rate=0.09,
    ...     inflation_rate=0.06,
    ...     goal_amount=3_000_000,
    ...     goal_deadline=datetime.date(2030, 1, 1),
    ... )
    >>> cfg.to_input().primary_goal.name
    'Primary Goal'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    current_savings_rate: float = Field(ge=0, le=1, description="Savings rate")
    monthly_income: float = Field(ge=0, description="Monthly income")
    monthly_expenses: Optional[float] = Field(default=None, ge=0, description="Monthly expenses")
    current_net_worth: float = Field(description="Assets minus liabilities")
    goals: List[GoalConfig] = Field(
        default_factory=list,
        max_length=MAX_GOALS,
        description="Goals (overrides goal_amount/goal_deadline)"
    )
    goal_amount: Optional[float] = Field(default=None, gt=0, description="Legacy goal amount")
    goal_deadline: Optional[datetime.date] = Field(default=None, description="Legacy goal deadline")
    expected_return_rate: float = Field(ge=-1, le=1, description="Expected annual return")
    inflation_rate: float = Field(ge=-0.5, le=1, description="Annual inflation")
    income_growth_rate: Optional[float] = Field(default=None, ge=0, le=0.2)
    expense_growth_rate: Optional[float] = Field(default=None, ge=0, le=0.3)
    tax_rate_on_returns: Optional[float] = Field(default=None, ge=0, le=0.5)
    enable_market_regimes: bool = Field(default=False)
    monthly_withdrawal: Optional[float] = Field(default=None, ge=0)
    random_seed: Optional[int] = Field(default=None)
    start_date: Optional[datetime.date] = Field(default=None, description="Defaults to today")

    def to_input(self) -> SimulationInput:
        """Convert to the domain object (raises InvalidInputError)."""
        kwargs = self.model_dump(exclude={"goals", "start_date"})
        if self.start_date is not None:
            kwargs["start_date"] = self.start_date
        goals = [g.to_goal() for g in self.goals]
        return SimulationInput(goals=goals or None, **kwargs)


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    should be prefixed with GOALSIM_ (e.g., GOALSIM_LOG_LEVEL=DEBUG).

    Attributes
    ----------
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR"
    n_workers : int, optional
        Default worker processes for the Monte Carlo fan-out
    cache_ttl_seconds : int
        How long callers may reuse a SimulationOutput
    default_country : str, optional
        Country used for economic defaults when the caller passes none
    default_currency : str
        Currency code stamped on results when the caller passes none

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.cache_ttl_seconds
    300

    # With .env file:
    # GOALSIM_LOG_LEVEL=DEBUG
    # GOALSIM_N_WORKERS=4
    >>> settings = AppSettings(_env_file=".env")
    >>> settings.n_workers
    4
    """

    model_config = SettingsConfigDict(
        env_prefix="GOALSIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )
    n_workers: Optional[int] = Field(
        default=None,
        ge=1,
        le=256,
        description="Worker processes for Monte Carlo iterations"
    )
    cache_ttl_seconds: int = Field(
        default=CACHE_TTL_SECONDS,
        ge=0,
        le=86_400,
        description="Result reuse window for callers"
    )
    default_country: Optional[str] = Field(
        default=None,
        description="Country code for economic defaults"
    )
    default_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Currency code stamped on results"
    )

    def engine_config(self, **overrides) -> EngineConfig:
        """EngineConfig seeded with settings-level defaults."""
        values = {"n_workers": self.n_workers}
        values.update(overrides)
        return EngineConfig(**values)


def configure_logging(settings: Optional[AppSettings] = None) -> None:
    """Set the `goalsim` logger level from settings and attach a handler once."""
    settings = settings or AppSettings()
    logger = logging.getLogger("goalsim")
    logger.setLevel(settings.log_level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s"
        ))
        logger.addHandler(handler)
