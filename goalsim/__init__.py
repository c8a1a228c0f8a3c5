"""
GoalSim: Monte Carlo goal-achievement simulation

Projects net worth under stochastic returns, estimates the probability of
reaching financial goals by their deadlines, and finds the minimum savings
rate that reaches a target probability.

Modules
-------
- goals        : SimulationGoal and SimulationInput (validation, defaults)
- economics    : Country-level economic defaults
- regimes      : Bull/normal/bear market regime model
- paths        : Vectorized single-path simulator
- montecarlo   : Monte Carlo aggregation and percentiles
- optimization : Savings-rate binary search
- simulation   : Current vs optimized path orchestration
- config       : Engine configuration, input payloads, application settings

"""

from .config import (
    AppSettings,
    EngineConfig,
    GoalConfig,
    RegimeParamsConfig,
    SimulationInputConfig,
    configure_logging,
)
from .economics import EconomicDefaults, build_simulation_input, resolve_economic_defaults
from .exceptions import (
    ConfigurationError,
    GoalSimError,
    InvalidInputError,
    NumericalInstabilityError,
)
from .goals import SimulationGoal, SimulationInput
from .montecarlo import MonteCarloAggregatedResults, MonteCarloAggregator
from .optimization import SavingsRateOptimizer
from .paths import MonteCarloIteration, PathSimulator
from .regimes import MARKET_REGIMES, MarketRegimeParams, RegimeModel
from .simulation import (
    OptimizedPathResult,
    PathResult,
    SimulationEngine,
    SimulationOutput,
)

__version__ = "0.1.0"

__all__ = [
    "AppSettings",
    "EngineConfig",
    "GoalConfig",
    "RegimeParamsConfig",
    "SimulationInputConfig",
    "configure_logging",
    "EconomicDefaults",
    "build_simulation_input",
    "resolve_economic_defaults",
    "ConfigurationError",
    "GoalSimError",
    "InvalidInputError",
    "NumericalInstabilityError",
    "SimulationGoal",
    "SimulationInput",
    "MonteCarloAggregatedResults",
    "MonteCarloAggregator",
    "SavingsRateOptimizer",
    "MonteCarloIteration",
    "PathSimulator",
    "MARKET_REGIMES",
    "MarketRegimeParams",
    "RegimeModel",
    "OptimizedPathResult",
    "PathResult",
    "SimulationEngine",
    "SimulationOutput",
]
