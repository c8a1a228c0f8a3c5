"""
Pytest configuration and fixtures for GoalSim test suite.

This module provides reusable fixtures for testing all GoalSim components.
Fixtures follow the principle of "arrange-act-assert" with clear separation.
"""

from datetime import date

import pytest

from goalsim.config import AppSettings, EngineConfig
from goalsim.goals import SimulationGoal, SimulationInput
from goalsim.montecarlo import MonteCarloAggregator
from goalsim.paths import PathSimulator
from goalsim.regimes import RegimeModel


# ---------------------------------------------------------------------------
# Date Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def start_date() -> date:
    """Standard start date for tests."""
    return date(2026, 1, 1)


@pytest.fixture
def seed() -> int:
    """Standard random seed for reproducibility."""
    return 42


# ---------------------------------------------------------------------------
# Input Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def base_input(start_date, seed) -> SimulationInput:
    """
    Realistic single-goal scenario.

    Income 500,000/month, expenses 350,000/month, savings rate 10%
    (15,000/month saved), net worth 3,200,000, goal 5,000,000 in 36 months,
    10% expected return, no inflation, no income/expense growth.
    """
    return SimulationInput(
        current_savings_rate=0.10,
        monthly_income=500_000,
        monthly_expenses=350_000,
        current_net_worth=3_200_000,
        goal_amount=5_000_000,
        goal_deadline=date(2029, 1, 1),
        expected_return_rate=0.10,
        inflation_rate=0.0,
        income_growth_rate=0.0,
        expense_growth_rate=0.0,
        random_seed=seed,
        start_date=start_date,
    )


@pytest.fixture
def multi_goal_input(start_date, seed) -> SimulationInput:
    """
    Three goals of increasing size and deadline, given out of priority order.
    """
    return SimulationInput(
        current_savings_rate=0.20,
        monthly_income=500_000,
        monthly_expenses=300_000,
        current_net_worth=1_000_000,
        goals=[
            SimulationGoal(amount=4_000_000, deadline=date(2031, 1, 1), priority=3, name="House"),
            SimulationGoal(amount=1_500_000, deadline=date(2027, 1, 1), priority=1, name="Emergency"),
            SimulationGoal(amount=2_500_000, deadline=date(2029, 1, 1), priority=2, name="Car"),
        ],
        expected_return_rate=0.08,
        inflation_rate=0.02,
        random_seed=seed,
        start_date=start_date,
    )


# ---------------------------------------------------------------------------
# Engine Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fast_config() -> EngineConfig:
    """Small iteration counts for quick unit tests."""
    return EngineConfig(iterations=500, optimization_iterations=200)


@pytest.fixture
def zero_vol_config() -> EngineConfig:
    """No return volatility: every path is the deterministic trajectory."""
    return EngineConfig(iterations=200, optimization_iterations=100, return_std_dev=0.0)


@pytest.fixture
def aggregator(fast_config) -> MonteCarloAggregator:
    return MonteCarloAggregator(fast_config)


@pytest.fixture
def simulator() -> PathSimulator:
    return PathSimulator(RegimeModel())


@pytest.fixture
def settings(monkeypatch) -> AppSettings:
    """AppSettings isolated from the developer's environment."""
    for var in ("GOALSIM_LOG_LEVEL", "GOALSIM_N_WORKERS", "GOALSIM_CACHE_TTL_SECONDS",
                "GOALSIM_DEFAULT_COUNTRY", "GOALSIM_DEFAULT_CURRENCY"):
        monkeypatch.delenv(var, raising=False)
    return AppSettings(_env_file=None)
