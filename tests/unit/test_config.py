"""
Unit tests for config.py Pydantic models.

Tests validation, defaults, and conversion of configuration classes and
environment-driven settings.
"""

import logging
from datetime import date

import pytest
from pydantic import ValidationError

from goalsim.config import (
    AppSettings,
    EngineConfig,
    GoalConfig,
    RegimeParamsConfig,
    SimulationInputConfig,
    configure_logging,
)
from goalsim.exceptions import ConfigurationError, InvalidInputError
from goalsim.regimes import MARKET_REGIMES


class TestEngineConfig:
    """Tests for EngineConfig validation."""

    def test_defaults(self):
        config = EngineConfig()

        assert config.iterations == 10_000
        assert config.optimization_iterations == 1_000
        assert config.return_std_dev == 0.15
        assert config.min_savings_rate == 0.01
        assert config.max_savings_rate == 0.35
        assert config.target_probability == 0.85
        assert config.optimization_tolerance == 0.005
        assert config.max_optimization_iterations == 20
        assert config.withdrawal_trigger == "all"
        assert config.n_workers is None

    def test_frozen(self):
        config = EngineConfig()
        with pytest.raises(ValidationError):
            config.iterations = 5

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            EngineConfig(n_sims=100)

    def test_max_rate_below_min_raises(self):
        with pytest.raises(ValidationError, match="max_savings_rate"):
            EngineConfig(min_savings_rate=0.2, max_savings_rate=0.1)

    def test_unknown_trigger_raises(self):
        with pytest.raises(ValidationError):
            EngineConfig(withdrawal_trigger="later")

    def test_default_regime_table(self):
        assert EngineConfig().regime_table() is MARKET_REGIMES

    def test_regime_override(self):
        row = {"bull": 0.2, "normal": 0.6, "bear": 0.2}
        regimes = {
            name: RegimeParamsConfig(
                return_adjustment=0.0, volatility_multiplier=1.0,
                average_duration=6, transition_probabilities=row,
            )
            for name in ("bull", "normal", "bear")
        }
        table = EngineConfig(regimes=regimes).regime_table()

        assert table["bear"].average_duration == 6

    def test_invalid_regime_row_raises_configuration_error(self):
        bad = RegimeParamsConfig(
            return_adjustment=0.0, volatility_multiplier=1.0,
            average_duration=6, transition_probabilities={"bull": 1.0, "normal": 1.0, "bear": 0.0},
        )
        with pytest.raises(ConfigurationError):
            bad.to_params()


class TestInputPayloads:
    """Tests for GoalConfig and SimulationInputConfig."""

    def _payload(self, **overrides):
        payload = {
            "current_savings_rate": 0.1,
            "monthly_income": 500_000,
            "current_net_worth": 1_000_000,
            "expected_return_rate": 0.10,
            "inflation_rate": 0.05,
            "goals": [
                {"amount": 5_000_000, "deadline": "2029-01-01", "name": "House"},
                {"amount": 1_000_000, "deadline": "2027-01-01", "priority": 1},
            ],
            "start_date": "2026-01-01",
        }
        payload.update(overrides)
        return payload

    def test_payload_to_input(self):
        sim_input = SimulationInputConfig.model_validate(self._payload()).to_input()

        assert sim_input.start_date == date(2026, 1, 1)
        assert sim_input.primary_goal.amount == 1_000_000
        assert sim_input.goals[1].name == "House"

    def test_legacy_goal_fields(self):
        payload = self._payload(goals=[], goal_amount=2_000_000, goal_deadline="2028-06-01")
        sim_input = SimulationInputConfig.model_validate(payload).to_input()

        assert sim_input.primary_goal.goal_id == "primary"

    def test_goal_config_id_maps_to_goal_id(self):
        goal = GoalConfig(amount=10, deadline=date(2030, 1, 1), id="g1").to_goal()

        assert goal.goal_id == "g1"

    def test_too_many_goals_rejected(self):
        goals = [{"amount": 1_000 + i, "deadline": "2030-01-01"} for i in range(6)]
        with pytest.raises(ValidationError):
            SimulationInputConfig.model_validate(self._payload(goals=goals))

    def test_field_bounds(self):
        with pytest.raises(ValidationError):
            SimulationInputConfig.model_validate(self._payload(current_savings_rate=1.5))

    def test_cross_field_rules_on_conversion(self):
        cfg = SimulationInputConfig.model_validate(self._payload(start_date="2030-01-01"))
        with pytest.raises(InvalidInputError, match="must be after"):
            cfg.to_input()


class TestAppSettings:
    """Tests for AppSettings environment loading."""

    def test_defaults(self, settings):
        assert settings.log_level == "INFO"
        assert settings.n_workers is None
        assert settings.cache_ttl_seconds == 300
        assert settings.default_country is None
        assert settings.default_currency == "USD"

    def test_env_prefix(self, settings, monkeypatch):
        monkeypatch.setenv("GOALSIM_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("GOALSIM_N_WORKERS", "3")
        monkeypatch.setenv("GOALSIM_DEFAULT_COUNTRY", "KENYA")
        loaded = AppSettings(_env_file=None)

        assert loaded.log_level == "DEBUG"
        assert loaded.n_workers == 3
        assert loaded.default_country == "KENYA"

    def test_engine_config_from_settings(self, settings, monkeypatch):
        monkeypatch.setenv("GOALSIM_N_WORKERS", "2")
        config = AppSettings(_env_file=None).engine_config(iterations=100)

        assert config.n_workers == 2
        assert config.iterations == 100

    def test_configure_logging_sets_level(self, settings, monkeypatch):
        monkeypatch.setenv("GOALSIM_LOG_LEVEL", "WARNING")
        configure_logging(AppSettings(_env_file=None))

        assert logging.getLogger("goalsim").level == logging.WARNING
        logging.getLogger("goalsim").setLevel(logging.NOTSET)
