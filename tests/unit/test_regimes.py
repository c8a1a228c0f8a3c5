"""
Unit tests for regimes.py module.

Tests MarketRegimeParams validation, the default regime table and the
RegimeModel transition and parameter logic.
"""

import numpy as np
import pytest

from goalsim.exceptions import ConfigurationError
from goalsim.regimes import (
    INITIAL_REGIME,
    MARKET_REGIMES,
    REGIME_NAMES,
    MarketRegimeParams,
    RegimeModel,
)


class TestMarketRegimeParams:
    """Test regime parameter validation."""

    def test_default_table_rows_sum_to_one(self):
        for params in MARKET_REGIMES.values():
            assert sum(params.transition_probabilities.values()) == pytest.approx(1.0)

    def test_default_values(self):
        bear = MARKET_REGIMES["bear"]

        assert bear.return_adjustment == -0.05
        assert bear.volatility_multiplier == 1.5
        assert bear.average_duration == 12
        assert bear.transition_probabilities["bear"] == 0.60

    def test_continuation_probability(self):
        assert MARKET_REGIMES["normal"].continuation_probability == pytest.approx(1 - 1 / 24)

    def test_row_not_summing_to_one_raises(self):
        with pytest.raises(ConfigurationError, match="sum to"):
            MarketRegimeParams(0.0, 1.0, 12, {"bull": 0.5, "normal": 0.3, "bear": 0.1})

    def test_unknown_regime_key_raises(self):
        with pytest.raises(ConfigurationError, match="must have keys"):
            MarketRegimeParams(0.0, 1.0, 12, {"bull": 0.5, "normal": 0.5, "crash": 0.0})

    def test_duration_below_one_raises(self):
        with pytest.raises(ConfigurationError, match="average_duration"):
            MarketRegimeParams(0.0, 1.0, 0.5, {"bull": 0.2, "normal": 0.6, "bear": 0.2})

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            MARKET_REGIMES["bull"] = MARKET_REGIMES["bear"]
        with pytest.raises(TypeError):
            MARKET_REGIMES["bull"].transition_probabilities["bull"] = 1.0


class TestRegimeModelTransitions:
    """Test the vectorized Markov step."""

    def test_initial_state_is_normal(self):
        model = RegimeModel()
        states = model.initial_states(4)

        assert all(model.name(s) == INITIAL_REGIME for s in states)

    def test_stays_when_uniform_below_continuation(self):
        model = RegimeModel()
        states = model.initial_states(3)
        nxt = model.advance(states, u_stay=np.full(3, 0.5), u_move=np.array([0.0, 0.5, 0.99]))

        np.testing.assert_array_equal(nxt, states)

    def test_cumulative_pick_from_current_row(self):
        """normal row cumulative = (0.15, 0.85, 1.0)."""
        model = RegimeModel()
        states = model.initial_states(3)
        nxt = model.advance(states, u_stay=np.full(3, 0.999), u_move=np.array([0.10, 0.50, 0.90]))

        assert [model.name(s) for s in nxt] == ["bull", "normal", "bear"]

    def test_disabled_model_never_moves(self):
        model = RegimeModel(enabled=False)
        states = model.initial_states(2)
        nxt = model.advance(states, u_stay=np.ones(2), u_move=np.zeros(2))

        np.testing.assert_array_equal(nxt, states)

    def test_injected_table(self):
        """A table forcing every transition to bear."""
        sticky_bear = {
            name: MarketRegimeParams(0.0, 1.0, 1, {"bull": 0.0, "normal": 0.0, "bear": 1.0})
            for name in REGIME_NAMES
        }
        model = RegimeModel(regimes=sticky_bear)
        nxt = model.advance(model.initial_states(5), u_stay=np.full(5, 0.3), u_move=np.full(5, 0.4))

        assert all(model.name(s) == "bear" for s in nxt)

    def test_incomplete_table_raises(self):
        with pytest.raises(ConfigurationError, match="regime table"):
            RegimeModel(regimes={"bull": MARKET_REGIMES["bull"]})


class TestRegimeModelParameters:
    """Test monthly return parameters."""

    def test_enabled_parameters(self):
        model = RegimeModel(return_std_dev=0.2)
        states = np.array([model.code("bull"), model.code("normal"), model.code("bear")])
        mu, sigma = model.parameters(states, base_annual_return=0.05)

        np.testing.assert_allclose(mu, [0.08, 0.05, 0.0])
        np.testing.assert_allclose(sigma, [0.16, 0.2, 0.3])

    def test_disabled_returns_base(self):
        model = RegimeModel(enabled=False, return_std_dev=0.15)
        mu, sigma = model.parameters(model.initial_states(3), base_annual_return=0.04)

        assert float(mu) == 0.04
        assert float(sigma) == 0.15

    def test_stationary_distribution_sums_to_one(self):
        dist = RegimeModel().stationary_distribution()

        assert set(dist) == set(REGIME_NAMES)
        assert sum(dist.values()) == pytest.approx(1.0)
        assert all(p > 0 for p in dist.values())
