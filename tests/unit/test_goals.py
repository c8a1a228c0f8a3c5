"""
Unit tests for goals.py module.

Tests SimulationGoal, normalize_goals and SimulationInput validation and
resolved defaults.
"""

from dataclasses import FrozenInstanceError, replace
from datetime import date, datetime

import pytest

from goalsim.constants import DEFAULT_INCOME_GROWTH_RATE, MAX_GOALS
from goalsim.exceptions import GoalSimError, InvalidInputError
from goalsim.goals import SimulationGoal, SimulationInput, normalize_goals


def _input(**overrides) -> SimulationInput:
    fields = dict(
        current_savings_rate=0.1,
        monthly_income=400_000,
        current_net_worth=0,
        expected_return_rate=0.08,
        inflation_rate=0.05,
        goal_amount=2_000_000,
        goal_deadline=date(2028, 1, 1),
        start_date=date(2026, 1, 1),
    )
    fields.update(overrides)
    return SimulationInput(**fields)


# ============================================================================
# SIMULATIONGOAL TESTS
# ============================================================================

class TestSimulationGoal:
    """Test SimulationGoal validation."""

    def test_basic_instantiation(self):
        goal = SimulationGoal(amount=1_000_000, deadline=date(2027, 6, 1), name="Fund")

        assert goal.amount == 1_000_000
        assert goal.priority is None
        assert goal.resolve_month(date(2026, 1, 1)) == 17

    def test_frozen_dataclass(self):
        goal = SimulationGoal(amount=1_000_000, deadline=date(2027, 6, 1))
        with pytest.raises(FrozenInstanceError):
            goal.amount = 2_000_000

    @pytest.mark.parametrize("amount", [0, -5_000])
    def test_non_positive_amount_raises(self, amount):
        with pytest.raises(InvalidInputError, match="goal amount must be > 0"):
            SimulationGoal(amount=amount, deadline=date(2027, 6, 1))

    def test_nan_amount_raises(self):
        with pytest.raises(InvalidInputError, match="finite"):
            SimulationGoal(amount=float("nan"), deadline=date(2027, 6, 1))

    def test_non_date_deadline_raises(self):
        with pytest.raises(InvalidInputError, match="datetime.date"):
            SimulationGoal(amount=1_000, deadline="2027-06-01")

    def test_datetime_deadline_reduced_to_date(self):
        goal = SimulationGoal(amount=1_000, deadline=datetime(2028, 1, 1, 9, 30))

        assert goal.deadline == date(2028, 1, 1)
        assert type(goal.deadline) is date


class TestNormalizeGoals:
    """Test priority ordering and label defaults."""

    def test_sorted_by_priority_ties_keep_order(self):
        goals = [
            SimulationGoal(amount=3, deadline=date(2030, 1, 1), priority=2, name="c"),
            SimulationGoal(amount=1, deadline=date(2030, 1, 1), priority=1, name="a"),
            SimulationGoal(amount=2, deadline=date(2030, 1, 1), priority=2, name="d"),
        ]
        ordered = normalize_goals(goals)

        assert [g.name for g in ordered] == ["a", "c", "d"]

    def test_unprioritized_goals_go_last(self):
        goals = [
            SimulationGoal(amount=1, deadline=date(2030, 1, 1)),
            SimulationGoal(amount=2, deadline=date(2030, 1, 1), priority=5),
        ]
        ordered = normalize_goals(goals)

        assert ordered[0].amount == 2
        assert ordered[1].priority == 2

    def test_default_ids_and_names(self):
        ordered = normalize_goals([
            SimulationGoal(amount=1, deadline=date(2030, 1, 1)),
            SimulationGoal(amount=2, deadline=date(2030, 1, 1)),
        ])

        assert [g.goal_id for g in ordered] == ["goal-0", "goal-1"]
        assert [g.name for g in ordered] == ["Goal 1", "Goal 2"]


# ============================================================================
# SIMULATIONINPUT TESTS
# ============================================================================

class TestSimulationInputGoals:
    """Test goal folding and limits."""

    def test_legacy_fields_fold_into_primary_goal(self):
        sim_input = _input()

        assert len(sim_input.goals) == 1
        assert sim_input.primary_goal.goal_id == "primary"
        assert sim_input.primary_goal.name == "Primary Goal"
        assert sim_input.goal_deadline_months == (24,)

    def test_goals_list_overrides_legacy_fields(self):
        goal = SimulationGoal(amount=9_000_000, deadline=date(2030, 1, 1))
        sim_input = _input(goals=[goal])

        assert sim_input.primary_goal.amount == 9_000_000

    def test_missing_goal_raises(self):
        with pytest.raises(InvalidInputError, match="at least one goal"):
            _input(goal_amount=None)

    def test_too_many_goals_raises(self):
        goals = [
            SimulationGoal(amount=1_000 * (i + 1), deadline=date(2030, 1, 1))
            for i in range(MAX_GOALS + 1)
        ]
        with pytest.raises(InvalidInputError, match="at most"):
            _input(goals=goals)

    def test_deadline_not_after_start_raises(self):
        with pytest.raises(InvalidInputError, match="must be after"):
            _input(goal_deadline=date(2026, 1, 1))

    def test_datetime_deadlines_compare_with_start_date(self):
        sim_input = _input(
            goals=[SimulationGoal(amount=1_000, deadline=datetime(2028, 1, 1))],
            start_date=datetime(2026, 1, 1, 12, 0),
        )

        assert sim_input.start_date == date(2026, 1, 1)
        assert sim_input.primary_goal.resolve_month(sim_input.start_date) == 24

    def test_goals_stored_as_tuple(self):
        assert isinstance(_input().goals, tuple)


class TestSimulationInputValidation:
    """Test field validation."""

    @pytest.mark.parametrize("rate", [-0.01, 1.01])
    def test_savings_rate_out_of_range(self, rate):
        with pytest.raises(InvalidInputError, match="current_savings_rate"):
            _input(current_savings_rate=rate)

    def test_negative_income_raises(self):
        with pytest.raises(InvalidInputError, match="monthly_income"):
            _input(monthly_income=-1)

    def test_negative_expenses_raises(self):
        with pytest.raises(InvalidInputError, match="monthly_expenses"):
            _input(monthly_expenses=-1)

    def test_negative_withdrawal_raises(self):
        with pytest.raises(InvalidInputError, match="monthly_withdrawal"):
            _input(monthly_withdrawal=-100)

    def test_tax_rate_of_one_raises(self):
        with pytest.raises(InvalidInputError, match="tax_rate_on_returns"):
            _input(tax_rate_on_returns=1.0)

    def test_infinite_net_worth_raises(self):
        with pytest.raises(InvalidInputError, match="finite"):
            _input(current_net_worth=float("inf"))

    @pytest.mark.parametrize("seed", [1.5, "42", True])
    def test_non_integer_seed_raises(self, seed):
        with pytest.raises(InvalidInputError, match="random_seed must be an integer"):
            _input(random_seed=seed)

    def test_negative_seed_allowed(self):
        assert _input(random_seed=-7).random_seed == -7

    def test_negative_net_worth_allowed(self):
        assert _input(current_net_worth=-500_000).current_net_worth == -500_000

    def test_error_is_value_error_and_goalsim_error(self):
        with pytest.raises(ValueError):
            _input(monthly_income=-1)
        with pytest.raises(GoalSimError):
            _input(monthly_income=-1)


class TestSimulationInputDefaults:
    """Test resolved defaults."""

    def test_defaults(self):
        sim_input = _input()

        assert sim_input.resolved_monthly_expenses == 0.0
        assert sim_input.resolved_income_growth_rate == DEFAULT_INCOME_GROWTH_RATE
        assert sim_input.resolved_expense_growth_rate == 0.05
        assert sim_input.resolved_tax_rate == 0.0
        assert sim_input.resolved_monthly_withdrawal == 0.0
        assert sim_input.enable_market_regimes is False

    def test_base_annual_return_is_after_tax_real(self):
        sim_input = _input(expected_return_rate=0.10, tax_rate_on_returns=0.2, inflation_rate=0.03)

        assert sim_input.base_annual_return == pytest.approx(0.10 * 0.8 - 0.03)

    def test_horizon_covers_longest_deadline(self):
        assert _input().horizon_months == 240
        assert _input(goal_deadline=date(2050, 1, 1)).horizon_months == 288

    def test_with_savings_rate(self):
        sim_input = _input()
        other = sim_input.with_savings_rate(0.3)

        assert other.current_savings_rate == 0.3
        assert sim_input.current_savings_rate == 0.1
        assert other.goals == sim_input.goals

    def test_replace_keeps_normalized_goals(self):
        sim_input = replace(_input(), random_seed=7)

        assert sim_input.primary_goal.goal_id == "primary"
