"""
Custom exceptions for GoalSim.

Purpose
-------
Provides a unified exception hierarchy for consistent error handling
across all GoalSim modules. All exceptions inherit from GoalSimError,
enabling catch-all handling when needed.

Exception Hierarchy
-------------------
GoalSimError (base)
├── ConfigurationError - Invalid engine configuration or regime table
├── InvalidInputError - SimulationInput rejected before any simulation work
└── NumericalInstabilityError - Too many non-finite Monte Carlo iterations

Usage
-----
>>> from goalsim.exceptions import InvalidInputError, GoalSimError
>>>
>>> # Raise specific exception
>>> raise InvalidInputError("current_savings_rate must be in [0, 1], got 1.4")
>>>
>>> # Catch all GoalSim exceptions
>>> try:
...     output = engine.simulate(sim_input)
>>> except GoalSimError as e:
...     print(f"GoalSim error: {e}")
"""

__all__ = [
    "GoalSimError",
    "ConfigurationError",
    "InvalidInputError",
    "NumericalInstabilityError",
]


class GoalSimError(Exception):
    """
    Base exception for all GoalSim errors.

    Examples
    --------
    >>> try:
    ...     engine.simulate(sim_input)
    ... except GoalSimError as e:
    ...     logger.error(f"Simulation failed: {e}")
    """
    pass


class ConfigurationError(GoalSimError):
    """
    Invalid engine configuration.

    Raised when the engine or regime model is configured inconsistently:
    - Regime transition rows that do not sum to 1
    - Unknown regime names in a transition row
    - Unknown withdrawal trigger or iteration count below 1

    Examples
    --------
    >>> raise ConfigurationError(
    ...     "transition_probabilities for 'bear' sum to 0.9, expected 1.0"
    ... )
    """
    pass


class InvalidInputError(GoalSimError, ValueError):
    """
    SimulationInput failed validation.

    Raised before any simulation work begins; the call is never partially
    computed. Typical causes:
    - Goal amount <= 0
    - Goal deadline not after the simulation start date
    - More than MAX_GOALS goals, or no goal at all
    - Savings rate outside [0, 1]

    Also a ValueError so callers validating plain values can catch it
    the usual way.

    Examples
    --------
    >>> raise InvalidInputError(
    ...     f"goal amount must be > 0, got {amount}. "
    ...     f"Goals are net worth targets in the input currency."
    ... )
    """
    pass


class NumericalInstabilityError(GoalSimError):
    """
    Return compounding produced non-finite net worth too often.

    Iterations that hit NaN or infinity are discarded from aggregation.
    When fewer than the configured minimum fraction of requested iterations
    remain valid, the whole run fails instead of returning a misleading
    probability.

    Examples
    --------
    >>> raise NumericalInstabilityError(
    ...     f"Only {valid}/{requested} iterations produced finite net worth "
    ...     f"(minimum {min_valid}). Check return volatility settings."
    ... )
    """
    pass
