"""Exception types raised by the DQN components.

Only `InsufficientDataError` is recoverable: the training loop skips the
update for that step. Everything else means a bad config or a logic bug
and should stop the run.
"""

from __future__ import annotations


class DQNError(Exception):
    """Base class for errors raised by this package."""


class InsufficientDataError(DQNError):
    """Requested more transitions than the replay buffer holds."""

    def __init__(self, requested: int, available: int):
        super().__init__(f"cannot sample {requested} transitions, buffer holds {available}")
        self.requested = int(requested)
        self.available = int(available)


class InvalidActionError(DQNError, ValueError):
    """Action index outside the environment's action set."""

    def __init__(self, action, n_actions: int):
        super().__init__(f"action {action!r} is not in [0, {n_actions})")
        self.action = action
        self.n_actions = int(n_actions)


class ConfigurationError(DQNError, ValueError):
    """Invalid hyperparameter detected at startup."""
