"""DQN building blocks: replay, schedules, action selection, loss, target sync, loop."""

from .replay import ReplayBuffer, Transition
from .schedules import exponential_epsilon
from .sync import TargetSyncScheduler

__all__ = ["ReplayBuffer", "Transition", "exponential_epsilon", "TargetSyncScheduler"]
