"""
CartPole from pixels - DQN
==========================
A DQN agent that learns to balance CartPole from rendered screens.

This package provides:
- PixelCartPole: Gymnasium CartPole wrapped to emit preprocessed screens
- ReplayBuffer / TargetSyncScheduler / epsilon schedule: the DQN core
- train / evaluate: training and greedy evaluation loops

Usage:
    python -m cartpole_pixels.main train --episodes 300
    python -m cartpole_pixels.main watch --render
"""

__version__ = "1.0.0"

from .errors import ConfigurationError, InsufficientDataError, InvalidActionError

__all__ = ["ConfigurationError", "InsufficientDataError", "InvalidActionError"]
