"""
Configuration for CartPole-from-pixels DQN
==========================================
"""

from __future__ import annotations

from .errors import ConfigurationError

# Environment Configuration
ENV_CONFIG = {
    "env_name": "CartPole-v1",
    "screen_width": 80,            # Width (px) of the preprocessed screen fed to the net
    "view_fraction": None,         # e.g. 0.6 to crop a window around the cart; None keeps full width
    "max_steps": 500,              # Cap on steps per episode
}

# DQN Hyperparameters
AGENT_CONFIG = {
    "optimizer": "rmsprop",        # "rmsprop" or "adam"
    "learning_rate": 1e-3,
    "discount_factor": 0.999,      # Gamma
    "eps_start": 0.9,              # Initial exploration rate
    "eps_end": 0.05,               # Asymptotic exploration rate
    "eps_decay": 200,              # Exponential decay constant (steps)
    "batch_size": 128,             # Replay sample size
    "replay_size": 10_000,         # Replay buffer capacity
    "target_update_rate_init": 20, # Episodes until the first target sync; negative = every episode
    "target_update_decay": 5,      # Interval shrinks by this much after each sync
    "min_target_interval": 1,      # Interval never drops below this
    "grad_clip_value": 1.0,        # Elementwise gradient clamp
}

# Training Configuration
TRAIN_CONFIG = {
    "n_episodes": 1000,
    "log_interval": 10,            # Print stats every N episodes
    "save_interval": 100,          # Checkpoint every N episodes
    "eval_episodes": 10,
}

# Paths
PATHS = {
    "save_dir": "./checkpoints",
    "logs_dir": "./logs",
    "model_prefix": "./checkpoints/cartpole",
    "plot_file": "./logs/durations.png",
    "csv_file": "./logs/history.csv",
}


def validate_config(
    *,
    replay_size: int,
    batch_size: int,
    eps_decay: float,
    gamma: float,
    screen_width: int,
) -> None:
    """Fail fast on hyperparameters that can never produce a valid run."""
    if int(replay_size) <= 0:
        raise ConfigurationError(f"replay_size must be positive, got {replay_size}")
    if int(batch_size) <= 0:
        raise ConfigurationError(f"batch_size must be positive, got {batch_size}")
    if float(eps_decay) == 0.0:
        raise ConfigurationError("eps_decay must be non-zero")
    if not 0.0 <= float(gamma) <= 1.0:
        raise ConfigurationError(f"gamma must be in [0, 1], got {gamma}")
    if int(screen_width) <= 0:
        raise ConfigurationError(f"screen_width must be positive, got {screen_width}")
