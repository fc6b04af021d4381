"""
Utility functions for training output: directories, plots, CSV export.
"""

from __future__ import annotations

import os
from typing import Dict, List, Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd


def setup_directories(paths: Dict[str, str]):
    """Create necessary directories if they don't exist."""
    for path in paths.values():
        if os.path.splitext(path)[1]:
            path = os.path.dirname(path)
        if path and not os.path.exists(path):
            os.makedirs(path)
            print(f"Created directory: {path}")


def moving_average(values: Sequence[float], window: int) -> np.ndarray:
    values = np.asarray(values, dtype=np.float64)
    if window <= 0 or len(values) < window:
        return np.empty(0)
    return np.convolve(values, np.ones(window) / window, mode="valid")


def plot_durations(
    durations: List[int],
    window: int = 100,
    save_path: str | None = None,
    start_episode: int = 1,
):
    """
    Plot episode durations with a moving average.

    Args:
        durations: Steps survived per episode.
        window: Window size for moving average.
        save_path: Optional path to save the plot.
        start_episode: Episode number of durations[0] (x-axis offset).
    """
    fig, ax = plt.subplots(1, 1, figsize=(10, 5))

    episodes = np.arange(start_episode, start_episode + len(durations))
    ax.plot(episodes, durations, alpha=0.3, color="blue", label="Episode Duration")
    avg = moving_average(durations, window)
    if avg.size:
        ax.plot(
            episodes[window - 1:],
            avg,
            color="red",
            label=f"Moving Avg ({window})",
        )
    ax.set_xlabel("Episode")
    ax.set_ylabel("Duration (steps)")
    ax.set_title("Training Durations")
    ax.legend()
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        os.makedirs(os.path.dirname(save_path) or ".", exist_ok=True)
        plt.savefig(save_path, dpi=150)
        print(f"Plot saved to {save_path}")
    plt.close(fig)
    return save_path


def export_csv(
    path: str,
    durations: List[int],
    losses: List[float] | None = None,
    epsilons: List[float] | None = None,
    start_episode: int = 1,
) -> pd.DataFrame:
    """Write one row per episode: episode, duration[, mean_loss][, epsilon].

    Rows are numbered from `start_episode`, so a resumed run keeps the
    episode numbers it was trained under.
    """
    df = pd.DataFrame({
        "episode": np.arange(start_episode, start_episode + len(durations)),
        "duration": np.asarray(durations, dtype=np.int64),
    })
    if losses is not None:
        df["mean_loss"] = np.asarray(losses, dtype=np.float64)
    if epsilons is not None:
        df["epsilon"] = np.asarray(epsilons, dtype=np.float64)

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    df.to_csv(path, index=False)
    return df


def read_history(path: str) -> pd.DataFrame:
    return pd.read_csv(path)
