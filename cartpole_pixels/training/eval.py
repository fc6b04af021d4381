"""Evaluation loop.

Evaluation should be isolated from training so you can:
  - run it from the CLI (`watch`)
  - run it after training without clutter
  - adjust evaluation behavior (greedy, rendered)
"""

from __future__ import annotations

from itertools import count
from typing import Optional

import cv2
import numpy as np

try:
    import torch
    import torch.nn as nn
except ImportError as e:  # pragma: no cover
    raise ImportError("PyTorch is required. Install with: pip install torch") from e

from .policy import greedy_action


@torch.no_grad()
def evaluate(
    policy_net: nn.Module,
    env,
    *,
    n_episodes: int = 10,
    max_steps: Optional[int] = 500,
    render: bool = False,
    seed: Optional[int] = None,
) -> dict:
    """Greedy evaluation (no exploration, no learning).

    Returns a dictionary so callers can log whatever they care about.
    """
    was_training = policy_net.training
    policy_net.eval()
    durations: list[int] = []

    for i in range(int(n_episodes)):
        env.reset(seed=None if seed is None else seed + i)
        last_screen = env.screen()
        current_screen = env.screen()
        s = current_screen - last_screen
        steps = 0

        for _ in count():
            action = greedy_action(policy_net(s))
            _, done, _ = env.step(action)
            steps += 1

            last_screen = current_screen
            current_screen = env.screen()
            s = current_screen - last_screen

            if render and env.last_frame is not None:
                cv2.imshow("CartPole", cv2.cvtColor(np.asarray(env.last_frame), cv2.COLOR_RGB2BGR))
                cv2.waitKey(1)

            if done or (max_steps is not None and steps >= int(max_steps)):
                break

        durations.append(steps)

    if render:
        cv2.destroyAllWindows()
    policy_net.train(was_training)

    return {
        "mean_duration": float(np.mean(durations)) if durations else 0.0,
        "min_duration": int(min(durations)) if durations else 0,
        "max_duration": int(max(durations)) if durations else 0,
        "durations": durations,
    }
