"""Core DQN training loop.

This module contains *only* the algorithm loop. Building the nets, the CLI
and the final plots live elsewhere.

Design goals
------------
- Keep the control flow readable.
- No module-level state: everything that changes during training sits on
  an explicit `TrainState`.
- Separate concerns:
    * env interaction (PixelCartPole)
    * replay storage
    * network update
    * target sync schedule
    * checkpoint hooks
"""

from __future__ import annotations

import math
import os
import random
import time
from collections import deque
from dataclasses import dataclass, field
from itertools import count
from typing import Callable, List, Optional

import numpy as np

try:
    import torch
    import torch.nn as nn
    import torch.optim as optim
except ImportError as e:  # pragma: no cover
    raise ImportError("PyTorch is required. Install with: pip install torch") from e

from ..errors import InsufficientDataError
from .checkpoint import save_checkpoint
from .loss import dqn_loss, optimize_step
from .policy import select_action
from .replay import ReplayBuffer, Transition
from .schedules import exponential_epsilon
from .sync import TargetSyncScheduler


@dataclass
class TrainState:
    """Mutable state carried across the run (and across resumes)."""

    policy_net: nn.Module
    target_net: nn.Module
    optimizer: optim.Optimizer
    replay: ReplayBuffer
    scheduler: TargetSyncScheduler
    device: torch.device
    rng: random.Random = field(default_factory=random.Random)

    episode: int = 0
    global_step: int = 0
    best_duration: int = 0
    # Episode number of episode_durations[0]; later than 1 after a resume.
    history_start: int = 1
    episode_durations: List[int] = field(default_factory=list)
    episode_losses: List[float] = field(default_factory=list)
    episode_epsilons: List[float] = field(default_factory=list)


def train(
    state: TrainState,
    env,
    *,
    n_episodes: int = 1000,
    max_steps: Optional[int] = None,
    # Exploration
    eps_start: float = 0.9,
    eps_end: float = 0.05,
    eps_decay: float = 200,
    # DQN
    gamma: float = 0.999,
    batch_size: int = 128,
    grad_clip_value: float = 1.0,
    # Logging / saving
    log_interval: int = 10,
    save_interval: int = 0,
    save_dir: str = "./checkpoints",
    seed: Optional[int] = None,
    on_episode_end: Optional[Callable[[TrainState], bool]] = None,
) -> dict:
    """Run `n_episodes` more episodes on top of whatever `state` already holds.

    `on_episode_end` may return True to stop early.

    Returns summary dict:
      episodes, global_step, best_duration, mean_last_100, syncs, elapsed
    """
    policy_net = state.policy_net
    target_net = state.target_net
    optimizer = state.optimizer
    replay = state.replay
    device = state.device

    if save_interval > 0:
        os.makedirs(save_dir, exist_ok=True)

    recent_durations = deque(maxlen=100)
    recent_losses = deque(maxlen=500)
    start_time = time.time()
    first_ep = state.episode + 1

    for ep in range(first_ep, first_ep + int(n_episodes)):
        state.episode = ep
        env.reset(seed=None if seed is None else seed + ep)

        # State is the difference between two consecutive screens.
        last_screen = env.screen()
        current_screen = env.screen()
        s = current_screen - last_screen

        ep_losses: list[float] = []
        steps = 0

        for _ in count():
            # --- Action selection (epsilon-greedy) ---------------------------
            action = select_action(
                policy_net,
                s,
                state.global_step,
                env.n_actions,
                state.rng,
                eps_start=eps_start,
                eps_end=eps_end,
                eps_decay=eps_decay,
            )
            state.global_step += 1
            steps += 1

            # --- Env step -----------------------------------------------------
            reward, done, _ = env.step(action)

            last_screen = current_screen
            current_screen = env.screen()
            s2 = current_screen - last_screen

            # --- Store transition --------------------------------------------
            replay.push(Transition(state=s, action=action, reward=reward, next_state=s2, done=done))
            s = s2

            # --- Learning update ---------------------------------------------
            try:
                batch = replay.sample(batch_size)
            except InsufficientDataError:
                # Still warming up; try again next step.
                batch = None

            if batch is not None:
                loss = dqn_loss(policy_net, target_net, batch, gamma, device)
                loss_val = optimize_step(policy_net, optimizer, loss, grad_clip_value)
                ep_losses.append(loss_val)
                recent_losses.append(loss_val)

            if done or (max_steps is not None and steps >= int(max_steps)):
                break

        # --- End of episode bookkeeping --------------------------------------
        eps = exponential_epsilon(state.global_step, eps_start, eps_end, eps_decay)
        state.episode_durations.append(steps)
        state.episode_losses.append(float(np.mean(ep_losses)) if ep_losses else math.nan)
        state.episode_epsilons.append(eps)
        recent_durations.append(steps)

        synced = state.scheduler.maybe_sync(ep, policy_net, target_net)

        new_best = steps > state.best_duration
        if new_best:
            state.best_duration = steps

        # --- Logging ----------------------------------------------------------
        if log_interval > 0 and ep % int(log_interval) == 0:
            avg_d = float(np.mean(recent_durations)) if recent_durations else 0.0
            avg_loss = float(np.mean(recent_losses)) if recent_losses else 0.0
            print(
                f"  Ep {ep:>5d} │ "
                f"Dur={steps:>4d} │ "
                f"Avg100={avg_d:>7.2f} │ "
                f"ε={eps:.4f} │ "
                f"Loss={avg_loss:.4f} │ "
                f"buf={len(replay):>6d} │ "
                f"next_sync={state.scheduler.next_sync_episode}"
            )
        if synced and log_interval > 0:
            print(f"  ↻ Target net synced at episode {ep} (interval now {state.scheduler.interval})")

        # --- Checkpoints ------------------------------------------------------
        names = []
        if save_interval > 0:
            if new_best:
                names.append("best_model.pt")
            if ep % int(save_interval) == 0:
                names.append(f"checkpoint_ep{ep}.pt")
        for name in names:
            save_checkpoint(
                os.path.join(save_dir, name),
                episode=ep,
                policy_net=policy_net,
                target_net=target_net,
                optimizer=optimizer,
                epsilon=eps,
                global_step=state.global_step,
                best_duration=state.best_duration,
                sync_state=state.scheduler.state_dict(),
            )

        if on_episode_end is not None and on_episode_end(state):
            break

    elapsed = float(time.time() - start_time)

    return {
        "episodes": int(state.episode - first_ep + 1),
        "global_step": int(state.global_step),
        "best_duration": int(state.best_duration),
        "mean_last_100": float(np.mean(recent_durations)) if recent_durations else 0.0,
        "syncs": list(state.scheduler.sync_history),
        "elapsed": elapsed,
    }
