"""Replay buffer utilities.

Why this file exists
--------------------
Experience replay decorrelates updates: the loop learns from a random mix
of old and recent steps instead of the last few frames. It is its own
module so tests can poke at eviction and sampling without a network.

Transitions hold whatever tensors the environment produced (screen
differences). The buffer never looks inside them, so it does not care
which device they live on. Tensors are stacked and moved only when a batch
is about to be used for an update (`stack_batch`).
"""

from __future__ import annotations

import random
from collections import deque
from dataclasses import dataclass
from typing import Any, List, Optional

try:
    import torch
except ImportError as e:  # pragma: no cover
    raise ImportError("PyTorch is required. Install with: pip install torch") from e

from ..errors import ConfigurationError, InsufficientDataError


@dataclass(frozen=True, slots=True)
class Transition:
    """A single experience tuple."""

    state: Any
    action: int
    reward: float
    next_state: Any
    done: bool


class ReplayBuffer:
    """Fixed-size circular replay buffer.

    Once full, every push drops the oldest transition.
    """

    def __init__(self, capacity: int, rng: Optional[random.Random] = None):
        capacity = int(capacity)
        if capacity <= 0:
            raise ConfigurationError(f"replay capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._buf: deque[Transition] = deque(maxlen=capacity)
        self._rng = rng if rng is not None else random.Random()

    def push(self, t: Transition) -> None:
        self._buf.append(t)

    def sample(self, batch_size: int) -> List[Transition]:
        """Uniform random sample without replacement.

        Raises:
            InsufficientDataError: if fewer than `batch_size` transitions are held.
        """
        batch_size = int(batch_size)
        if batch_size > len(self._buf):
            raise InsufficientDataError(batch_size, len(self._buf))
        return self._rng.sample(self._buf, batch_size)

    def size(self) -> int:
        return len(self._buf)

    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._buf)

    def __iter__(self):
        # Oldest first.
        return iter(self._buf)


def stack_batch(batch: List[Transition], device):
    """Turn a list of transitions into training tensors on `device`.

    Returns:
        states:      (B, C, H, W) float32
        actions:     (B,)         int64
        rewards:     (B,)         float32
        next_states: (B, C, H, W) float32
        dones:       (B,)         float32 (1.0 if done else 0.0)
    """
    states = torch.cat([t.state for t in batch]).to(device=device, dtype=torch.float32)
    next_states = torch.cat([t.next_state for t in batch]).to(device=device, dtype=torch.float32)
    actions = torch.tensor([t.action for t in batch], dtype=torch.int64, device=device)
    rewards = torch.tensor([t.reward for t in batch], dtype=torch.float32, device=device)
    dones = torch.tensor([t.done for t in batch], dtype=torch.float32, device=device)
    return states, actions, rewards, next_states, dones
