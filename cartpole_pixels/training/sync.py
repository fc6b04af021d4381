"""Target-network synchronization schedule.

The target net is a frozen copy of the policy net, refreshed on an
episode schedule that starts sparse and tightens:

    interval = init
    next_sync = 1 + interval
    on episode == next_sync:
        copy policy -> target
        interval = max(min_interval, interval - decay)
        next_sync = episode + interval

With init=20, decay=5 the syncs land on episodes 21, 36, 46, 51, 52, 53, ...
A negative init disables the schedule and syncs after every episode.

A sync is always a full `load_state_dict` (weights and batch-norm
buffers), never a partial or soft update.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import List

try:
    import torch.nn as nn
except ImportError as e:  # pragma: no cover
    raise ImportError("PyTorch is required. Install with: pip install torch") from e


def hard_update(policy_net: nn.Module, target_net: nn.Module) -> None:
    """Copy every parameter and buffer of `policy_net` into `target_net`."""
    target_net.load_state_dict(copy.deepcopy(policy_net.state_dict()))


@dataclass
class TargetSyncScheduler:
    """Decides on which episodes the target net gets refreshed."""

    interval: int = 20
    decay: int = 5
    min_interval: int = 1

    every_episode: bool = field(init=False)
    next_sync_episode: int = field(init=False)
    sync_history: List[int] = field(init=False, default_factory=list)

    def __post_init__(self):
        self.interval = int(self.interval)
        self.decay = int(self.decay)
        self.min_interval = max(1, int(self.min_interval))
        self.every_episode = self.interval < 0
        self.next_sync_episode = 1 + self.interval

    def is_due(self, episode: int) -> bool:
        if self.every_episode:
            return True
        return int(episode) == self.next_sync_episode

    def maybe_sync(self, episode: int, policy_net: nn.Module, target_net: nn.Module) -> bool:
        """Sync if `episode` is a scheduled sync point. Returns True if it synced."""
        if not self.is_due(episode):
            return False

        hard_update(policy_net, target_net)
        self.sync_history.append(int(episode))

        if not self.every_episode:
            self.interval = max(self.min_interval, self.interval - self.decay)
            self.next_sync_episode = int(episode) + self.interval
        return True

    def state_dict(self) -> dict:
        return {
            "interval": self.interval,
            "next_sync_episode": self.next_sync_episode,
            "sync_history": list(self.sync_history),
        }

    def load_state_dict(self, state: dict) -> None:
        self.interval = int(state["interval"])
        self.next_sync_episode = int(state["next_sync_episode"])
        self.sync_history = list(state.get("sync_history", []))
