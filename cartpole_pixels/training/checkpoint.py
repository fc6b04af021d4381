"""Checkpoint save/load.

Two flavours:

1. Training checkpoints (`save_checkpoint` / `load_checkpoint`) hold enough
   state to resume:
     - policy and target network weights
     - optimizer state
     - episode counter / global step
     - epsilon value (useful for logging)
     - target-sync schedule
     - best episode duration so far

2. Model file pairs (`save_model` / `load_model`) for sharing a trained net:
     {prefix}-model.pt    the whole module (architecture + weights)
     {prefix}-weights.pt  the ordered parameter list
   Loading rebuilds the module, then overwrites its parameters from the
   weights file.

Note on torch.load(weights_only=...)
-----------------------------------
Training checkpoints are plain tensors/dicts and load with weights_only=True.
The model file stores a pickled nn.Module, which needs weights_only=False,
so only load model files you produced yourself.
"""

from __future__ import annotations

import copy
import os
from typing import Any

try:
    import torch
    import torch.nn as nn
except ImportError as e:  # pragma: no cover
    raise ImportError("PyTorch is required. Install with: pip install torch") from e

from .network import load_parameters, snapshot_parameters


def save_checkpoint(
    filepath: str,
    *,
    episode: int,
    policy_net,
    target_net,
    optimizer,
    epsilon: float,
    global_step: int,
    best_duration: int,
    sync_state: dict[str, Any] | None = None,
) -> None:
    """Write a resumable training snapshot to `filepath`.

    `sync_state` is `TargetSyncScheduler.state_dict()`; without it a resumed
    run restarts the target-sync schedule from its configured interval.
    """
    os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)

    torch.save(
        {
            "episode": int(episode),
            "global_step": int(global_step),
            "best_duration": int(best_duration),
            "epsilon": float(epsilon),
            "policy_state_dict": policy_net.state_dict(),
            "target_state_dict": target_net.state_dict(),
            "optimizer_state_dict": optimizer.state_dict(),
            "sync_state": dict(sync_state) if sync_state is not None else None,
        },
        filepath,
    )


def load_checkpoint(filepath: str, policy_net, target_net, optimizer, device, scheduler=None):
    """Restore networks, optimizer and (if given) the sync scheduler.

    Returns the raw checkpoint dict so the caller can pick up
    episode / global_step / best_duration.
    """
    ckpt = torch.load(filepath, map_location=device, weights_only=True)

    policy_net.load_state_dict(ckpt["policy_state_dict"])
    target_net.load_state_dict(ckpt["target_state_dict"])
    optimizer.load_state_dict(ckpt["optimizer_state_dict"])
    if scheduler is not None and ckpt.get("sync_state") is not None:
        scheduler.load_state_dict(ckpt["sync_state"])
    return ckpt


def model_paths(prefix: str) -> tuple[str, str]:
    return f"{prefix}-model.pt", f"{prefix}-weights.pt"


def save_model(model: nn.Module, prefix: str) -> tuple[str, str]:
    """Write the {prefix}-model.pt / {prefix}-weights.pt pair (CPU tensors)."""
    model_file, weights_file = model_paths(prefix)
    os.makedirs(os.path.dirname(model_file) or ".", exist_ok=True)

    m = copy.deepcopy(model).to("cpu")
    torch.save(m, model_file)
    torch.save(snapshot_parameters(m), weights_file)
    return model_file, weights_file


def load_model(prefix: str, device="cpu") -> nn.Module:
    """Rebuild a model saved with `save_model` and move it to `device`."""
    model_file, weights_file = model_paths(prefix)
    m = torch.load(model_file, map_location="cpu", weights_only=False)
    w = torch.load(weights_file, map_location="cpu", weights_only=True)
    load_parameters(m, w)
    return m.to(device)
