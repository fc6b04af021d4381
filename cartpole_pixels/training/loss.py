"""Bootstrap targets, Huber loss and the optimizer step.

Two independent stability guards live here:
  - Huber loss: quadratic for |d| <= 1, linear beyond, so one outlier
    transition cannot produce a huge gradient.
  - Elementwise gradient clamp to [-clip, clip] before the optimizer step.
"""

from __future__ import annotations

from typing import Iterable, List

try:
    import torch
    import torch.nn as nn
    import torch.nn.functional as F
    import torch.optim as optim
except ImportError as e:  # pragma: no cover
    raise ImportError("PyTorch is required. Install with: pip install torch") from e

from ..errors import ConfigurationError
from .replay import Transition, stack_batch


def huber(d: float) -> float:
    """Scalar Huber loss with delta = 1."""
    a = abs(float(d))
    if a <= 1.0:
        return 0.5 * a * a
    return a - 0.5


def compute_targets(
    target_net: nn.Module,
    rewards: torch.Tensor,
    next_states: torch.Tensor,
    dones: torch.Tensor,
    gamma: float,
) -> torch.Tensor:
    """y = r + gamma * max_a Q_target(s', a), with the bootstrap term zeroed on terminal steps."""
    with torch.no_grad():
        next_q = target_net(next_states).max(dim=1).values
        return rewards + gamma * (1.0 - dones) * next_q


def dqn_loss(
    policy_net: nn.Module,
    target_net: nn.Module,
    batch: List[Transition],
    gamma: float,
    device,
) -> torch.Tensor:
    """Mean Huber loss between Q(s, a) and the bootstrap targets for `batch`."""
    s, a, r, s2, done = stack_batch(batch, device)

    # Q(s,a) for the actions actually taken.
    q_vals = policy_net(s).gather(1, a.unsqueeze(1)).squeeze(1)
    y = compute_targets(target_net, r, s2, done, gamma)

    return F.smooth_l1_loss(q_vals, y, beta=1.0)


def optimize_step(
    policy_net: nn.Module,
    optimizer: optim.Optimizer,
    loss: torch.Tensor,
    clip_value: float = 1.0,
) -> float:
    """Backprop `loss`, clamp every gradient element, step the optimizer."""
    optimizer.zero_grad(set_to_none=True)
    loss.backward()
    nn.utils.clip_grad_value_(policy_net.parameters(), clip_value)
    optimizer.step()
    return float(loss.item())


def make_optimizer(name: str, params: Iterable, lr: float) -> optim.Optimizer:
    """Build the optimizer by name ("rmsprop" or "adam")."""
    name = str(name).lower()
    if name == "rmsprop":
        return optim.RMSprop(params, lr=lr)
    if name == "adam":
        return optim.Adam(params, lr=lr)
    raise ConfigurationError(f"unknown optimizer {name!r} (expected 'rmsprop' or 'adam')")
