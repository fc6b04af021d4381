"""Epsilon-greedy action selection.

Everything here is a plain function of its inputs. Randomness comes from
an injected `random.Random`, so a seeded RNG replays the exact same
decisions (handy for tests).
"""

from __future__ import annotations

import random
from typing import Callable

try:
    import torch
    import torch.nn as nn
except ImportError as e:  # pragma: no cover
    raise ImportError("PyTorch is required. Install with: pip install torch") from e

from ..errors import InvalidActionError
from .schedules import exponential_epsilon


def check_action(action, n_actions: int) -> int:
    """Return `action` as an int, or raise if it is not a valid index."""
    try:
        idx = int(action)
    except (TypeError, ValueError) as e:
        raise InvalidActionError(action, n_actions) from e
    if isinstance(action, bool) or idx != action or not 0 <= idx < int(n_actions):
        raise InvalidActionError(action, n_actions)
    return idx


def greedy_action(q_values: torch.Tensor) -> int:
    """Argmax over a 1D (or (1, A)) row of Q-values.

    Ties go to the lowest action index.
    """
    q = q_values.detach().reshape(-1)
    best = torch.nonzero(q == q.max(), as_tuple=False)
    return int(best[0].item())


def epsilon_greedy(
    q_fn: Callable[[torch.Tensor], torch.Tensor],
    state: torch.Tensor,
    epsilon: float,
    n_actions: int,
    rng: random.Random,
) -> int:
    """Pick an action given a fixed epsilon.

    `q_fn` is only called on the greedy branch.
    """
    # Exploit
    if rng.random() > epsilon:
        return greedy_action(q_fn(state))
    # Explore
    return rng.randrange(int(n_actions))


def select_action(
    policy_net: nn.Module,
    state: torch.Tensor,
    global_step: int,
    n_actions: int,
    rng: random.Random,
    *,
    eps_start: float,
    eps_end: float,
    eps_decay: float,
) -> int:
    """Epsilon-greedy action for the current global step."""
    eps = exponential_epsilon(global_step, eps_start, eps_end, eps_decay)

    def q_fn(s: torch.Tensor) -> torch.Tensor:
        with torch.no_grad():
            return policy_net(s)

    return epsilon_greedy(q_fn, state, eps, n_actions, rng)
