from __future__ import annotations

import math
import random

import numpy as np
import pytest
import torch
import torch.nn as nn

from cartpole_pixels.errors import ConfigurationError, InvalidActionError
from cartpole_pixels.training.policy import (
    check_action,
    epsilon_greedy,
    greedy_action,
    select_action,
)
from cartpole_pixels.training.schedules import exponential_epsilon


class FixedDraw:
    """random.Random stand-in with a fixed uniform draw."""

    def __init__(self, u: float, choice: int = 0):
        self.u = u
        self.choice = choice
        self.randrange_calls = 0

    def random(self):
        return self.u

    def randrange(self, n):
        self.randrange_calls += 1
        return self.choice % n


# --- epsilon schedule ---------------------------------------------------------

def test_epsilon_start_value():
    assert exponential_epsilon(0, 0.9, 0.05, 200) == pytest.approx(0.9)


def test_epsilon_matches_formula():
    expected = 0.05 + 0.85 * math.exp(-1000 / 200)
    assert exponential_epsilon(1000, 0.9, 0.05, 200) == pytest.approx(expected)
    assert exponential_epsilon(1000, 0.9, 0.05, 200) == pytest.approx(0.0557, abs=1e-3)


def test_epsilon_non_increasing_and_bounded():
    values = [exponential_epsilon(t, 0.9, 0.05, 200) for t in range(0, 5000, 7)]
    assert all(b <= a for a, b in zip(values, values[1:]))
    assert all(v >= 0.05 for v in values)
    assert values[-1] == pytest.approx(0.05, abs=1e-6)


def test_epsilon_zero_decay_rejected():
    with pytest.raises(ConfigurationError):
        exponential_epsilon(10, 0.9, 0.05, 0)


# --- greedy / epsilon-greedy --------------------------------------------------

def test_greedy_picks_argmax():
    assert greedy_action(torch.tensor([0.1, 0.7, 0.3])) == 1
    assert greedy_action(torch.tensor([[2.0, -1.0]])) == 0


def test_greedy_ties_go_to_lowest_index():
    assert greedy_action(torch.tensor([1.0, 3.0, 3.0, 3.0])) == 1
    assert greedy_action(torch.zeros(5)) == 0


def test_exploit_when_draw_above_epsilon():
    calls = []

    def q_fn(s):
        calls.append(s)
        return torch.tensor([[0.0, 5.0]])

    rng = FixedDraw(u=0.5, choice=0)
    assert epsilon_greedy(q_fn, torch.zeros(1, 1), 0.1, 2, rng) == 1
    assert len(calls) == 1
    assert rng.randrange_calls == 0


def test_explore_when_draw_at_or_below_epsilon():
    def q_fn(s):
        raise AssertionError("network should not be queried when exploring")

    rng = FixedDraw(u=0.1, choice=3)
    assert epsilon_greedy(q_fn, torch.zeros(1, 1), 0.1, 4, rng) == 3
    assert rng.randrange_calls == 1


def test_epsilon_greedy_reproducible_with_seed():
    q = torch.tensor([[0.2, 0.1, 0.9]])

    def run(seed):
        rng = random.Random(seed)
        return [epsilon_greedy(lambda s: q, None, 0.5, 3, rng) for _ in range(30)]

    assert run(3) == run(3)
    assert set(run(3)) <= {0, 1, 2}


def test_select_action_uses_schedule():
    net = nn.Identity()
    state = torch.tensor([[0.0, 0.0, 4.0]])
    # Step far along the schedule -> epsilon ~ 0.05 < 0.5 draw -> greedy.
    rng = FixedDraw(u=0.5, choice=0)
    a = select_action(net, state, 10_000, 3, rng, eps_start=0.9, eps_end=0.05, eps_decay=200)
    assert a == 2
    # At step 0 epsilon is 0.9 > 0.5 draw -> random branch.
    rng = FixedDraw(u=0.5, choice=1)
    a = select_action(net, state, 0, 3, rng, eps_start=0.9, eps_end=0.05, eps_decay=200)
    assert a == 1
    assert rng.randrange_calls == 1


# --- action validation --------------------------------------------------------

@pytest.mark.parametrize("bad", [-1, 2, 7, 1.5, True, "x", None])
def test_check_action_rejects(bad):
    with pytest.raises(InvalidActionError):
        check_action(bad, 2)


def test_check_action_accepts_numpy_ints():
    assert check_action(np.int64(1), 2) == 1
    assert check_action(0, 2) == 0
