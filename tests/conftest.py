from __future__ import annotations

import numpy as np
import pytest
from gymnasium import spaces

from cartpole_pixels.environment import PixelCartPole


class FakeCartPoleEnv:
    """Stands in for gym.make("CartPole-v1", render_mode="rgb_array").

    Renders a black (60, 120, 3) frame with a white block where the cart is.
    Every episode lasts exactly `episode_len` steps.
    """

    x_threshold = 2.4

    def __init__(self, episode_len: int = 6, height: int = 60, width: int = 120):
        self.episode_len = episode_len
        self.height = height
        self.width = width
        self.action_space = spaces.Discrete(2)
        self.state = np.zeros(4, dtype=np.float64)
        self.steps = 0
        self.closed = False
        self.actions: list[int] = []

    @property
    def unwrapped(self):
        return self

    def reset(self, seed=None, options=None):
        self.state = np.zeros(4, dtype=np.float64)
        self.steps = 0
        return self.state.copy(), {}

    def step(self, action):
        self.actions.append(action)
        self.state[0] += 0.1 if action == 1 else -0.1
        self.steps += 1
        terminated = self.steps >= self.episode_len
        return self.state.copy(), 1.0, terminated, False, {}

    def render(self):
        frame = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        col = int((self.state[0] / (2 * self.x_threshold) + 0.5) * self.width)
        col = min(max(col, 2), self.width - 3)
        frame[int(self.height * 0.5):int(self.height * 0.7), col - 2:col + 3] = 255
        return frame

    def close(self):
        self.closed = True


@pytest.fixture
def fake_gym_env():
    return FakeCartPoleEnv()


@pytest.fixture
def pixel_env(fake_gym_env):
    # 60x120 frame -> 25-row band (rows 24..48) -> resized to 32x154
    return PixelCartPole(fake_gym_env, screen_width=32)
