"""CartPole seen through the renderer.

`PixelCartPole` hides the Gymnasium 5-tuple API and the state vector.
The training loop only gets rewards, done flags and preprocessed screens.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

import gymnasium as gym

try:
    import torch
except ImportError as e:  # pragma: no cover
    raise ImportError("PyTorch is required. Install with: pip install torch") from e

from ..training.policy import check_action
from .screen import get_screen


class PixelCartPole:
    """Wraps a Gymnasium env created with render_mode="rgb_array"."""

    def __init__(
        self,
        env: gym.Env,
        screen_width: int = 80,
        *,
        view_fraction: Optional[float] = None,
        device=None,
    ):
        self._env = env
        self.screen_width = int(screen_width)
        self.view_fraction = view_fraction
        self.device = device
        self.n_actions = int(env.action_space.n)
        self.last_frame = None

    @property
    def unwrapped(self):
        return self._env.unwrapped

    def reset(self, seed: Optional[int] = None) -> dict:
        _, info = self._env.reset(seed=seed)
        return info

    def step(self, action: int) -> Tuple[float, bool, dict]:
        """Apply `action`. Returns (reward, done, info)."""
        action = check_action(action, self.n_actions)
        _, reward, terminated, truncated, info = self._env.step(action)
        return float(reward), bool(terminated or truncated), info

    def screen(self) -> torch.Tensor:
        """Current frame as a (1, 1, H, W) tensor on `device`."""
        frame = self._env.render()
        self.last_frame = frame
        core = self._env.unwrapped
        tensor, _ = get_screen(
            frame,
            self.screen_width,
            float(core.state[0]),
            float(core.x_threshold),
            view_fraction=self.view_fraction,
            device=self.device,
        )
        return tensor

    def screen_shape(self) -> Tuple[int, int]:
        """(H, W) of the preprocessed screen. Needs a reset env."""
        _, _, h, w = self.screen().shape
        return int(h), int(w)

    def close(self) -> None:
        self._env.close()


def make_env(
    env_name: str = "CartPole-v1",
    screen_width: int = 80,
    *,
    view_fraction: Optional[float] = None,
    device=None,
    render_mode: str = "rgb_array",
    **kwargs: Any,
) -> PixelCartPole:
    """Factory: Gymnasium env + pixel wrapper."""
    env = gym.make(env_name, render_mode=render_mode, **kwargs)
    return PixelCartPole(env, screen_width, view_fraction=view_fraction, device=device)
