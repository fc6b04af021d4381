"""Screen capture helpers.

The agent never sees the CartPole state vector, only pixels. A raw
rgb_array frame (H, W, 3) is turned into a small grayscale tensor:

  1. keep the horizontal band that contains cart and pole (40%-80% of height)
  2. optionally keep only a window of the width centred on the cart
  3. grayscale + resize so the shorter side becomes `req_width`
  4. scale to [0, 1] float32, shape (1, 1, H', W')

This file is the ONLY place that knows about OpenCV.
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

import cv2
import numpy as np

try:
    import torch
except ImportError as e:  # pragma: no cover
    raise ImportError("PyTorch is required. Install with: pip install torch") from e

# Rows of the rendered frame kept, as fractions of the height.
BAND_TOP = 0.4
BAND_BOTTOM = 0.8


def get_cart_location(x_threshold: float, cart_x: float, screen_width: int) -> int:
    """Pixel column of the middle of the cart."""
    world_width = x_threshold * 2
    scale = screen_width / world_width
    return int(math.floor(cart_x * scale + screen_width / 2.0))


def _view_window(cart_loc: int, width: int, view_width: int) -> Tuple[int, int]:
    # Slide the window so it stays inside the frame.
    half = view_width // 2
    if cart_loc <= half:
        return 0, view_width
    if cart_loc >= width - half:
        return width - view_width, width
    return cart_loc - half, cart_loc - half + view_width


def get_screen(
    frame: np.ndarray,
    req_width: int,
    cart_x: float,
    x_threshold: float,
    *,
    view_fraction: Optional[float] = None,
    device=None,
) -> Tuple[torch.Tensor, int]:
    """Preprocess one rendered frame.

    Args:
        frame: rgb_array from the env, shape (H, W, 3), uint8
        req_width: target length of the shorter side after resizing
        cart_x: cart position in world units (env.state[0])
        x_threshold: env.x_threshold (half the world width)
        view_fraction: if set, keep only this fraction of the width around the cart
        device: where the returned tensor should live

    Returns:
        (screen tensor (1, 1, H', W') float32 in [0, 1], cart column in the resized screen)
    """
    frame = np.asarray(frame)
    if frame.ndim != 3 or frame.shape[2] != 3:
        raise ValueError(f"expected an (H, W, 3) frame, got shape {frame.shape}")

    height, width = frame.shape[:2]

    # --- squash height ---------------------------------------------------------
    lbound = int(math.floor(height * BAND_TOP))
    ubound = int(math.floor(height * BAND_BOTTOM))
    band = frame[lbound:ubound + 1]  # both bounds inclusive

    # --- squash width (optional) ----------------------------------------------
    cart_loc = get_cart_location(x_threshold, cart_x, width)
    if view_fraction is not None:
        view_width = max(1, int(math.floor(width * float(view_fraction))))
        left, right = _view_window(cart_loc, width, view_width)
        band = band[:, left:right]
        cart_loc -= left

    # --- grayscale + resize ----------------------------------------------------
    band = np.ascontiguousarray(band, dtype=np.uint8)
    gray = cv2.cvtColor(band, cv2.COLOR_RGB2GRAY)
    band_h, band_w = gray.shape
    ratio = req_width / min(band_w, band_h)
    new_w = max(1, int(round(band_w * ratio)))
    new_h = max(1, int(round(band_h * ratio)))
    resized = cv2.resize(gray, (new_w, new_h), interpolation=cv2.INTER_AREA)

    screen = torch.from_numpy(resized.astype(np.float32) / 255.0)
    screen = screen.unsqueeze(0).unsqueeze(0)
    if device is not None:
        screen = screen.to(device)
    return screen, int(math.floor(cart_loc * ratio))
