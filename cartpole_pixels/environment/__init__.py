"""Environment side: rendering CartPole and turning frames into tensors."""

from .pixel_env import PixelCartPole, make_env
from .screen import get_cart_location, get_screen

__all__ = ["PixelCartPole", "make_env", "get_cart_location", "get_screen"]
