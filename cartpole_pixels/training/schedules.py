"""Schedules (epsilon, etc.)."""

from __future__ import annotations

import math

from ..errors import ConfigurationError


def exponential_epsilon(step: int, start: float, end: float, decay: float) -> float:
    """Exponential epsilon decay over environment steps.

    - At step 0: epsilon = start
    - As step grows: epsilon -> end (never below it)
    """
    if float(decay) == 0.0:
        raise ConfigurationError("epsilon decay constant must be non-zero")
    return float(end + (start - end) * math.exp(-int(step) / float(decay)))
