"""
Snapping of raw minute values to the editing grid.
"""

import math

DEFAULT_GRID_SIZE = 15


def snap(minutes: float, grid_size: int = DEFAULT_GRID_SIZE) -> int:
    """
    Round ``minutes`` to the nearest multiple of ``grid_size``.

    Ties round half-up (7.5 -> 15 on a 15 minute grid), the same way
    pointer positions are rounded. The result is not clamped to the day.

    Raises:
        ValueError: If grid_size is not positive
    """
    if grid_size <= 0:
        raise ValueError(f"grid_size must be greater than zero, got {grid_size}")
    return int(math.floor(minutes / grid_size + 0.5)) * grid_size
