"""
Level/XP Progression.

Level n starts at 100 * (n - 1)^2 cumulative XP, so each level costs more
than the last.
"""

from __future__ import annotations

import math

from retention.core.models import LevelInfo

XP_PER_LEVEL_UNIT = 100


def level_threshold(level: int) -> int:
    """Cumulative XP at which ``level`` begins."""
    return XP_PER_LEVEL_UNIT * (max(1, level) - 1) ** 2


def level_info(xp: float) -> LevelInfo:
    """
    Level and progress towards the next level.

    Args:
        xp: Cumulative XP (negative clamps to 0)

    Returns:
        LevelInfo; level_info(0) is level 1 at 0%
    """
    xp = max(0, int(xp))
    level = math.isqrt(xp // XP_PER_LEVEL_UNIT) + 1

    floor_xp = level_threshold(level)
    next_xp = level_threshold(level + 1)
    progress = (xp - floor_xp) / (next_xp - floor_xp) * 100

    return LevelInfo(
        level=level,
        progress_percent=progress,
        xp=xp,
        level_floor_xp=floor_xp,
        next_level_xp=next_xp,
    )
