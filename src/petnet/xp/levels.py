"""Level computation.

One linear curve for both accounts and pets: every 100 XP is a level and
a fresh account starts at level 1.
"""

from __future__ import annotations

XP_PER_LEVEL = 100


def level_from_xp(total_xp: int) -> int:
    """Level for *total_xp*: ``floor(total_xp / 100) + 1``."""
    if total_xp < 0:
        total_xp = 0
    return total_xp // XP_PER_LEVEL + 1


def xp_for_level(level: int) -> int:
    """Cumulative XP at which *level* starts."""
    return max(level - 1, 0) * XP_PER_LEVEL


def level_info(total_xp: int) -> dict:
    """Level plus progress within it, for progress bars."""
    total_xp = max(total_xp, 0)
    level = level_from_xp(total_xp)
    xp_into_level = total_xp - xp_for_level(level)
    return {
        "level": level,
        "xp_into_level": xp_into_level,
        "xp_for_level": XP_PER_LEVEL,
        "next_level": level + 1,
        "percentage": round(min(100.0, xp_into_level / XP_PER_LEVEL * 100), 2),
    }
