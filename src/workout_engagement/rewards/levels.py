"""Level curve over points."""

from ..models.rewards import LevelInfo


def get_points_for_level(level: int) -> int:
    """
    Calculate points required to reach a given level.

    Uses a power curve: points = 100 * level^1.5
    Level 1: 0 points (starting point)
    Level 2: 282 points
    Level 3: ~519 points
    Level 5: ~1118 points
    Level 10: ~3162 points

    Args:
        level: The target level

    Returns:
        Total points required to reach that level
    """
    if level <= 1:
        return 0
    return int(100 * (level ** 1.5))


def calculate_level(points: int) -> LevelInfo:
    """
    Calculate level information from a points total.

    Args:
        points: Points balance

    Returns:
        LevelInfo with current level and progress
    """
    if points <= 0:
        return LevelInfo(
            level=1,
            points_required=0,
            points_for_next=get_points_for_level(2),
            points_in_level=0,
            progress_percent=0.0,
        )

    level = 1
    while get_points_for_level(level + 1) <= points:
        level += 1

    points_required = get_points_for_level(level)
    points_for_next_level = get_points_for_level(level + 1)
    points_needed = points_for_next_level - points_required
    points_in_level = points - points_required

    progress = (points_in_level / points_needed * 100) if points_needed > 0 else 100.0

    return LevelInfo(
        level=level,
        points_required=points_required,
        points_for_next=points_for_next_level - points,
        points_in_level=points_in_level,
        progress_percent=round(progress, 1),
    )


def level_for_points(points: int) -> int:
    return calculate_level(points).level
