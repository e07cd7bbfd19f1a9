"""Pure reward rules: streaks, points, achievements, levels and the wheel."""

from .achievements import evaluate
from .levels import calculate_level, get_points_for_level, level_for_points
from .points import DEFAULT_POINTS_RULES, PointsRules, compute_points
from .prize_selector import select_prize
from .streak import (
    ProtectedStreak,
    StreakResult,
    apply_streak_protection,
    compute_streak,
    milestone_for,
)
from .table import RewardTable, build_reward_table

__all__ = [
    "evaluate",
    "calculate_level",
    "get_points_for_level",
    "level_for_points",
    "DEFAULT_POINTS_RULES",
    "PointsRules",
    "compute_points",
    "select_prize",
    "ProtectedStreak",
    "StreakResult",
    "apply_streak_protection",
    "compute_streak",
    "milestone_for",
    "RewardTable",
    "build_reward_table",
]
