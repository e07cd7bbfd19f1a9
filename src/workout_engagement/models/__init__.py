"""Data models for user progress, reward definitions and operation outcomes."""

from .progress import GrantedCoupon, ProgressDocument, UserProgress, to_camel
from .rewards import (
    AchievementDefinition,
    AchievementReward,
    CouponCategory,
    CouponDefinition,
    CouponEffect,
    LevelInfo,
    PointsEffect,
    PrizeDefinition,
    PrizeEffect,
    PrizeType,
    StreakMilestone,
    StreakProtectionEffect,
)
from .outcomes import (
    PersistenceReport,
    RedemptionOutcome,
    RedemptionStatus,
    SpinOutcome,
    SpinStatus,
    WorkoutOutcome,
    WorkoutStatus,
)

__all__ = [
    "to_camel",
    "UserProgress",
    "GrantedCoupon",
    "ProgressDocument",
    "AchievementDefinition",
    "AchievementReward",
    "CouponCategory",
    "CouponDefinition",
    "CouponEffect",
    "LevelInfo",
    "PointsEffect",
    "PrizeDefinition",
    "PrizeEffect",
    "PrizeType",
    "StreakMilestone",
    "StreakProtectionEffect",
    "PersistenceReport",
    "RedemptionOutcome",
    "RedemptionStatus",
    "SpinOutcome",
    "SpinStatus",
    "WorkoutOutcome",
    "WorkoutStatus",
]
