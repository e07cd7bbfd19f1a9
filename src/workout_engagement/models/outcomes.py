"""Typed results of store operations."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .progress import GrantedCoupon, UserProgress, to_camel
from .rewards import AchievementDefinition, PrizeDefinition, StreakMilestone


class PersistenceReport(BaseModel):
    """Which backends accepted the last save."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    local_saved: bool = Field(default=False)
    remote_saved: Optional[bool] = Field(None, description="None when no remote store is configured")
    errors: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.local_saved and self.remote_saved is not False


class WorkoutStatus(str, Enum):
    RECORDED = "recorded"
    ALREADY_RECORDED = "already_recorded"


class WorkoutOutcome(BaseModel):
    """Result of completing a workout."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    status: WorkoutStatus
    points_earned: int = Field(default=0, description="Points from the workout itself")
    streak_days: int = Field(default=0, description="Streak after this workout")
    new_achievements: List[AchievementDefinition] = Field(default_factory=list)
    achievement_points: int = Field(default=0, description="Points from unlocked achievements")
    milestone: Optional[StreakMilestone] = Field(None, description="Streak milestone reached")
    milestone_points: int = Field(default=0)
    protection_days_used: int = Field(default=0)
    level_up: bool = Field(default=False)
    progress: UserProgress
    persistence: Optional[PersistenceReport] = Field(None, description="None for a no-op")

    @property
    def recorded(self) -> bool:
        return self.status == WorkoutStatus.RECORDED


class SpinStatus(str, Enum):
    WON = "won"
    INSUFFICIENT_POINTS = "insufficient_points"


class SpinOutcome(BaseModel):
    """Result of a reward wheel spin."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    status: SpinStatus
    cost: int
    prize: Optional[PrizeDefinition] = None
    coupon: Optional[GrantedCoupon] = Field(None, description="Coupon granted by the prize")
    progress: UserProgress
    persistence: Optional[PersistenceReport] = None


class RedemptionStatus(str, Enum):
    REDEEMED = "redeemed"
    INSUFFICIENT_POINTS = "insufficient_points"


class RedemptionOutcome(BaseModel):
    """Result of buying a catalog coupon with points."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    status: RedemptionStatus
    cost: int
    coupon: Optional[GrantedCoupon] = None
    progress: UserProgress
    persistence: Optional[PersistenceReport] = None
