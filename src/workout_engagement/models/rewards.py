"""Static reward definitions: achievements, wheel prizes, coupons, milestones."""

from enum import Enum
from typing import TYPE_CHECKING, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import ConfigurationError
from .progress import to_camel

if TYPE_CHECKING:
    from .progress import UserProgress


class AchievementReward(BaseModel):
    """Reward credited when an achievement unlocks."""

    model_config = ConfigDict(frozen=True)

    points: int = Field(default=0, ge=0)


class AchievementDefinition(BaseModel):
    """Achievement definition.

    The unlock condition is `progress.<condition_type> >= condition_value`.
    condition_type must be one of the counters that only grow on workout
    completion: total_workouts, longest_streak or morning_workouts.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: str = Field(..., description="Unique achievement identifier")
    title: str = Field(..., description="Display name of the achievement")
    description: str = Field(..., description="Description of how to unlock")
    icon: str = Field(..., description="Icon name")
    condition_type: str = Field(..., description="UserProgress counter to compare")
    condition_value: int = Field(..., description="Threshold for the counter")
    reward: AchievementReward = Field(default_factory=AchievementReward)
    display_order: int = Field(default=0, description="Order for display")

    def is_met(self, progress: "UserProgress") -> bool:
        return getattr(progress, self.condition_type) >= self.condition_value


class PrizeType(str, Enum):
    """Kinds of reward wheel prizes."""
    POINTS = "points"
    COUPON = "coupon"
    STREAK_PROTECTION = "streak_protection"


class PointsEffect(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["points"] = "points"
    points: int


class CouponEffect(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["coupon"] = "coupon"
    coupon_id: str


class StreakProtectionEffect(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["streak_protection"] = "streak_protection"
    days: int


PrizeEffect = Union[PointsEffect, CouponEffect, StreakProtectionEffect]


class PrizeDefinition(BaseModel):
    """One segment of the reward wheel."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: str = Field(..., description="Unique prize identifier")
    label: str = Field(..., description="Label shown on the wheel")
    type: PrizeType = Field(..., description="What the prize grants")
    value: Union[int, str] = Field(..., description="Points, coupon id or protection days")
    probability_weight: float = Field(..., description="Relative selection weight")

    @property
    def effect(self) -> PrizeEffect:
        """The prize as a tagged effect."""
        if self.type == PrizeType.POINTS:
            if not isinstance(self.value, int) or self.value < 0:
                raise ConfigurationError(
                    f"Points prize needs a non-negative integer value, got {self.value!r}",
                    entry_id=self.id,
                )
            return PointsEffect(points=self.value)
        if self.type == PrizeType.COUPON:
            if not isinstance(self.value, str) or not self.value:
                raise ConfigurationError(
                    f"Coupon prize needs a coupon id, got {self.value!r}",
                    entry_id=self.id,
                )
            return CouponEffect(coupon_id=self.value)
        if self.type == PrizeType.STREAK_PROTECTION:
            if not isinstance(self.value, int) or self.value <= 0:
                raise ConfigurationError(
                    f"Streak protection prize needs a positive day count, got {self.value!r}",
                    entry_id=self.id,
                )
            return StreakProtectionEffect(days=self.value)
        raise ConfigurationError(f"Unknown prize type: {self.type}", entry_id=self.id)


class CouponCategory(str, Enum):
    """Partner coupon categories."""
    SUPPLEMENT = "supplement"
    EQUIPMENT = "equipment"
    CLOTHING = "clothing"
    FOOD = "food"


class CouponDefinition(BaseModel):
    """Partner coupon in the catalog."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: str = Field(..., description="Unique coupon identifier")
    title: str
    description: str
    discount: str
    brand: str
    points_cost: int = Field(..., description="Points needed to redeem from the catalog")
    expiration_days: int = Field(..., description="Validity after grant")
    category: CouponCategory


class StreakMilestone(BaseModel):
    """Bonus and message for reaching a streak length."""

    model_config = ConfigDict(frozen=True)

    days: int
    points: int = Field(default=0, ge=0)
    message: str = ""


class LevelInfo(BaseModel):
    """Information about a user's level."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    level: int = Field(..., description="Current level")
    points_required: int = Field(..., description="Total points required for this level")
    points_for_next: int = Field(..., description="Points needed to reach next level")
    points_in_level: int = Field(..., description="Points earned within current level")
    progress_percent: float = Field(..., description="Progress to next level (0-100)")
