"""User progress record and its persistence envelope."""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


class GrantedCoupon(BaseModel):
    """A coupon owned by the user, won on the wheel or bought with points."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    grant_id: str = Field(..., description="Unique id of this grant")
    coupon_id: str = Field(..., description="Catalog coupon id")
    title: str = Field(..., description="Coupon title at grant time")
    brand: str = Field(default="", description="Partner brand")
    discount: str = Field(default="", description="Discount label, e.g. '10%'")
    source: str = Field(default="wheel", description="'wheel' or 'redemption'")
    granted_at: datetime = Field(..., description="When the coupon was granted")
    expires_at: datetime = Field(..., description="granted_at + expiration days")

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class UserProgress(BaseModel):
    """Engagement state of one user.

    Serialized with camelCase field names (totalWorkouts, currentStreak, ...).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    total_workouts: int = Field(default=0, ge=0, description="Completed workouts")
    current_streak: int = Field(default=0, ge=0, description="Current streak in days")
    longest_streak: int = Field(default=0, ge=0, description="Longest streak achieved")
    last_workout_date: Optional[date] = Field(None, description="Local date of last workout")
    streak_start_date: Optional[date] = Field(None, description="Local date the streak began")
    points: int = Field(default=0, ge=0, description="Spendable points balance")
    level: int = Field(default=1, ge=1, description="Level derived from points")
    weekly_workouts: int = Field(default=0, ge=0, description="Workouts this week")
    monthly_workouts: int = Field(default=0, ge=0, description="Workouts this month")
    morning_workouts: int = Field(default=0, ge=0, description="Workouts in the morning window")
    achievements: List[str] = Field(default_factory=list, description="Unlocked achievement ids")
    coupons: List[GrantedCoupon] = Field(default_factory=list, description="Granted coupons")
    wheel_spins: int = Field(default=0, ge=0, description="Total wheel spins")
    streak_protection_days: int = Field(default=0, ge=0, description="Streak protection credits")
    onboarding_completed: bool = Field(default=False, description="Onboarding bonus granted")

    def active_coupons(self, now: datetime) -> List[GrantedCoupon]:
        """Coupons that have not expired yet."""
        return [c for c in self.coupons if not c.is_expired(now)]


class ProgressDocument(BaseModel):
    """Persisted envelope around a user's progress.

    field_timestamps records, per UserProgress field name, the last time the
    field was mutated locally. The reconciliation merge relies on it, and on
    reset_at to drop achievements and coupons written before an account reset.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    user_id: str = Field(..., description="Owning user")
    progress: UserProgress = Field(default_factory=UserProgress)
    field_timestamps: Dict[str, datetime] = Field(default_factory=dict)
    updated_at: Optional[datetime] = Field(None, description="Last mutation time")
    reset_at: Optional[datetime] = Field(None, description="Time of the last account reset")

    @classmethod
    def new(cls, user_id: str) -> "ProgressDocument":
        """A document holding default progress."""
        return cls(user_id=user_id)

    def to_record(self) -> Dict[str, Any]:
        """JSON-compatible dict for storage backends."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ProgressDocument":
        return cls.model_validate(record)
