"""Points earned for a completed workout."""

from dataclasses import dataclass

from ..config import Settings
from ..exceptions import ValidationError


@dataclass(frozen=True)
class PointsRules:
    """Point values for a workout completion."""
    base_points: int = 50
    streak_bonus_per_day: int = 5
    morning_bonus: int = 10
    morning_start_hour: int = 6
    morning_end_hour: int = 12  # exclusive

    @classmethod
    def from_settings(cls, settings: Settings) -> "PointsRules":
        return cls(
            base_points=settings.base_workout_points,
            streak_bonus_per_day=settings.streak_bonus_per_day,
            morning_bonus=settings.morning_bonus_points,
            morning_start_hour=settings.morning_start_hour,
            morning_end_hour=settings.morning_end_hour,
        )

    def is_morning(self, hour: int) -> bool:
        return self.morning_start_hour <= hour < self.morning_end_hour


DEFAULT_POINTS_RULES = PointsRules()


def compute_points(
    new_streak: int,
    completion_hour: int,
    rules: PointsRules = DEFAULT_POINTS_RULES,
) -> int:
    """
    Points for one workout: base + streak bonus + morning bonus.

    Args:
        new_streak: Streak length including this workout (>= 1)
        completion_hour: Local hour of completion (0-23)
        rules: Point values

    Returns:
        Points earned, always positive
    """
    if not 0 <= completion_hour <= 23:
        raise ValidationError(
            f"completion_hour must be in 0..23, got {completion_hour}",
            field="completion_hour",
        )
    if new_streak < 1:
        raise ValidationError(
            f"new_streak must be at least 1, got {new_streak}",
            field="new_streak",
        )

    points = rules.base_points
    points += rules.streak_bonus_per_day * new_streak
    if rules.is_morning(completion_hour):
        points += rules.morning_bonus
    return points
