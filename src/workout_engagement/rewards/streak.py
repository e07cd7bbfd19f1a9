"""Consecutive-day streak rules.

All comparisons are between local calendar dates. Elapsed-hour arithmetic
is never used, so DST shifts and late-night workouts cannot break a streak.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from ..models.rewards import StreakMilestone


@dataclass(frozen=True)
class StreakResult:
    """Outcome of a streak computation."""
    new_streak: int
    is_new_streak: bool
    already_recorded: bool = False


@dataclass(frozen=True)
class ProtectedStreak:
    """A streak bridged over missed days with protection credits."""
    new_streak: int
    days_used: int


def compute_streak(
    last_workout_date: Optional[date],
    today: date,
    current_streak: int,
) -> StreakResult:
    """
    Compute the streak after a workout completed on `today`.

    Args:
        last_workout_date: Local date of the previous workout, if any
        today: Local date of this workout
        current_streak: Streak before this workout

    Returns:
        StreakResult. already_recorded is True when a workout was already
        credited today; the caller must skip every downstream effect.
    """
    if last_workout_date is None:
        return StreakResult(new_streak=1, is_new_streak=True)

    days_diff = (today - last_workout_date).days

    if days_diff == 0:
        return StreakResult(
            new_streak=current_streak,
            is_new_streak=False,
            already_recorded=True,
        )
    if days_diff == 1:
        return StreakResult(new_streak=current_streak + 1, is_new_streak=False)

    # Gap of two or more days, or the device clock moved backwards
    return StreakResult(new_streak=1, is_new_streak=True)


def apply_streak_protection(
    last_workout_date: Optional[date],
    today: date,
    current_streak: int,
    protection_days: int,
) -> Optional[ProtectedStreak]:
    """
    Bridge missed days with streak protection credits.

    Returns None when protection does not apply: no previous workout, no
    gap, a backward clock jump, or not enough credits for every missed day.
    """
    if last_workout_date is None or current_streak <= 0:
        return None

    days_diff = (today - last_workout_date).days
    if days_diff < 2:
        return None

    missed_days = days_diff - 1
    if protection_days < missed_days:
        return None

    return ProtectedStreak(new_streak=current_streak + 1, days_used=missed_days)


def milestone_for(
    streak_days: int,
    milestones: Iterable[StreakMilestone],
) -> Optional[StreakMilestone]:
    """Milestone reached exactly at this streak length, if any."""
    for milestone in milestones:
        if milestone.days == streak_days:
            return milestone
    return None
