"""Notification hooks for unlocked achievements and streak milestones.

The engine does not deliver push notifications itself. It reports events to
a NotificationSink supplied by the host application, which schedules the
congratulatory messages.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Tuple

from ..models.rewards import AchievementDefinition, StreakMilestone


logger = logging.getLogger(__name__)


class NotificationSink(ABC):
    """Receives engagement events worth telling the user about."""

    @abstractmethod
    async def achievement_unlocked(
        self,
        user_id: str,
        achievement: AchievementDefinition,
    ) -> None:
        pass

    @abstractmethod
    async def streak_milestone_reached(
        self,
        user_id: str,
        milestone: StreakMilestone,
        streak_days: int,
    ) -> None:
        pass


class LoggingNotificationSink(NotificationSink):
    """Default sink that only logs the events."""

    async def achievement_unlocked(self, user_id: str, achievement: AchievementDefinition) -> None:
        logger.info(
            f"Achievement unlocked for {user_id}: {achievement.title} "
            f"(+{achievement.reward.points} points)"
        )

    async def streak_milestone_reached(
        self,
        user_id: str,
        milestone: StreakMilestone,
        streak_days: int,
    ) -> None:
        logger.info(f"Streak milestone for {user_id}: {streak_days} days - {milestone.message}")


class RecordingNotificationSink(NotificationSink):
    """Collects events in memory, e.g. for an in-app inbox."""

    def __init__(self):
        self.achievements: List[Tuple[str, str]] = []
        self.milestones: List[Tuple[str, int]] = []

    async def achievement_unlocked(self, user_id: str, achievement: AchievementDefinition) -> None:
        self.achievements.append((user_id, achievement.id))

    async def streak_milestone_reached(
        self,
        user_id: str,
        milestone: StreakMilestone,
        streak_days: int,
    ) -> None:
        self.milestones.append((user_id, streak_days))
