"""Edge-triggered achievement unlock detection."""

import logging
from typing import AbstractSet, List, Sequence

from ..models.progress import UserProgress
from ..models.rewards import AchievementDefinition


logger = logging.getLogger(__name__)


def evaluate(
    previous: UserProgress,
    current: UserProgress,
    already_unlocked: AbstractSet[str],
    definitions: Sequence[AchievementDefinition],
) -> List[AchievementDefinition]:
    """
    Return achievements that move from locked to unlocked.

    Conditions are monotone, so only the current snapshot decides; the
    previous snapshot is used for logging the transition. Results keep the
    static definition order so notifications are shown deterministically.

    Args:
        previous: Progress before the update
        current: Progress after the update
        already_unlocked: Achievement ids the user already has
        definitions: Achievement table in display order

    Returns:
        Newly unlocked achievement definitions
    """
    newly_unlocked = []
    for achievement in definitions:
        if achievement.id in already_unlocked:
            continue
        if achievement.is_met(current):
            before = getattr(previous, achievement.condition_type)
            after = getattr(current, achievement.condition_type)
            logger.debug(
                f"Achievement {achievement.id} met: "
                f"{achievement.condition_type} {before} -> {after}"
            )
            newly_unlocked.append(achievement)
    return newly_unlocked
