"""Static reward configuration.

Achievement definitions, reward wheel prizes, the partner coupon catalog and
the streak milestone table. The tables are validated once at startup and a
malformed entry aborts with ConfigurationError.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ConfigurationError
from ..models.rewards import (
    AchievementDefinition,
    CouponDefinition,
    CouponEffect,
    PrizeDefinition,
    StreakMilestone,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Default Achievement Definitions
# =============================================================================

DEFAULT_ACHIEVEMENTS: List[Dict[str, Any]] = [
    {
        "id": "first_workout",
        "title": "First Step",
        "description": "Complete your first workout",
        "icon": "fitness",
        "condition_type": "total_workouts",
        "condition_value": 1,
        "reward": {"points": 100},
        "display_order": 1,
    },
    # Streak achievements read longest_streak so they stay met after a break
    {
        "id": "week_streak",
        "title": "Weekly Warrior",
        "description": "Keep a 7-day workout streak",
        "icon": "flame",
        "condition_type": "longest_streak",
        "condition_value": 7,
        "reward": {"points": 500},
        "display_order": 2,
    },
    {
        "id": "month_streak",
        "title": "Consistent Athlete",
        "description": "Keep a 30-day workout streak",
        "icon": "trophy",
        "condition_type": "longest_streak",
        "condition_value": 30,
        "reward": {"points": 2000},
        "display_order": 3,
    },
    {
        "id": "ten_workouts",
        "title": "Dedicated",
        "description": "Complete 10 workouts",
        "icon": "medal",
        "condition_type": "total_workouts",
        "condition_value": 10,
        "reward": {"points": 300},
        "display_order": 4,
    },
    {
        "id": "fifty_workouts",
        "title": "Training Machine",
        "description": "Complete 50 workouts",
        "icon": "star",
        "condition_type": "total_workouts",
        "condition_value": 50,
        "reward": {"points": 1000},
        "display_order": 5,
    },
    {
        "id": "morning_warrior",
        "title": "Early Riser",
        "description": "Train 5 times in the morning",
        "icon": "sunny",
        "condition_type": "morning_workouts",
        "condition_value": 5,
        "reward": {"points": 200},
        "display_order": 6,
    },
]


# =============================================================================
# Streak Milestones
# =============================================================================

DEFAULT_STREAK_MILESTONES: List[Dict[str, Any]] = [
    {"days": 7, "points": 100, "message": "A full week!"},
    {"days": 14, "points": 250, "message": "Two incredible weeks!"},
    {"days": 21, "points": 500, "message": "Three weeks of dedication!"},
    {"days": 30, "points": 1000, "message": "A whole month! You're unstoppable!"},
    {"days": 50, "points": 2000, "message": "Fifty days! Legend!"},
    {"days": 100, "points": 5000, "message": "CENTURION! 100 days of pure dedication!"},
]


# =============================================================================
# Partner Coupon Catalog
# =============================================================================

DEFAULT_COUPONS: List[Dict[str, Any]] = [
    {
        "id": "protein_10",
        "title": "10% OFF Protein",
        "description": "Discount on protein supplements",
        "discount": "10%",
        "brand": "NutriMax",
        "points_cost": 500,
        "expiration_days": 30,
        "category": "supplement",
    },
    {
        "id": "equipment_15",
        "title": "15% OFF Equipment",
        "description": "Discount on sports equipment",
        "discount": "15%",
        "brand": "FitGear",
        "points_cost": 800,
        "expiration_days": 45,
        "category": "equipment",
    },
    {
        "id": "clothing_20",
        "title": "20% OFF Sportswear",
        "description": "Discount on fitness apparel",
        "discount": "20%",
        "brand": "ActiveWear",
        "points_cost": 1000,
        "expiration_days": 60,
        "category": "clothing",
    },
    {
        "id": "smoothie_free",
        "title": "Free Smoothie",
        "description": "One free protein smoothie",
        "discount": "100%",
        "brand": "HealthyCorner",
        "points_cost": 300,
        "expiration_days": 15,
        "category": "food",
    },
]


# =============================================================================
# Reward Wheel
# =============================================================================

DEFAULT_WHEEL_PRIZES: List[Dict[str, Any]] = [
    {"id": "points_50", "label": "50 Points", "type": "points", "value": 50, "probability_weight": 25},
    {"id": "points_100", "label": "100 Points", "type": "points", "value": 100, "probability_weight": 20},
    {"id": "points_200", "label": "200 Points", "type": "points", "value": 200, "probability_weight": 15},
    {"id": "coupon_protein", "label": "Protein Coupon", "type": "coupon", "value": "protein_10", "probability_weight": 10},
    {"id": "streak_boost", "label": "Streak Boost", "type": "streak_protection", "value": 3, "probability_weight": 8},
    {"id": "points_500", "label": "500 Points", "type": "points", "value": 500, "probability_weight": 7},
    {"id": "coupon_equipment", "label": "Equipment Coupon", "type": "coupon", "value": "equipment_15", "probability_weight": 5},
    {"id": "mega_points", "label": "1000 Points", "type": "points", "value": 1000, "probability_weight": 3},
]


# Achievements are evaluated on workout completion; these counters only grow there.
ACHIEVEMENT_COUNTERS = ("total_workouts", "longest_streak", "morning_workouts")


@dataclass
class RewardTable:
    """All static reward configuration, in display order."""

    achievements: List[AchievementDefinition] = field(default_factory=list)
    prizes: List[PrizeDefinition] = field(default_factory=list)
    coupons: List[CouponDefinition] = field(default_factory=list)
    streak_milestones: List[StreakMilestone] = field(default_factory=list)

    def get_coupon(self, coupon_id: str) -> Optional[CouponDefinition]:
        for coupon in self.coupons:
            if coupon.id == coupon_id:
                return coupon
        return None

    def get_achievement(self, achievement_id: str) -> Optional[AchievementDefinition]:
        for achievement in self.achievements:
            if achievement.id == achievement_id:
                return achievement
        return None

    def total_weight(self) -> float:
        return sum(prize.probability_weight for prize in self.prizes)

    def validate(self) -> "RewardTable":
        """
        Check the tables for malformed or dangling entries.

        Returns:
            self, so construction and validation can be chained

        Raises:
            ConfigurationError: On the first problem found
        """
        self._validate_achievements()
        self._validate_coupons()
        self._validate_prizes()
        self._validate_milestones()
        return self

    def _validate_achievements(self) -> None:
        seen = set()
        for achievement in self.achievements:
            if achievement.id in seen:
                raise ConfigurationError(
                    f"Duplicate achievement id: {achievement.id}",
                    entry_id=achievement.id,
                )
            seen.add(achievement.id)
            if achievement.condition_type not in ACHIEVEMENT_COUNTERS:
                raise ConfigurationError(
                    f"Achievement {achievement.id} uses unsupported counter "
                    f"'{achievement.condition_type}', expected one of {list(ACHIEVEMENT_COUNTERS)}",
                    entry_id=achievement.id,
                )

    def _validate_coupons(self) -> None:
        seen = set()
        for coupon in self.coupons:
            if coupon.id in seen:
                raise ConfigurationError(f"Duplicate coupon id: {coupon.id}", entry_id=coupon.id)
            seen.add(coupon.id)
            if coupon.points_cost <= 0:
                raise ConfigurationError(
                    f"Coupon {coupon.id} must cost a positive number of points",
                    entry_id=coupon.id,
                )
            if coupon.expiration_days <= 0:
                raise ConfigurationError(
                    f"Coupon {coupon.id} must expire after a positive number of days",
                    entry_id=coupon.id,
                )

    def _validate_prizes(self) -> None:
        if not self.prizes:
            raise ConfigurationError("Reward wheel has no prizes")

        seen = set()
        for prize in self.prizes:
            if prize.id in seen:
                raise ConfigurationError(f"Duplicate prize id: {prize.id}", entry_id=prize.id)
            seen.add(prize.id)

            weight = prize.probability_weight
            if not math.isfinite(weight) or weight <= 0:
                raise ConfigurationError(
                    f"Prize {prize.id} has a non-positive weight: {weight}",
                    entry_id=prize.id,
                )

            effect = prize.effect
            if isinstance(effect, CouponEffect) and self.get_coupon(effect.coupon_id) is None:
                raise ConfigurationError(
                    f"Prize {prize.id} references unknown coupon '{effect.coupon_id}'",
                    entry_id=prize.id,
                )

    def _validate_milestones(self) -> None:
        seen = set()
        for milestone in self.streak_milestones:
            if milestone.days < 1 or milestone.days in seen:
                raise ConfigurationError(
                    f"Invalid or duplicate streak milestone: {milestone.days} days",
                    entry_id=str(milestone.days),
                )
            seen.add(milestone.days)


def build_reward_table(
    achievements: Optional[List[Dict[str, Any]]] = None,
    prizes: Optional[List[Dict[str, Any]]] = None,
    coupons: Optional[List[Dict[str, Any]]] = None,
    streak_milestones: Optional[List[Dict[str, Any]]] = None,
) -> RewardTable:
    """
    Build and validate a reward table, falling back to the defaults.

    Raises:
        ConfigurationError: If any table is malformed
    """
    achievement_rows = DEFAULT_ACHIEVEMENTS if achievements is None else achievements
    prize_rows = DEFAULT_WHEEL_PRIZES if prizes is None else prizes
    coupon_rows = DEFAULT_COUPONS if coupons is None else coupons
    milestone_rows = DEFAULT_STREAK_MILESTONES if streak_milestones is None else streak_milestones

    try:
        table = RewardTable(
            achievements=sorted(
                (AchievementDefinition.model_validate(row) for row in achievement_rows),
                key=lambda a: a.display_order,
            ),
            prizes=[PrizeDefinition.model_validate(row) for row in prize_rows],
            coupons=[CouponDefinition.model_validate(row) for row in coupon_rows],
            streak_milestones=[StreakMilestone.model_validate(row) for row in milestone_rows],
        )
    except PydanticValidationError as e:
        raise ConfigurationError(f"Malformed reward table entry: {e}") from e

    table.validate()

    logger.info(
        f"Loaded reward table: {len(table.achievements)} achievements, "
        f"{len(table.prizes)} prizes, {len(table.coupons)} coupons"
    )
    return table
