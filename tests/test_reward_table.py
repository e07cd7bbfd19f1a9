"""Tests for reward table construction and validation."""

import copy

import pytest

from workout_engagement.exceptions import ConfigurationError, ErrorCode
from workout_engagement.models.rewards import CouponEffect, PointsEffect, StreakProtectionEffect
from workout_engagement.rewards.table import (
    DEFAULT_ACHIEVEMENTS,
    DEFAULT_COUPONS,
    DEFAULT_WHEEL_PRIZES,
    build_reward_table,
)


class TestDefaultTable:
    """The shipped defaults are valid and complete."""

    def test_builds(self):
        table = build_reward_table()
        assert len(table.achievements) == 6
        assert len(table.prizes) == 8
        assert len(table.coupons) == 4
        assert [m.days for m in table.streak_milestones] == [7, 14, 21, 30, 50, 100]

    def test_total_weight(self):
        assert build_reward_table().total_weight() == 93

    def test_achievements_in_display_order(self):
        table = build_reward_table()
        assert [a.id for a in table.achievements][:2] == ["first_workout", "week_streak"]

    def test_lookups(self):
        table = build_reward_table()
        assert table.get_coupon("protein_10").points_cost == 500
        assert table.get_coupon("missing") is None
        assert table.get_achievement("morning_warrior").condition_value == 5

    def test_prize_effects(self):
        prizes = {p.id: p for p in build_reward_table().prizes}
        assert prizes["points_50"].effect == PointsEffect(points=50)
        assert prizes["coupon_protein"].effect == CouponEffect(coupon_id="protein_10")
        assert prizes["streak_boost"].effect == StreakProtectionEffect(days=3)


class TestValidation:
    """Malformed tables abort with ConfigurationError."""

    def test_unknown_coupon_reference(self):
        prizes = copy.deepcopy(DEFAULT_WHEEL_PRIZES)
        prizes[3]["value"] = "does_not_exist"
        with pytest.raises(ConfigurationError) as exc_info:
            build_reward_table(prizes=prizes)
        assert exc_info.value.code == ErrorCode.CONFIGURATION_ERROR
        assert exc_info.value.details["entry_id"] == "coupon_protein"

    def test_non_positive_weight(self):
        prizes = copy.deepcopy(DEFAULT_WHEEL_PRIZES)
        prizes[0]["probability_weight"] = 0
        with pytest.raises(ConfigurationError):
            build_reward_table(prizes=prizes)

    def test_non_finite_weight(self):
        prizes = copy.deepcopy(DEFAULT_WHEEL_PRIZES)
        prizes[0]["probability_weight"] = float("nan")
        with pytest.raises(ConfigurationError):
            build_reward_table(prizes=prizes)

    def test_empty_wheel(self):
        with pytest.raises(ConfigurationError):
            build_reward_table(prizes=[])

    def test_points_prize_with_string_value(self):
        prizes = copy.deepcopy(DEFAULT_WHEEL_PRIZES)
        prizes[0]["value"] = "fifty"
        with pytest.raises(ConfigurationError):
            build_reward_table(prizes=prizes)

    def test_unknown_achievement_counter(self):
        achievements = copy.deepcopy(DEFAULT_ACHIEVEMENTS)
        achievements[0]["condition_type"] = "pushups"
        with pytest.raises(ConfigurationError):
            build_reward_table(achievements=achievements)

    @pytest.mark.parametrize("counter", ["points", "current_streak", "wheel_spins", "weekly_workouts"])
    def test_achievement_counter_must_only_grow_on_workouts(self, counter):
        achievements = copy.deepcopy(DEFAULT_ACHIEVEMENTS)
        achievements[0]["condition_type"] = counter
        with pytest.raises(ConfigurationError, match="unsupported counter"):
            build_reward_table(achievements=achievements)

    def test_duplicate_achievement_id(self):
        achievements = copy.deepcopy(DEFAULT_ACHIEVEMENTS)
        achievements[1]["id"] = achievements[0]["id"]
        with pytest.raises(ConfigurationError):
            build_reward_table(achievements=achievements)

    def test_coupon_must_expire(self):
        coupons = copy.deepcopy(DEFAULT_COUPONS)
        coupons[0]["expiration_days"] = 0
        with pytest.raises(ConfigurationError):
            build_reward_table(coupons=coupons)

    def test_missing_field_is_configuration_error(self):
        coupons = copy.deepcopy(DEFAULT_COUPONS)
        del coupons[0]["brand"]
        with pytest.raises(ConfigurationError):
            build_reward_table(coupons=coupons)

    def test_duplicate_milestone(self):
        with pytest.raises(ConfigurationError):
            build_reward_table(streak_milestones=[{"days": 7}, {"days": 7}])
