"""Tests for achievement unlock detection."""

from workout_engagement.models.progress import UserProgress
from workout_engagement.rewards.achievements import evaluate
from workout_engagement.rewards.table import build_reward_table


class TestEvaluate:
    """Tests for evaluate with the default achievement table."""

    def setup_method(self):
        self.definitions = build_reward_table().achievements

    def ids(self, unlocked):
        return [a.id for a in unlocked]

    def test_first_workout_unlocks(self):
        before = UserProgress()
        after = UserProgress(total_workouts=1, current_streak=1, longest_streak=1)
        assert self.ids(evaluate(before, after, set(), self.definitions)) == ["first_workout"]

    def test_already_unlocked_not_reported(self):
        before = UserProgress(total_workouts=1, achievements=["first_workout"])
        after = UserProgress(total_workouts=2, achievements=["first_workout"])
        assert evaluate(before, after, {"first_workout"}, self.definitions) == []

    def test_threshold_crossing(self):
        before = UserProgress(total_workouts=9, longest_streak=3)
        after = UserProgress(total_workouts=10, longest_streak=3)
        unlocked = evaluate(before, after, {"first_workout"}, self.definitions)
        assert self.ids(unlocked) == ["ten_workouts"]
        assert unlocked[0].reward.points == 300

    def test_multiple_unlocks_keep_definition_order(self):
        before = UserProgress(total_workouts=6, current_streak=6, longest_streak=6, morning_workouts=4)
        after = UserProgress(total_workouts=7, current_streak=7, longest_streak=7, morning_workouts=5)
        unlocked = evaluate(before, after, {"first_workout"}, self.definitions)
        assert self.ids(unlocked) == ["week_streak", "morning_warrior"]

    def test_streak_achievement_survives_broken_streak(self):
        # A user who reached 7 days earlier but was never evaluated still unlocks
        before = UserProgress(total_workouts=20, current_streak=0, longest_streak=7)
        after = UserProgress(total_workouts=21, current_streak=1, longest_streak=7)
        unlocked = evaluate(before, after, {"first_workout", "ten_workouts"}, self.definitions)
        assert "week_streak" in self.ids(unlocked)

    def test_nothing_below_thresholds(self):
        before = UserProgress(total_workouts=2)
        after = UserProgress(total_workouts=3, morning_workouts=1)
        assert evaluate(before, after, {"first_workout"}, self.definitions) == []
