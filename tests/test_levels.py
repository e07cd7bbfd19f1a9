"""Tests for the level curve."""

from workout_engagement.rewards.levels import calculate_level, get_points_for_level, level_for_points


class TestLevels:
    """Tests for level calculations."""

    def test_points_for_level(self):
        assert get_points_for_level(1) == 0
        assert get_points_for_level(2) == 282
        assert get_points_for_level(4) == 800

    def test_starting_level(self):
        info = calculate_level(0)
        assert info.level == 1
        assert info.points_for_next == 282
        assert info.progress_percent == 0.0

    def test_level_boundaries(self):
        assert level_for_points(281) == 1
        assert level_for_points(282) == 2
        assert level_for_points(800) == 4

    def test_progress_within_level(self):
        info = calculate_level(400)
        assert info.level == 2
        assert info.points_required == 282
        assert info.points_in_level == 118
        assert info.points_for_next == get_points_for_level(3) - 400
        assert 0 < info.progress_percent < 100

    def test_monotone_in_points(self):
        levels = [level_for_points(p) for p in range(0, 5000, 37)]
        assert levels == sorted(levels)
