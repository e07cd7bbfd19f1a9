"""Tests for field-level reconciliation of progress documents."""

from datetime import datetime, timedelta, timezone

from workout_engagement.models.progress import GrantedCoupon, ProgressDocument, UserProgress
from workout_engagement.store.merge import merge_documents


T0 = datetime(2024, 3, 4, 7, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(hours=1)
T2 = T0 + timedelta(hours=2)


def document(progress: UserProgress, timestamps=None, updated_at=T0) -> ProgressDocument:
    return ProgressDocument(
        user_id="user-1",
        progress=progress,
        field_timestamps=timestamps or {},
        updated_at=updated_at,
    )


def coupon(grant_id: str, granted_at: datetime) -> GrantedCoupon:
    return GrantedCoupon(
        grant_id=grant_id,
        coupon_id="protein_10",
        title="10% OFF Protein",
        granted_at=granted_at,
        expires_at=granted_at + timedelta(days=30),
    )


class TestMergeDocuments:
    """Tests for merge_documents."""

    def test_newer_field_wins_per_field(self):
        local = document(
            UserProgress(points=100, current_streak=3, longest_streak=3),
            {"points": T1, "current_streak": T2, "longest_streak": T2},
        )
        remote = document(
            UserProgress(points=300, current_streak=1, longest_streak=1),
            {"points": T2, "current_streak": T1, "longest_streak": T1},
        )

        merged = merge_documents(local, remote)

        assert merged.progress.points == 300
        assert merged.progress.current_streak == 3
        assert merged.progress.longest_streak == 3
        assert merged.field_timestamps["points"] == T2
        assert merged.field_timestamps["current_streak"] == T2

    def test_tie_keeps_local(self):
        local = document(UserProgress(points=100), {"points": T1})
        remote = document(UserProgress(points=999), {"points": T1})
        assert merge_documents(local, remote).progress.points == 100

    def test_missing_timestamp_falls_back_to_updated_at(self):
        local = document(UserProgress(wheel_spins=1), updated_at=T1)
        remote = document(UserProgress(wheel_spins=4), updated_at=T2)
        assert merge_documents(local, remote).progress.wheel_spins == 4

    def test_achievements_are_never_revoked(self):
        local = document(UserProgress(achievements=["first_workout"]), {"achievements": T2})
        remote = document(UserProgress(achievements=["ten_workouts", "first_workout"]), {"achievements": T1})
        merged = merge_documents(local, remote)
        assert merged.progress.achievements == ["first_workout", "ten_workouts"]

    def test_coupons_union_by_grant(self):
        shared = coupon("g1", T0)
        local = document(UserProgress(coupons=[shared, coupon("g3", T2)]))
        remote = document(UserProgress(coupons=[shared, coupon("g2", T1)]))
        merged = merge_documents(local, remote)
        assert [c.grant_id for c in merged.progress.coupons] == ["g1", "g2", "g3"]

    def test_level_recomputed_from_merged_points(self):
        local = document(UserProgress(points=10, level=1), {"points": T0, "level": T2})
        remote = document(UserProgress(points=900, level=1), {"points": T2, "level": T0})
        merged = merge_documents(local, remote)
        assert merged.progress.points == 900
        assert merged.progress.level == 4

    def test_longest_streak_not_below_current(self):
        local = document(UserProgress(current_streak=5, longest_streak=5), {"current_streak": T2, "longest_streak": T0})
        remote = document(UserProgress(current_streak=2, longest_streak=2), {"current_streak": T0, "longest_streak": T1})
        merged = merge_documents(local, remote)
        assert merged.progress.current_streak == 5
        assert merged.progress.longest_streak == 5

    def test_inputs_unchanged(self):
        local = document(UserProgress(points=1, achievements=["a"]))
        remote = document(UserProgress(points=2, achievements=["b"]), updated_at=T2)
        merge_documents(local, remote)
        assert local.progress.achievements == ["a"]
        assert remote.progress.points == 2

    def test_updated_at_is_latest(self):
        local = document(UserProgress(), updated_at=T2)
        remote = document(UserProgress(), updated_at=T1)
        assert merge_documents(local, remote).updated_at == T2

    def test_reset_drops_older_achievements_and_coupons(self):
        local = ProgressDocument(
            user_id="user-1",
            progress=UserProgress(),
            field_timestamps={"achievements": T1, "coupons": T1, "points": T1},
            updated_at=T1,
            reset_at=T1,
        )
        remote = document(
            UserProgress(points=165, achievements=["first_workout"], coupons=[coupon("g1", T0)]),
            {"achievements": T0, "coupons": T0, "points": T0},
        )

        merged = merge_documents(local, remote)

        assert merged.progress == UserProgress()
        assert merged.reset_at == T1

    def test_entries_added_after_reset_survive(self):
        local = ProgressDocument(
            user_id="user-1",
            progress=UserProgress(),
            field_timestamps={"achievements": T1, "coupons": T1},
            updated_at=T1,
            reset_at=T1,
        )
        remote = document(
            UserProgress(achievements=["first_workout"], coupons=[coupon("g2", T2)]),
            {"achievements": T2, "coupons": T2},
            updated_at=T2,
        )

        merged = merge_documents(local, remote)

        assert merged.progress.achievements == ["first_workout"]
        assert [c.grant_id for c in merged.progress.coupons] == ["g2"]
