"""Tests for the SQLite progress cache."""

import sqlite3
from datetime import date, datetime, timedelta, timezone

import pytest

from workout_engagement.db.adapters.sqlite_adapter import SQLiteAdapter
from workout_engagement.exceptions import PersistenceError
from workout_engagement.models.progress import GrantedCoupon, ProgressDocument, UserProgress


NOW = datetime(2024, 3, 4, 7, 0, tzinfo=timezone.utc)


@pytest.fixture
def adapter(tmp_path) -> SQLiteAdapter:
    return SQLiteAdapter(tmp_path / "progress.db")


def sample_document(points: int = 165) -> ProgressDocument:
    coupon = GrantedCoupon(
        grant_id="abc123",
        coupon_id="protein_10",
        title="10% OFF Protein",
        brand="NutriMax",
        discount="10%",
        granted_at=NOW,
        expires_at=NOW + timedelta(days=30),
    )
    return ProgressDocument(
        user_id="user-1",
        progress=UserProgress(
            total_workouts=1,
            current_streak=1,
            longest_streak=1,
            last_workout_date=date(2024, 3, 4),
            points=points,
            achievements=["first_workout"],
            coupons=[coupon],
        ),
        field_timestamps={"points": NOW, "total_workouts": NOW},
        updated_at=NOW,
    )


class TestSQLiteAdapter:
    """Tests for SQLiteAdapter."""

    def test_creates_schema(self, adapter):
        conn = sqlite3.connect(str(adapter.db_path))
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        conn.close()
        assert "user_progress" in tables

    @pytest.mark.asyncio
    async def test_load_missing_returns_none(self, adapter):
        assert await adapter.load("nobody") is None

    @pytest.mark.asyncio
    async def test_save_and_load(self, adapter):
        document = sample_document()
        await adapter.save(document)

        loaded = await adapter.load("user-1")

        assert loaded == document
        assert loaded.progress.coupons[0].expires_at == NOW + timedelta(days=30)

    @pytest.mark.asyncio
    async def test_save_replaces_document(self, adapter):
        await adapter.save(sample_document(points=10))
        await adapter.save(sample_document(points=20))

        loaded = await adapter.load("user-1")
        assert loaded.progress.points == 20

        conn = sqlite3.connect(str(adapter.db_path))
        count = conn.execute("SELECT COUNT(*) FROM user_progress").fetchone()[0]
        conn.close()
        assert count == 1

    @pytest.mark.asyncio
    async def test_stored_as_camel_case_json(self, adapter):
        await adapter.save(sample_document())

        conn = sqlite3.connect(str(adapter.db_path))
        raw = conn.execute("SELECT document FROM user_progress").fetchone()[0]
        conn.close()

        assert '"totalWorkouts": 1' in raw
        assert '"lastWorkoutDate": "2024-03-04"' in raw

    @pytest.mark.asyncio
    async def test_delete(self, adapter):
        await adapter.save(sample_document())
        assert await adapter.delete("user-1") is True
        assert await adapter.delete("user-1") is False
        assert await adapter.load("user-1") is None

    @pytest.mark.asyncio
    async def test_corrupt_document_raises(self, adapter):
        conn = sqlite3.connect(str(adapter.db_path))
        conn.execute(
            "INSERT INTO user_progress (user_id, document) VALUES (?, ?)",
            ("user-1", "{not json"),
        )
        conn.commit()
        conn.close()

        with pytest.raises(PersistenceError) as exc_info:
            await adapter.load("user-1")
        assert exc_info.value.backend == "sqlite"

    def test_unwritable_path_raises(self, tmp_path):
        with pytest.raises(PersistenceError):
            SQLiteAdapter(tmp_path / "missing" / "dir" / "progress.db")
