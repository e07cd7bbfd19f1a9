"""Tests for the background reconciliation scheduler."""

from datetime import datetime, timezone

import pytest

from workout_engagement.db.adapters.memory_adapter import InMemoryAdapter
from workout_engagement.services.sync_scheduler import ReconciliationScheduler
from workout_engagement.store.progress_store import ProgressStateStore


NOW = datetime(2024, 3, 4, 7, 0, tzinfo=timezone.utc)


def make_store(settings, remote=None) -> ProgressStateStore:
    return ProgressStateStore(local=InMemoryAdapter(), remote=remote, settings=settings)


class TestReconciliationScheduler:
    """Tests for ReconciliationScheduler."""

    @pytest.mark.asyncio
    async def test_disabled_without_remote(self, settings):
        scheduler = ReconciliationScheduler(make_store(settings), interval_minutes=5)
        scheduler.start()
        assert not scheduler.is_running
        assert scheduler.get_next_sync_time() is None

    @pytest.mark.asyncio
    async def test_start_and_stop(self, settings):
        scheduler = ReconciliationScheduler(make_store(settings, remote=InMemoryAdapter()), interval_minutes=5)

        scheduler.start()
        try:
            assert scheduler.is_running
            assert scheduler.get_next_sync_time() is not None
            # Starting twice is a no-op
            scheduler.start()
        finally:
            scheduler.stop()

        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_trigger_sync_reconciles_cached_users(self, settings):
        remote = InMemoryAdapter()
        store = make_store(settings, remote=remote)
        await store.complete_workout("alice", now=NOW)
        await store.complete_workout("bob", now=NOW)
        await remote.delete("bob")

        scheduler = ReconciliationScheduler(store, interval_minutes=5)
        results = await scheduler.trigger_sync()

        assert set(results) == {"alice", "bob"}
        assert all(report.ok for report in results.values())
        assert (await remote.load("bob")).progress.total_workouts == 1
        assert scheduler.last_results.keys() == results.keys()

    def test_interval_defaults_to_settings(self, settings):
        scheduler = ReconciliationScheduler(make_store(settings))
        assert scheduler.interval_minutes == 15
