"""Background reconciliation scheduler using APScheduler.

Periodically merges every cached user's record with the remote store and
retries saves that failed earlier. Runs every `sync_interval_minutes`.
"""

import logging
from datetime import datetime
from typing import Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..models.outcomes import PersistenceReport
from ..store.progress_store import ProgressStateStore

logger = logging.getLogger(__name__)

SYNC_JOB_ID = "progress_reconciliation"


class ReconciliationScheduler:
    """Manages the scheduled remote reconciliation job.

    Usage:
        scheduler = ReconciliationScheduler(store)
        scheduler.start()
        # ... app runs ...
        scheduler.stop()
    """

    def __init__(self, store: ProgressStateStore, interval_minutes: Optional[int] = None):
        """Initialize the scheduler.

        Args:
            store: The progress store to reconcile.
            interval_minutes: Minutes between runs (settings value if omitted).
        """
        self.store = store
        self.interval_minutes = interval_minutes or store.settings.sync_interval_minutes
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._is_running = False
        self._last_results: Dict[str, PersistenceReport] = {}

    @property
    def is_running(self) -> bool:
        """Check if the scheduler is running."""
        return self._is_running and self.scheduler is not None

    @property
    def last_results(self) -> Dict[str, PersistenceReport]:
        """Per-user reports of the last run."""
        return dict(self._last_results)

    def start(self) -> None:
        """Start the scheduler. Must be called with an event loop running."""
        if self._is_running:
            logger.warning("Reconciliation scheduler is already running")
            return

        if self.store.remote is None:
            logger.info("No remote store configured, reconciliation disabled")
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self._run_sync,
            IntervalTrigger(minutes=self.interval_minutes),
            id=SYNC_JOB_ID,
            name="Progress Reconciliation",
            replace_existing=True,
            max_instances=1,
        )

        self.scheduler.start()
        self._is_running = True
        logger.info(f"Reconciliation scheduler started (every {self.interval_minutes} min)")

    def stop(self) -> None:
        """Shut the scheduler down."""
        if not self._is_running or self.scheduler is None:
            return

        logger.info("Shutting down reconciliation scheduler...")
        self.scheduler.shutdown(wait=False)
        self._is_running = False
        self.scheduler = None
        logger.info("Reconciliation scheduler stopped")

    async def _run_sync(self) -> None:
        """Scheduled job body."""
        try:
            await self.trigger_sync()
        except Exception as e:
            logger.error(f"Unexpected error during scheduled reconciliation: {e}")

    async def trigger_sync(self) -> Dict[str, PersistenceReport]:
        """Reconcile every cached user now.

        Returns:
            Mapping of user id to the persistence report of its write-back.
        """
        results: Dict[str, PersistenceReport] = {}
        for user_id in self.store.cached_user_ids():
            report = await self.store.reconcile(user_id)
            if report is not None:
                results[user_id] = report

        failed = [user_id for user_id, report in results.items() if not report.ok]
        if failed:
            logger.warning(f"Reconciliation finished with failures for {len(failed)} users")
        else:
            logger.info(f"Reconciled {len(results)} users")

        self._last_results = results
        return results

    def get_next_sync_time(self) -> Optional[datetime]:
        """The next scheduled run, or None if not running."""
        if not self.is_running or self.scheduler is None:
            return None

        job = self.scheduler.get_job(SYNC_JOB_ID)
        if job and job.next_run_time:
            return job.next_run_time

        return None
