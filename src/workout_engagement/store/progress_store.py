"""
Authoritative per-user engagement state.

Handles:
- workout completion (streak, points, counters, achievements, milestones)
- reward wheel spins and catalog coupon redemption
- onboarding bonus, account reset, reporting-period counter resets
- write-through persistence to a local cache and an optional remote store
- reconciliation with the remote store

Every mutation of a user's record runs under that user's asyncio.Lock, so a
double tap or a background sync racing a foreground completion cannot
interleave read-modify-write sequences. Persistence failures are reported
but never roll back the in-memory state.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, tzinfo
from typing import Callable, Dict, List, Optional, Set, Tuple

from ..clock import Clock, RandomSource, SystemClock, default_random_source, local_date_and_hour, resolve_timezone
from ..config import Settings, get_settings
from ..db.adapters import ProgressBackend
from ..exceptions import ConfigurationError, CouponNotFoundError, PersistenceError, ValidationError
from ..models.outcomes import (
    PersistenceReport,
    RedemptionOutcome,
    RedemptionStatus,
    SpinOutcome,
    SpinStatus,
    WorkoutOutcome,
    WorkoutStatus,
)
from ..models.progress import GrantedCoupon, ProgressDocument, UserProgress
from ..models.rewards import (
    AchievementDefinition,
    CouponEffect,
    PointsEffect,
    StreakMilestone,
    StreakProtectionEffect,
)
from ..rewards.achievements import evaluate
from ..rewards.levels import level_for_points
from ..rewards.points import PointsRules, compute_points
from ..rewards.prize_selector import select_prize
from ..rewards.streak import apply_streak_protection, compute_streak, milestone_for
from ..rewards.table import RewardTable, build_reward_table
from ..services.notifications import LoggingNotificationSink, NotificationSink
from .merge import merge_documents


logger = logging.getLogger(__name__)


ProgressListener = Callable[[str, UserProgress], None]

PERIOD_COUNTERS: Dict[str, Tuple[str, ...]] = {
    "weekly": ("weekly_workouts",),
    "monthly": ("monthly_workouts",),
}


def _log_late_failure(task: asyncio.Future) -> None:
    # Saves that outlive their timeout have no caller left to report to.
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"Background save finished with error: {error!r}")


class ProgressStateStore:
    """
    Owns the UserProgress records and every operation that mutates them.

    Usage:
        store = ProgressStateStore(local=SQLiteAdapter("engagement.db"))
        outcome = await store.complete_workout("user-123")
        if outcome.recorded:
            print(outcome.points_earned, outcome.streak_days)
    """

    def __init__(
        self,
        local: ProgressBackend,
        remote: Optional[ProgressBackend] = None,
        reward_table: Optional[RewardTable] = None,
        clock: Optional[Clock] = None,
        random_source: RandomSource = default_random_source,
        notifier: Optional[NotificationSink] = None,
        settings: Optional[Settings] = None,
        tz: Optional[tzinfo] = None,
    ):
        """
        Initialize the store.

        Args:
            local: Local cache backend
            remote: Optional remote document store
            reward_table: Validated reward configuration (defaults if omitted)
            clock: Time source; defaults to the system clock in `tz`
            random_source: Uniform [0, 1) floats for the reward wheel
            notifier: Receives achievement and milestone events
            settings: Engine settings (cached settings if omitted)
            tz: User's local timezone (settings.timezone if omitted)
        """
        self.settings = settings or get_settings()
        self.local = local
        self.remote = remote
        self.reward_table = reward_table or build_reward_table()
        self.tz = tz or resolve_timezone(self.settings.timezone)
        self.clock = clock or SystemClock(self.tz)
        self.random_source = random_source
        self.notifier = notifier or LoggingNotificationSink()
        self.points_rules = PointsRules.from_settings(self.settings)

        self._documents: Dict[str, ProgressDocument] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._listeners: List[ProgressListener] = []
        # Users whose stored record could not be read from a backend. Writes
        # to that backend wait until it has been read, so unseen data there
        # is never overwritten.
        self._local_unread: Set[str] = set()
        self._remote_unread: Set[str] = set()
        self._pending_saves: Dict[Tuple[int, str], asyncio.Future] = {}

    # =========================================================================
    # Workout Completion
    # =========================================================================

    async def complete_workout(
        self,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> WorkoutOutcome:
        """
        Record a completed workout.

        A second completion on the same local calendar day is a no-op with
        status ALREADY_RECORDED.

        Args:
            user_id: User identifier
            now: Completion time (clock time if omitted)

        Returns:
            WorkoutOutcome with points earned, streak and unlocks
        """
        now = self._normalize_now(now)
        today, hour = local_date_and_hour(now, self.tz)

        async with self._lock_for(user_id):
            document = await self._ensure_loaded(user_id)
            before = document.progress

            streak = compute_streak(before.last_workout_date, today, before.current_streak)
            if streak.already_recorded:
                logger.info(f"Workout already recorded today for {user_id}")
                return WorkoutOutcome(
                    status=WorkoutStatus.ALREADY_RECORDED,
                    streak_days=before.current_streak,
                    progress=before,
                )

            new_streak = streak.new_streak
            protection_used = 0
            if streak.is_new_streak:
                protected = apply_streak_protection(
                    before.last_workout_date,
                    today,
                    before.current_streak,
                    before.streak_protection_days,
                )
                if protected is not None:
                    new_streak = protected.new_streak
                    protection_used = protected.days_used
                    logger.info(f"Streak protected for {user_id}: {protection_used} days used")

            points_earned = compute_points(new_streak, hour, self.points_rules)
            is_morning = self.points_rules.is_morning(hour)

            after = before.model_copy(update={
                "total_workouts": before.total_workouts + 1,
                "current_streak": new_streak,
                "longest_streak": max(before.longest_streak, new_streak),
                "points": before.points + points_earned,
                "last_workout_date": today,
                "weekly_workouts": before.weekly_workouts + 1,
                "monthly_workouts": before.monthly_workouts + 1,
                "morning_workouts": before.morning_workouts + (1 if is_morning else 0),
                "streak_start_date": today if new_streak == 1 else before.streak_start_date,
                "streak_protection_days": before.streak_protection_days - protection_used,
            })

            unlocked = evaluate(
                before,
                after,
                set(before.achievements),
                self.reward_table.achievements,
            )
            achievement_points = sum(a.reward.points for a in unlocked)

            milestone = milestone_for(new_streak, self.reward_table.streak_milestones)
            milestone_points = 0
            if milestone is not None and self.settings.award_streak_milestone_points:
                milestone_points = milestone.points

            total_points = after.points + achievement_points + milestone_points
            after = after.model_copy(update={
                "achievements": after.achievements + [a.id for a in unlocked],
                "points": total_points,
                "level": level_for_points(total_points),
            })

            document = self._commit(document, after, now)
            persistence = await self._persist(document)

        logger.info(
            f"Workout recorded for {user_id}: +{points_earned} points, "
            f"streak {new_streak}, {len(unlocked)} achievements"
        )
        await self._emit_events(user_id, unlocked, milestone, new_streak)
        self._notify_listeners(user_id, after)

        return WorkoutOutcome(
            status=WorkoutStatus.RECORDED,
            points_earned=points_earned,
            streak_days=new_streak,
            new_achievements=unlocked,
            achievement_points=achievement_points,
            milestone=milestone,
            milestone_points=milestone_points,
            protection_days_used=protection_used,
            level_up=after.level > before.level,
            progress=after,
            persistence=persistence,
        )

    # =========================================================================
    # Reward Wheel & Coupons
    # =========================================================================

    async def spin_wheel(
        self,
        user_id: str,
        cost: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> SpinOutcome:
        """
        Spin the reward wheel.

        The cost is checked before drawing. Cost deduction, the prize effect
        and the spin counter are applied in a single state replacement.

        Args:
            user_id: User identifier
            cost: Points per spin (settings.spin_cost if omitted)
            now: Spin time, used for coupon expiry

        Returns:
            SpinOutcome; INSUFFICIENT_POINTS leaves the record untouched
        """
        cost = self.settings.spin_cost if cost is None else cost
        if cost < 0:
            raise ValidationError(f"Spin cost must be non-negative, got {cost}", field="cost")
        now = self._normalize_now(now)

        async with self._lock_for(user_id):
            document = await self._ensure_loaded(user_id)
            before = document.progress

            if before.points < cost:
                logger.info(f"Spin refused for {user_id}: {before.points} points, cost {cost}")
                return SpinOutcome(
                    status=SpinStatus.INSUFFICIENT_POINTS,
                    cost=cost,
                    progress=before,
                )

            prize = select_prize(self.reward_table.prizes, self.random_source)
            effect = prize.effect

            points = before.points - cost
            update = {"wheel_spins": before.wheel_spins + 1}
            coupon = None

            if isinstance(effect, PointsEffect):
                points += effect.points
            elif isinstance(effect, CouponEffect):
                coupon = self._grant_coupon(effect.coupon_id, now, source="wheel")
                update["coupons"] = before.coupons + [coupon]
            elif isinstance(effect, StreakProtectionEffect):
                update["streak_protection_days"] = before.streak_protection_days + effect.days
            else:
                raise ConfigurationError(f"Unhandled prize effect: {effect!r}", entry_id=prize.id)

            update["points"] = points
            update["level"] = level_for_points(points)
            after = before.model_copy(update=update)

            document = self._commit(document, after, now)
            persistence = await self._persist(document)

        logger.info(f"Wheel spin for {user_id}: won {prize.id}")
        self._notify_listeners(user_id, after)

        return SpinOutcome(
            status=SpinStatus.WON,
            cost=cost,
            prize=prize,
            coupon=coupon,
            progress=after,
            persistence=persistence,
        )

    async def redeem_coupon(
        self,
        user_id: str,
        coupon_id: str,
        now: Optional[datetime] = None,
    ) -> RedemptionOutcome:
        """
        Buy a catalog coupon with points.

        Raises:
            CouponNotFoundError: If the coupon is not in the catalog
        """
        coupon_def = self.reward_table.get_coupon(coupon_id)
        if coupon_def is None:
            raise CouponNotFoundError(coupon_id)
        now = self._normalize_now(now)

        async with self._lock_for(user_id):
            document = await self._ensure_loaded(user_id)
            before = document.progress

            if before.points < coupon_def.points_cost:
                return RedemptionOutcome(
                    status=RedemptionStatus.INSUFFICIENT_POINTS,
                    cost=coupon_def.points_cost,
                    progress=before,
                )

            coupon = self._grant_coupon(coupon_id, now, source="redemption")
            points = before.points - coupon_def.points_cost
            after = before.model_copy(update={
                "points": points,
                "level": level_for_points(points),
                "coupons": before.coupons + [coupon],
            })

            document = self._commit(document, after, now)
            persistence = await self._persist(document)

        logger.info(f"Coupon {coupon_id} redeemed by {user_id}")
        self._notify_listeners(user_id, after)

        return RedemptionOutcome(
            status=RedemptionStatus.REDEEMED,
            cost=coupon_def.points_cost,
            coupon=coupon,
            progress=after,
            persistence=persistence,
        )

    def _grant_coupon(self, coupon_id: str, now: datetime, source: str) -> GrantedCoupon:
        coupon_def = self.reward_table.get_coupon(coupon_id)
        if coupon_def is None:
            raise CouponNotFoundError(coupon_id)
        return GrantedCoupon(
            grant_id=uuid.uuid4().hex,
            coupon_id=coupon_def.id,
            title=coupon_def.title,
            brand=coupon_def.brand,
            discount=coupon_def.discount,
            source=source,
            granted_at=now,
            expires_at=now + timedelta(days=coupon_def.expiration_days),
        )

    # =========================================================================
    # Account Methods
    # =========================================================================

    async def get_progress(self, user_id: str) -> UserProgress:
        """Current progress, loading it from the backends on first access."""
        async with self._lock_for(user_id):
            document = await self._ensure_loaded(user_id)
            return document.progress

    async def complete_onboarding(self, user_id: str, now: Optional[datetime] = None) -> int:
        """
        Grant the one-time onboarding bonus.

        Returns:
            Points granted (0 if onboarding was already completed)
        """
        now = self._normalize_now(now)
        bonus = self.settings.onboarding_bonus_points

        async with self._lock_for(user_id):
            document = await self._ensure_loaded(user_id)
            before = document.progress
            if before.onboarding_completed:
                return 0

            points = before.points + bonus
            after = before.model_copy(update={
                "onboarding_completed": True,
                "points": points,
                "level": level_for_points(points),
            })
            document = self._commit(document, after, now)
            await self._persist(document)

        self._notify_listeners(user_id, after)
        return bonus

    async def reset_progress(self, user_id: str, now: Optional[datetime] = None) -> PersistenceReport:
        """Return the user's record to defaults (explicit account reset)."""
        now = self._normalize_now(now)

        async with self._lock_for(user_id):
            progress = UserProgress()
            document = ProgressDocument(
                user_id=user_id,
                progress=progress,
                field_timestamps={name: now for name in UserProgress.model_fields},
                updated_at=now,
                reset_at=now,
            )
            self._documents[user_id] = document
            # A reset overwrites both stored documents outright
            self._local_unread.discard(user_id)
            self._remote_unread.discard(user_id)
            persistence = await self._persist(document)

        logger.info(f"Progress reset for {user_id}")
        self._notify_listeners(user_id, progress)
        return persistence

    async def reset_period_counters(
        self,
        user_id: str,
        period: str,
        now: Optional[datetime] = None,
    ) -> UserProgress:
        """
        Zero the rolling counters of a reporting period.

        Args:
            user_id: User identifier
            period: "weekly" or "monthly"
        """
        counters = PERIOD_COUNTERS.get(period)
        if counters is None:
            raise ValidationError(
                f"Unknown reporting period '{period}', expected one of {sorted(PERIOD_COUNTERS)}",
                field="period",
            )
        now = self._normalize_now(now)

        async with self._lock_for(user_id):
            document = await self._ensure_loaded(user_id)
            after = document.progress.model_copy(update={name: 0 for name in counters})
            document = self._commit(document, after, now)
            await self._persist(document)

        self._notify_listeners(user_id, after)
        return after

    # =========================================================================
    # Synchronization
    # =========================================================================

    async def reconcile(self, user_id: str) -> Optional[PersistenceReport]:
        """
        Pull the remote document, merge it and write the result back.

        Returns:
            PersistenceReport, or None when no remote store is configured
        """
        if self.remote is None:
            return None

        async with self._lock_for(user_id):
            document = await self._ensure_loaded(user_id)
            current = await self._recover_local(user_id, document)
            try:
                remote_document = await self._with_timeout(self.remote.load(user_id))
            except (PersistenceError, asyncio.TimeoutError) as e:
                logger.warning(f"Reconcile for {user_id} could not read remote store: {e}")
                return PersistenceReport(
                    local_saved=False,
                    remote_saved=False,
                    errors=[f"{self.remote.name}: {e}"],
                )

            merged = current
            if remote_document is not None:
                merged = merge_documents(current, remote_document)
            self._documents[user_id] = merged
            self._remote_unread.discard(user_id)
            persistence = await self._persist(merged)

        if merged.progress != document.progress:
            logger.info(f"Reconciled remote changes for {user_id}")
            self._notify_listeners(user_id, merged.progress)
        return persistence

    async def retry_persist(self, user_id: str) -> Optional[PersistenceReport]:
        """Save the cached record again after a failed write."""
        async with self._lock_for(user_id):
            document = self._documents.get(user_id)
            if document is None:
                return None
            document = await self._recover_local(user_id, document)
            return await self._persist(document)

    def cached_user_ids(self) -> List[str]:
        return list(self._documents)

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """
        Register a callback for progress changes.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def close(self) -> None:
        pending = [task for task in self._pending_saves.values() if not task.done()]
        if pending:
            await asyncio.wait(pending, timeout=self.settings.persist_timeout_seconds)
        await self.local.close()
        if self.remote is not None:
            await self.remote.close()

    # =========================================================================
    # Internals
    # =========================================================================

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    def _normalize_now(self, now: Optional[datetime]) -> datetime:
        if now is None:
            now = self.clock.now()
        if now.tzinfo is None:
            now = now.replace(tzinfo=self.tz)
        return now

    async def _with_timeout(self, awaitable):
        return await asyncio.wait_for(awaitable, timeout=self.settings.persist_timeout_seconds)

    async def _load_from(
        self,
        backend: ProgressBackend,
        user_id: str,
    ) -> Tuple[Optional[ProgressDocument], bool]:
        """Load from one backend; returns (document, succeeded)."""
        try:
            return await self._with_timeout(backend.load(user_id)), True
        except (PersistenceError, asyncio.TimeoutError) as e:
            logger.warning(f"Could not load progress for {user_id} from {backend.name}: {e}")
            return None, False

    async def _ensure_loaded(self, user_id: str) -> ProgressDocument:
        """Return the cached document, loading and merging on first access.

        Must be called with the user's lock held.
        """
        document = self._documents.get(user_id)
        if document is not None:
            return document

        local_doc, local_ok = await self._load_from(self.local, user_id)
        remote_doc, remote_ok = None, True
        if self.remote is not None:
            remote_doc, remote_ok = await self._load_from(self.remote, user_id)

        if not local_ok and (self.remote is None or not remote_ok):
            raise PersistenceError(f"No progress backend could be read for {user_id}")

        if local_doc is not None and remote_doc is not None:
            document = merge_documents(local_doc, remote_doc)
        elif local_doc is not None:
            document = local_doc
        elif remote_doc is not None:
            document = remote_doc
        else:
            logger.info(f"Creating progress record for {user_id}")
            document = ProgressDocument.new(user_id)

        if not local_ok:
            self._local_unread.add(user_id)
        if self.remote is not None and not remote_ok:
            self._remote_unread.add(user_id)

        self._documents[user_id] = document

        # Write back merges, first-time records and local-only data that
        # still has to reach the remote store.
        if document != local_doc or (self.remote is not None and remote_ok and document != remote_doc):
            await self._persist(document)

        return document

    async def _recover_local(self, user_id: str, document: ProgressDocument) -> ProgressDocument:
        """Merge the stored local record back in once the local cache is readable.

        Must be called with the user's lock held.
        """
        if user_id not in self._local_unread:
            return document

        local_doc, local_ok = await self._load_from(self.local, user_id)
        if not local_ok:
            return document

        self._local_unread.discard(user_id)
        if local_doc is None:
            return document

        logger.info(f"Local cache readable again for {user_id}, merging stored record")
        recovered = merge_documents(local_doc, document)
        self._documents[user_id] = recovered
        return recovered

    def _commit(
        self,
        document: ProgressDocument,
        progress: UserProgress,
        now: datetime,
    ) -> ProgressDocument:
        """Replace the cached record and stamp the fields that changed."""
        old_values = dict(document.progress)
        timestamps = dict(document.field_timestamps)
        for name, value in progress:
            if old_values[name] != value:
                timestamps[name] = now

        updated = ProgressDocument(
            user_id=document.user_id,
            progress=progress,
            field_timestamps=timestamps,
            updated_at=now,
            reset_at=document.reset_at,
        )
        self._documents[document.user_id] = updated
        return updated

    async def _persist(self, document: ProgressDocument) -> PersistenceReport:
        """Write the document to the local cache, then the remote store."""
        user_id = document.user_id
        report = PersistenceReport(remote_saved=None if self.remote is None else False)

        if user_id in self._local_unread:
            report.errors.append(f"{self.local.name}: waiting for a successful load")
        else:
            try:
                await self._save_to(self.local, document)
                report.local_saved = True
            except (PersistenceError, asyncio.TimeoutError) as e:
                logger.warning(f"Local save failed for {user_id}: {e!r}")
                report.errors.append(f"{self.local.name}: {e!r}")

        if self.remote is not None:
            if user_id in self._remote_unread:
                report.errors.append(f"{self.remote.name}: waiting for reconcile")
            else:
                try:
                    await self._save_to(self.remote, document)
                    report.remote_saved = True
                except (PersistenceError, asyncio.TimeoutError) as e:
                    logger.warning(f"Remote save failed for {user_id}: {e!r}")
                    report.errors.append(f"{self.remote.name}: {e!r}")

        return report

    async def _save_to(self, backend: ProgressBackend, document: ProgressDocument) -> None:
        """Save one document, at most one save per backend and user in flight.

        A save that times out is not cancelled: blocking adapters run in a
        worker thread that keeps going. The next save for the same user waits
        for it, so an older document never lands after a newer one.
        """
        key = (id(backend), document.user_id)
        timeout = self.settings.persist_timeout_seconds

        previous = self._pending_saves.get(key)
        if previous is not None and not previous.done():
            await asyncio.wait({previous}, timeout=timeout)
            if not previous.done():
                raise asyncio.TimeoutError(f"earlier save to {backend.name} still running")

        task = asyncio.ensure_future(backend.save(document))
        task.add_done_callback(_log_late_failure)
        self._pending_saves[key] = task
        await asyncio.wait_for(asyncio.shield(task), timeout=timeout)

    async def _emit_events(
        self,
        user_id: str,
        unlocked: List[AchievementDefinition],
        milestone: Optional[StreakMilestone],
        streak_days: int,
    ) -> None:
        for achievement in unlocked:
            try:
                await self.notifier.achievement_unlocked(user_id, achievement)
            except Exception:
                logger.warning(f"Failed to notify achievement {achievement.id}", exc_info=True)

        if milestone is not None:
            try:
                await self.notifier.streak_milestone_reached(user_id, milestone, streak_days)
            except Exception:
                logger.warning(f"Failed to notify streak milestone {milestone.days}", exc_info=True)

    def _notify_listeners(self, user_id: str, progress: UserProgress) -> None:
        for listener in list(self._listeners):
            try:
                listener(user_id, progress)
            except Exception:
                logger.warning("Progress listener failed", exc_info=True)
