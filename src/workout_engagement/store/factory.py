"""Build a ProgressStateStore from application settings."""

import logging
from typing import Optional

from ..clock import Clock, RandomSource, default_random_source
from ..config import Settings, get_settings
from ..db.adapters import ProgressBackend
from ..db.adapters.sqlite_adapter import SQLiteAdapter
from ..exceptions import ConfigurationError
from ..rewards.table import RewardTable
from ..services.notifications import NotificationSink
from .progress_store import ProgressStateStore


logger = logging.getLogger(__name__)


def build_remote_backend(settings: Settings) -> Optional[ProgressBackend]:
    """Create the Supabase backend when remote sync is enabled."""
    if not settings.remote_sync_enabled:
        return None

    if not (settings.supabase_url and settings.supabase_key):
        raise ConfigurationError(
            "Remote sync is enabled but ENGAGEMENT_SUPABASE_URL or "
            "ENGAGEMENT_SUPABASE_KEY is not set"
        )

    from ..db.adapters.supabase_adapter import SupabaseAdapter

    return SupabaseAdapter(
        url=settings.supabase_url,
        key=settings.supabase_key,
        table=settings.supabase_table,
    )


def build_progress_store(
    settings: Optional[Settings] = None,
    notifier: Optional[NotificationSink] = None,
    reward_table: Optional[RewardTable] = None,
    clock: Optional[Clock] = None,
    random_source: RandomSource = default_random_source,
) -> ProgressStateStore:
    """
    Create a store backed by SQLite and, if configured, Supabase.

    Args:
        settings: Engine settings (cached settings if omitted)
        notifier: Sink for achievement and milestone events
        reward_table: Reward configuration (defaults if omitted)
        clock: Time source
        random_source: Random source for the reward wheel
    """
    settings = settings or get_settings()

    local = SQLiteAdapter(settings.local_db_path)
    remote = build_remote_backend(settings)

    logger.info(
        f"Progress store using {local.name} at {settings.local_db_path}"
        + (f" with remote {remote.name}" if remote is not None else "")
    )

    return ProgressStateStore(
        local=local,
        remote=remote,
        reward_table=reward_table,
        clock=clock,
        random_source=random_source,
        notifier=notifier,
        settings=settings,
    )
