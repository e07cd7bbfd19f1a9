"""Configuration settings for the workout engagement engine."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


# __file__ = src/workout_engagement/config.py
PACKAGE_ROOT = Path(__file__).parent
PROJECT_ROOT = PACKAGE_ROOT.parent.parent


class Settings(BaseSettings):
    """Engine settings loaded from environment variables (ENGAGEMENT_ prefix)."""

    model_config = SettingsConfigDict(
        env_prefix="ENGAGEMENT_",
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Local calendar used for streak days and the morning window
    timezone: str = "UTC"

    # Points rules
    base_workout_points: int = 50
    streak_bonus_per_day: int = 5
    morning_bonus_points: int = 10
    morning_start_hour: int = 6
    morning_end_hour: int = 12  # exclusive
    onboarding_bonus_points: int = 100
    award_streak_milestone_points: bool = True

    # Reward wheel
    spin_cost: int = 100

    # Persistence
    local_db_path: Path | None = None
    remote_sync_enabled: bool = False
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_table: str = "user_progress"
    persist_timeout_seconds: float = 5.0

    # Background reconciliation
    sync_interval_minutes: int = 15

    log_level: str = "INFO"

    def model_post_init(self, __context) -> None:
        """Set the default local cache path after initialization."""
        if self.local_db_path is None:
            self.local_db_path = PROJECT_ROOT / "engagement.db"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
