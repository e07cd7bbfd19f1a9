"""Workout engagement engine: streaks, points, achievements and rewards."""

from .config import Settings, get_settings
from .exceptions import (
    ConfigurationError,
    CouponNotFoundError,
    EngagementError,
    ErrorCode,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from .rewards.table import RewardTable, build_reward_table
from .store.factory import build_progress_store
from .store.progress_store import ProgressStateStore

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "get_settings",
    "ConfigurationError",
    "CouponNotFoundError",
    "EngagementError",
    "ErrorCode",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
    "RewardTable",
    "build_reward_table",
    "build_progress_store",
    "ProgressStateStore",
]
