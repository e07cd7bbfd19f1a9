"""Authoritative user progress state and its synchronization."""

from .factory import build_progress_store
from .merge import merge_documents
from .progress_store import PERIOD_COUNTERS, ProgressListener, ProgressStateStore

__all__ = [
    "build_progress_store",
    "merge_documents",
    "PERIOD_COUNTERS",
    "ProgressListener",
    "ProgressStateStore",
]
