"""Persistence adapters for user progress documents.

The store keeps the authoritative record in memory and writes it through
one or two adapters: a local cache on the device and, optionally, a remote
document store. Both implement the same interface so the store does not
care which backend it is talking to.

Usage:
    # Local cache
    from workout_engagement.db.adapters.sqlite_adapter import SQLiteAdapter
    local = SQLiteAdapter(db_path="engagement.db")

    # Remote document store
    from workout_engagement.db.adapters.supabase_adapter import SupabaseAdapter
    remote = SupabaseAdapter(url=SUPABASE_URL, key=SUPABASE_KEY)

    document = await local.load("user-123")
"""

from abc import ABC, abstractmethod
from typing import Optional

from ...models.progress import ProgressDocument


class ProgressBackend(ABC):
    """Abstract base class for progress persistence.

    Implementations raise PersistenceError when the underlying storage
    fails; a missing document is not an error and loads as None.
    """

    name: str = "backend"

    @abstractmethod
    async def load(self, user_id: str) -> Optional[ProgressDocument]:
        """Load the user's document.

        Args:
            user_id: User identifier

        Returns:
            The stored document, or None if the user has none
        """
        pass

    @abstractmethod
    async def save(self, document: ProgressDocument) -> None:
        """Insert or replace the user's document."""
        pass

    @abstractmethod
    async def delete(self, user_id: str) -> bool:
        """Delete the user's document.

        Returns:
            True if a document was deleted, False if none existed
        """
        pass

    async def close(self) -> None:
        """Release backend resources."""
        return None


__all__ = ["ProgressBackend"]
