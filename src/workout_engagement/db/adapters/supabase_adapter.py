"""Supabase progress backend, used as the remote document store.

Expected table (created via Supabase migrations, not by this adapter):

    CREATE TABLE user_progress (
        user_id TEXT PRIMARY KEY,
        document JSONB NOT NULL,
        updated_at TIMESTAMPTZ
    );

With Row-Level Security enabled and the anon key, each user only sees
their own row. The service key bypasses RLS and relies on the explicit
user_id filter below.

The supabase client is synchronous; calls run in a worker thread.
"""

import asyncio
import logging
from typing import Any, Optional

from supabase import Client, create_client

from . import ProgressBackend
from ...exceptions import PersistenceError
from ...models.progress import ProgressDocument


logger = logging.getLogger(__name__)


class SupabaseAdapter(ProgressBackend):
    """Supabase/PostgreSQL implementation of the ProgressBackend interface.

    Usage:
        adapter = SupabaseAdapter(
            url="https://xxx.supabase.co",
            key="your-service-key",
        )
        document = await adapter.load("auth-user-uuid")
    """

    name = "supabase"

    def __init__(
        self,
        url: str = "",
        key: str = "",
        table: str = "user_progress",
        client: Optional[Client] = None,
    ):
        """Initialize Supabase adapter.

        Args:
            url: Supabase project URL
            key: Supabase API key (service or anon key)
            table: Table holding progress documents
            client: Pre-built client; url and key are ignored when given

        Raises:
            ValueError: If neither a client nor url and key are provided.
        """
        if client is None and not (url and key):
            raise ValueError(
                "Supabase URL and key are required. Set ENGAGEMENT_SUPABASE_URL "
                "and ENGAGEMENT_SUPABASE_KEY or pass a client."
            )
        self.url = url
        self.key = key
        self.table = table
        self._client = client

    @property
    def client(self) -> Client:
        """Lazy-initialize Supabase client."""
        if self._client is None:
            self._client = create_client(self.url, self.key)
        return self._client

    # =========================================================================
    # Blocking implementations
    # =========================================================================

    def _load_sync(self, user_id: str) -> Optional[ProgressDocument]:
        result = (
            self.client.table(self.table)
            .select("document")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return ProgressDocument.from_record(result.data[0]["document"])

    def _save_sync(self, document: ProgressDocument) -> None:
        row: dict[str, Any] = {
            "user_id": document.user_id,
            "document": document.to_record(),
            "updated_at": document.updated_at.isoformat() if document.updated_at else None,
        }
        self.client.table(self.table).upsert(row, on_conflict="user_id").execute()

    def _delete_sync(self, user_id: str) -> bool:
        result = self.client.table(self.table).delete().eq("user_id", user_id).execute()
        return bool(result.data)

    # =========================================================================
    # ProgressBackend interface
    # =========================================================================

    async def load(self, user_id: str) -> Optional[ProgressDocument]:
        try:
            return await asyncio.to_thread(self._load_sync, user_id)
        except Exception as e:
            raise PersistenceError(
                f"Failed to load remote progress for {user_id}: {e}",
                backend=self.name,
            ) from e

    async def save(self, document: ProgressDocument) -> None:
        try:
            await asyncio.to_thread(self._save_sync, document)
        except Exception as e:
            raise PersistenceError(
                f"Failed to save remote progress for {document.user_id}: {e}",
                backend=self.name,
            ) from e
        logger.debug(f"Pushed progress for {document.user_id} to Supabase")

    async def delete(self, user_id: str) -> bool:
        try:
            return await asyncio.to_thread(self._delete_sync, user_id)
        except Exception as e:
            raise PersistenceError(
                f"Failed to delete remote progress for {user_id}: {e}",
                backend=self.name,
            ) from e

    async def close(self) -> None:
        self._client = None
