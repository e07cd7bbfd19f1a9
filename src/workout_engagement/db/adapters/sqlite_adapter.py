"""SQLite progress backend, used as the on-device cache.

SQLite-Specific Considerations:
    - Documents are stored as JSON TEXT, one row per user
    - Timestamps are stored as ISO strings
    - Single-writer model (WAL for concurrent readers)
    - sqlite3 is blocking, so every call runs in a worker thread
"""

import asyncio
import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from . import ProgressBackend
from ..schema import SCHEMA
from ...exceptions import PersistenceError
from ...models.progress import ProgressDocument


logger = logging.getLogger(__name__)


class SQLiteAdapter(ProgressBackend):
    """SQLite implementation of the ProgressBackend interface.

    Usage:
        adapter = SQLiteAdapter(db_path="engagement.db")
        document = await adapter.load("user-123")
    """

    name = "sqlite"

    def __init__(self, db_path: Union[str, Path]):
        """Initialize the adapter and create the schema if needed.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database tables if they don't exist."""
        try:
            with self._get_connection() as conn:
                conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to initialize progress cache at {self.db_path}: {e}",
                backend=self.name,
            ) from e

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # =========================================================================
    # Blocking implementations
    # =========================================================================

    def _load_sync(self, user_id: str) -> Optional[ProgressDocument]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT document FROM user_progress WHERE user_id = ?",
                (user_id,),
            ).fetchone()

        if not row:
            return None
        return ProgressDocument.from_record(json.loads(row["document"]))

    def _save_sync(self, document: ProgressDocument) -> None:
        updated_at = document.updated_at.isoformat() if document.updated_at else None
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO user_progress (user_id, document, updated_at, saved_at)
                VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(user_id) DO UPDATE SET
                    document = excluded.document,
                    updated_at = excluded.updated_at,
                    saved_at = CURRENT_TIMESTAMP
                """,
                (document.user_id, json.dumps(document.to_record()), updated_at),
            )

    def _delete_sync(self, user_id: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM user_progress WHERE user_id = ?",
                (user_id,),
            )
            return cursor.rowcount > 0

    # =========================================================================
    # ProgressBackend interface
    # =========================================================================

    async def load(self, user_id: str) -> Optional[ProgressDocument]:
        try:
            return await asyncio.to_thread(self._load_sync, user_id)
        except (sqlite3.Error, ValueError, PydanticValidationError) as e:
            raise PersistenceError(
                f"Failed to load progress for {user_id}: {e}",
                backend=self.name,
            ) from e

    async def save(self, document: ProgressDocument) -> None:
        try:
            await asyncio.to_thread(self._save_sync, document)
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to save progress for {document.user_id}: {e}",
                backend=self.name,
            ) from e
        logger.debug(f"Saved progress for {document.user_id} to {self.db_path}")

    async def delete(self, user_id: str) -> bool:
        try:
            return await asyncio.to_thread(self._delete_sync, user_id)
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to delete progress for {user_id}: {e}",
                backend=self.name,
            ) from e
