"""In-memory progress backend for guest sessions."""

from typing import Dict, Optional

from . import ProgressBackend
from ...models.progress import ProgressDocument


class InMemoryAdapter(ProgressBackend):
    """Keeps documents in a dict; nothing survives the process.

    Documents are stored as JSON records so callers never share mutable
    state with the backend.
    """

    name = "memory"

    def __init__(self):
        self._records: Dict[str, dict] = {}

    async def load(self, user_id: str) -> Optional[ProgressDocument]:
        record = self._records.get(user_id)
        if record is None:
            return None
        return ProgressDocument.from_record(record)

    async def save(self, document: ProgressDocument) -> None:
        self._records[document.user_id] = document.to_record()

    async def delete(self, user_id: str) -> bool:
        return self._records.pop(user_id, None) is not None

    def __len__(self) -> int:
        return len(self._records)
