"""Single-slot persistence of the last resolved record."""

from __future__ import annotations

import structlog
from pydantic import ValidationError

from star_destiny.models import UserRecord
from star_destiny.storage import KeyValueStore

logger = structlog.get_logger()

RECORD_KEY = "star_destiny_user_record"


class RecordStore:
    """Keeps the most recent UserRecord so return visits skip the prompt."""

    def __init__(self, store: KeyValueStore, key: str = RECORD_KEY) -> None:
        self._store = store
        self._key = key

    def save(self, record: UserRecord) -> None:
        """Replace whatever was stored before. No history is kept."""
        self._store.set(self._key, record.to_json())

    def load_last(self) -> UserRecord | None:
        """Return the stored record, or None.

        A stored value that fails to parse is deleted and reported as absent.
        """
        raw = self._store.get(self._key)
        if not raw:
            return None

        try:
            return UserRecord.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(
                "stored_record_discarded",
                key=self._key,
                error_count=e.error_count(),
            )
            self._store.delete(self._key)
            return None

    def clear(self) -> None:
        self._store.delete(self._key)
