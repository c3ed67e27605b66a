"""Meeting record persistence."""

from __future__ import annotations

import logging
import re
import threading
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError

from debrief.errors import RecordNotFoundError, StoreError
from debrief.models import MeetingRecord, ProcessingStatus

logger = logging.getLogger(__name__)

_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class RecordStore(Protocol):
    """Persistence collaborator for meeting records."""

    def load(self, record_id: str) -> MeetingRecord:
        ...

    def save(self, record: MeetingRecord) -> None:
        ...

    def list_records(self, status: Optional[ProcessingStatus] = None) -> list[MeetingRecord]:
        ...


class JsonRecordStore:
    """One JSON document per meeting in a directory.

    Each save replaces the whole document atomically, so a reader sees
    either the previous record or the new one, never a mix.
    """

    def __init__(self, store_dir: str):
        self.store_dir = Path(store_dir)
        self._lock = threading.Lock()

    def _path(self, record_id: str) -> Path:
        if not _ID_RE.match(record_id):
            raise StoreError(f"Invalid record id: {record_id!r}")
        return self.store_dir / f"{record_id}.json"

    def _read(self, path: Path) -> MeetingRecord:
        try:
            return MeetingRecord.model_validate_json(path.read_text())
        except (OSError, ValidationError) as e:
            raise StoreError(f"Cannot read record {path.name}: {e}") from e

    def load(self, record_id: str) -> MeetingRecord:
        """Load a record by id.

        Raises:
            RecordNotFoundError: If no record exists for the id
            StoreError: If the record file is unreadable
        """
        path = self._path(record_id)
        if not path.exists():
            raise RecordNotFoundError(f"No meeting with id {record_id}")
        return self._read(path)

    def save(self, record: MeetingRecord) -> None:
        """Save a record using atomic write.

        Uses temp file + rename to ensure atomicity.
        """
        path = self._path(record.id)
        data = record.model_dump_json(indent=2)
        with self._lock:
            try:
                self.store_dir.mkdir(parents=True, exist_ok=True)
                tmp = path.with_suffix(".json.tmp")
                tmp.write_text(data)
                tmp.replace(path)
            except OSError as e:
                raise StoreError(f"Cannot save meeting {record.id}: {e}") from e
        logger.debug("Saved meeting %s (%s)", record.id, record.processing_status.value)

    def list_records(self, status: Optional[ProcessingStatus] = None) -> list[MeetingRecord]:
        """List stored records, oldest first, optionally filtered by status."""
        if not self.store_dir.exists():
            return []
        records = [self._read(p) for p in self.store_dir.glob("*.json")]
        if status is not None:
            records = [r for r in records if r.processing_status == status]
        return sorted(records, key=lambda r: r.created_at)
