"""Drive a meeting record through the two-phase extraction pipeline."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from debrief.completion import TextCompletion
from debrief.errors import (
    CompletionError,
    EmptyExtractionError,
    EmptyInputError,
    ProcessingError,
    ProcessingInProgressError,
    StoreError,
)
from debrief.insights import derive_insights
from debrief.models import MeetingRecord, ProcessingStatus, encode_insights
from debrief.prompts import AdaptivePromptService, format_elements
from debrief.store import RecordStore
from debrief.templates import NoteTemplate, get_template

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MeetingProcessor:
    """Runs extraction for one meeting at a time per record id.

    Every status change is saved before the in-memory record is updated, so
    a failed save leaves the caller's record as it was. Distinct records may
    be processed from different threads concurrently; a second call for a
    record that is already in flight is rejected.
    """

    def __init__(
        self,
        store: RecordStore,
        completion: TextCompletion,
        prompts: Optional[AdaptivePromptService] = None,
        templates: Optional[dict[str, NoteTemplate]] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.completion = completion
        self.prompts = prompts or AdaptivePromptService()
        self.templates = templates or {}
        self.clock = clock
        self._lock = threading.Lock()
        self._in_flight: set[str] = set()

    def in_flight(self) -> frozenset[str]:
        """Ids of records with a process() call currently running."""
        with self._lock:
            return frozenset(self._in_flight)

    def reclaim(self, record_id: str, status: ProcessingStatus, **changes) -> bool:
        """Move a record orphaned in processing to another status.

        The check and the save happen under the same lock process() uses to
        claim records, and the record is reloaded first, so a run that
        finished after the caller listed the record is never overwritten.

        Returns:
            True if the record was still stuck and has been moved
        """
        with self._lock:
            if record_id in self._in_flight:
                return False
            record = self.store.load(record_id)
            if record.processing_status != ProcessingStatus.PROCESSING:
                return False
            changes["processing_status"] = status
            self.store.save(record.model_copy(update=changes))
            return True

    def process_by_id(self, record_id: str) -> MeetingRecord:
        return self.process(self.store.load(record_id))

    def process(self, record: MeetingRecord) -> MeetingRecord:
        """Run both extraction phases and persist the outcome.

        Re-running on a completed record repeats the whole pipeline and
        replaces the previous notes and insights.

        Args:
            record: The meeting to process; updated in place

        Returns:
            The same record, now completed

        Raises:
            EmptyInputError: Neither transcript nor notes; nothing is changed
            ProcessingInProgressError: This record is already being processed
            CompletionError: A completion call failed; record is now failed
            EmptyExtractionError: Phase 2 returned nothing; record is now failed
            StoreError: A status change could not be saved
        """
        if not record.has_input():
            raise EmptyInputError(f"Meeting {record.id} has no transcript or notes")

        with self._lock:
            if record.id in self._in_flight:
                raise ProcessingInProgressError(f"Meeting {record.id} is already being processed")
            self._in_flight.add(record.id)

        try:
            return self._run(record)
        finally:
            with self._lock:
                self._in_flight.discard(record.id)

    def _run(self, record: MeetingRecord) -> MeetingRecord:
        if record.processing_status == ProcessingStatus.PROCESSING:
            logger.warning(f"Meeting {record.id} was left processing, reclaiming it")
        elif record.processing_status.is_terminal:
            logger.info(f"Re-processing meeting {record.id} ({record.processing_status.value})")

        self._transition(record, ProcessingStatus.PROCESSING)

        transcript = record.transcript or ""
        notes = record.raw_notes
        try:
            analysis = self._complete(self.prompts.build_analysis_prompt(transcript, notes))
            elements = self.prompts.parse_elements(analysis)
            logger.info(f"Meeting {record.id}: extracting {format_elements(elements)}")

            template = get_template(record.template_used, self.templates)
            extraction = self._complete(
                self.prompts.build_extraction_prompt(transcript, notes, elements, template)
            )
        except CompletionError as e:
            self._fail(record, e)
            raise

        if not extraction.strip():
            error = EmptyExtractionError(f"Meeting {record.id}: extraction returned no content")
            self._fail(record, error)
            raise error

        notes_text = extraction.strip()
        self._transition(
            record,
            ProcessingStatus.COMPLETED,
            enhanced_notes=notes_text,
            insights=encode_insights(derive_insights(notes_text)),
            last_processed_date=self.clock(),
        )
        logger.info(f"Meeting {record.id} processed")
        return record

    def _complete(self, prompt: str) -> str:
        try:
            return self.completion.complete(prompt)
        except CompletionError:
            raise
        except Exception as e:
            raise CompletionError(f"Completion backend error: {e}") from e

    def _fail(self, record: MeetingRecord, cause: ProcessingError) -> None:
        logger.warning(f"Meeting {record.id} failed: {cause}")
        try:
            self._transition(record, ProcessingStatus.FAILED, last_processed_date=self.clock())
        except StoreError as e:
            raise e from cause

    def _transition(self, record: MeetingRecord, status: ProcessingStatus, **changes) -> None:
        current = record.processing_status
        if current != status and not current.can_transition_to(status):
            raise ProcessingError(
                f"Meeting {record.id}: illegal transition {current.value} -> {status.value}"
            )
        changes["processing_status"] = status
        self.store.save(record.model_copy(update=changes))
        for name, value in changes.items():
            setattr(record, name, value)
