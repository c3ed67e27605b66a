"""Pydantic models for meeting records and their extracted insights."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from debrief.errors import DataCorruptionError


class ProcessingStatus(str, Enum):
    """Where a meeting is in the extraction pipeline."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingStatus.COMPLETED, ProcessingStatus.FAILED)

    def can_transition_to(self, other: "ProcessingStatus") -> bool:
        return other in _TRANSITIONS[self]


_TRANSITIONS = {
    ProcessingStatus.PENDING: {ProcessingStatus.PROCESSING},
    ProcessingStatus.PROCESSING: {
        ProcessingStatus.COMPLETED,
        ProcessingStatus.FAILED,
        ProcessingStatus.PENDING,
    },
    # A retry re-enters the pipeline
    ProcessingStatus.COMPLETED: {ProcessingStatus.PENDING, ProcessingStatus.PROCESSING},
    ProcessingStatus.FAILED: {ProcessingStatus.PENDING, ProcessingStatus.PROCESSING},
}


class ActionItem(BaseModel):
    """Something to do after the meeting."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["action_item"] = "action_item"
    task: str = Field(description="What to do")
    owner: Optional[str] = Field(default=None, description="Who owns it")


class KeyDecision(BaseModel):
    """A decision made during the meeting."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["decision"] = "decision"
    decision: str = Field(description="What was decided")
    context: Optional[str] = Field(default=None, description="Why it was decided")


class OpenQuestion(BaseModel):
    """A question left open by the meeting."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["question"] = "question"
    question: str = Field(description="The question")
    assigned_to: Optional[str] = Field(default=None, description="Who follows up")


ExtractedItem = Annotated[
    Union[ActionItem, KeyDecision, OpenQuestion],
    Field(discriminator="kind"),
]


class MeetingInsights(BaseModel):
    """Structured summary derived from a meeting's transcript and notes."""

    model_config = ConfigDict(extra="forbid")

    executive_summary: str = Field(default="", description="2-3 sentence summary")
    key_points: list[str] = Field(default_factory=list)
    critical_info: Optional[str] = None
    unresolved_topics: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    follow_up_items: list[str] = Field(default_factory=list)
    items: list[ExtractedItem] = Field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MeetingRecord(BaseModel):
    """A recorded meeting and the state of its note extraction."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, frozen=True)
    title: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    duration: float = 0.0
    transcript: Optional[str] = None
    raw_notes: Optional[str] = None
    enhanced_notes: Optional[str] = None
    insights: Optional[str] = Field(
        default=None, description="Serialized MeetingInsights, see decode_insights()"
    )
    template_used: Optional[str] = None
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    last_processed_date: Optional[datetime] = None

    def has_input(self) -> bool:
        """True when there is a transcript or notes worth extracting from."""
        return bool((self.transcript or "").strip() or (self.raw_notes or "").strip())

    def formatted_duration(self) -> str:
        """Duration as "1h 05m", "3m 07s" or "42s"."""
        total = int(self.duration)
        hours, minutes, seconds = total // 3600, total % 3600 // 60, total % 60
        if hours:
            return f"{hours}h {minutes:02d}m"
        if minutes:
            return f"{minutes}m {seconds:02d}s"
        return f"{seconds}s"


def encode_insights(insights: MeetingInsights) -> str:
    return insights.model_dump_json()


def decode_insights(blob: Optional[str]) -> Optional[MeetingInsights]:
    """Decode a persisted insights blob.

    Returns None only when there is no blob at all. A non-empty blob that
    does not validate (bad JSON, unknown item kind, missing or extra fields)
    raises DataCorruptionError.
    """
    if blob is None or not blob.strip():
        return None
    try:
        return MeetingInsights.model_validate_json(blob)
    except ValidationError as e:
        raise DataCorruptionError(f"Insights blob failed to decode: {e}") from e


def read_insights(record: MeetingRecord) -> Optional[MeetingInsights]:
    """Return the insights a reader may trust for this record.

    Anything other than a completed record yields None, since its blob is
    either absent or stale. A completed record must carry a decodable blob.
    """
    if record.processing_status != ProcessingStatus.COMPLETED:
        return None
    insights = decode_insights(record.insights)
    if insights is None:
        raise DataCorruptionError(f"Meeting {record.id} is completed but has no insights")
    return insights
