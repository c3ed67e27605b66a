"""Tests for meeting models and the insights blob boundary."""

import json

import pytest
from pydantic import ValidationError

from debrief.errors import DataCorruptionError
from debrief.models import (
    ActionItem,
    KeyDecision,
    MeetingInsights,
    MeetingRecord,
    OpenQuestion,
    ProcessingStatus,
    decode_insights,
    encode_insights,
    read_insights,
)

S = ProcessingStatus


class TestProcessingStatus:
    """Test the status transition table."""

    @pytest.mark.parametrize(
        "current, target",
        [
            (S.PENDING, S.PROCESSING),
            (S.PROCESSING, S.COMPLETED),
            (S.PROCESSING, S.FAILED),
            (S.PROCESSING, S.PENDING),
            (S.FAILED, S.PENDING),
            (S.COMPLETED, S.PROCESSING),
        ],
    )
    def test_allowed(self, current, target):
        assert current.can_transition_to(target)

    @pytest.mark.parametrize(
        "current, target",
        [
            (S.PENDING, S.COMPLETED),
            (S.PENDING, S.FAILED),
            (S.FAILED, S.COMPLETED),
            (S.COMPLETED, S.FAILED),
        ],
    )
    def test_rejected(self, current, target):
        assert not current.can_transition_to(target)

    def test_terminal(self):
        assert S.COMPLETED.is_terminal and S.FAILED.is_terminal
        assert not S.PENDING.is_terminal and not S.PROCESSING.is_terminal


class TestMeetingRecord:
    """Test MeetingRecord defaults and guards."""

    def test_defaults(self):
        record = MeetingRecord()
        assert record.processing_status == S.PENDING
        assert record.insights is None
        assert record.last_processed_date is None
        assert len(record.id) == 32

    def test_id_is_immutable(self):
        record = MeetingRecord()
        with pytest.raises(ValidationError):
            record.id = "something-else"

    @pytest.mark.parametrize(
        "transcript, notes, expected",
        [
            (None, None, False),
            ("", "  ", False),
            ("hello", None, True),
            (None, "notes", True),
        ],
    )
    def test_has_input(self, transcript, notes, expected):
        assert MeetingRecord(transcript=transcript, raw_notes=notes).has_input() is expected

    @pytest.mark.parametrize(
        "seconds, expected",
        [(0, "0s"), (42.9, "42s"), (187, "3m 07s"), (3600, "1h 00m"), (3900, "1h 05m")],
    )
    def test_formatted_duration(self, seconds, expected):
        assert MeetingRecord(duration=seconds).formatted_duration() == expected


class TestInsightsBlob:
    """Test encoding and decoding of the insights blob."""

    def test_defaults_are_empty(self):
        insights = MeetingInsights()
        assert insights.executive_summary == ""
        assert insights.key_points == []
        assert insights.critical_info is None
        assert insights.items == []

    def test_round_trip_with_tagged_items(self):
        insights = MeetingInsights(
            executive_summary="Shipped.",
            key_points=["beta Friday"],
            items=[
                ActionItem(task="Write notes", owner="Dana"),
                KeyDecision(decision="Ship Friday"),
                OpenQuestion(question="Which region?"),
            ],
        )
        decoded = decode_insights(encode_insights(insights))
        assert decoded == insights
        assert [i.kind for i in decoded.items] == ["action_item", "decision", "question"]

    def test_serialized_items_carry_discriminant(self):
        blob = encode_insights(MeetingInsights(items=[KeyDecision(decision="Ship")]))
        assert json.loads(blob)["items"][0]["kind"] == "decision"

    @pytest.mark.parametrize("blob", [None, "", "   "])
    def test_absent_blob_is_none(self, blob):
        assert decode_insights(blob) is None

    def test_invalid_json_is_corruption(self):
        with pytest.raises(DataCorruptionError):
            decode_insights("{not json")

    def test_unknown_kind_is_corruption(self):
        blob = json.dumps({"items": [{"kind": "thought", "text": "hmm"}]})
        with pytest.raises(DataCorruptionError):
            decode_insights(blob)

    def test_extra_variant_field_is_corruption(self):
        blob = json.dumps({"items": [{"kind": "decision", "decision": "x", "task": "y"}]})
        with pytest.raises(DataCorruptionError):
            decode_insights(blob)

    def test_missing_variant_field_is_corruption(self):
        blob = json.dumps({"items": [{"kind": "action_item"}]})
        with pytest.raises(DataCorruptionError):
            decode_insights(blob)


class TestReadInsights:
    """Test the reader-side trust rules."""

    def test_completed_record(self):
        blob = encode_insights(MeetingInsights(executive_summary="ok"))
        record = MeetingRecord(insights=blob, processing_status=S.COMPLETED)
        assert read_insights(record).executive_summary == "ok"

    @pytest.mark.parametrize("status", [S.PENDING, S.PROCESSING, S.FAILED])
    def test_stale_blob_not_trusted(self, status):
        blob = encode_insights(MeetingInsights(executive_summary="old"))
        assert read_insights(MeetingRecord(insights=blob, processing_status=status)) is None

    def test_completed_without_blob_is_corruption(self):
        with pytest.raises(DataCorruptionError):
            read_insights(MeetingRecord(processing_status=S.COMPLETED))

    def test_completed_with_bad_blob_is_corruption(self):
        record = MeetingRecord(insights="garbage", processing_status=S.COMPLETED)
        with pytest.raises(DataCorruptionError):
            read_insights(record)
