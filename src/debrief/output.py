"""Meeting exports and the processing log."""

import logging
from datetime import datetime
from pathlib import Path

from debrief.models import MeetingInsights, MeetingRecord, read_insights

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("markdown", "text")


def _export_path(record: MeetingRecord, output_dir: str, suffix: str) -> Path:
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    timestamp_str = record.created_at.strftime("%Y-%m-%d-%H-%M-%S")
    return output_path / f"{timestamp_str}-{record.id[:8]}.{suffix}"


def _owner_text(owner) -> str:
    return f"Owner: {owner}" if owner else "Owner: Unassigned"


def _insight_sections(insights: MeetingInsights) -> list[tuple[str, list[str]]]:
    """Insight sections as (heading, bullet lines), skipping empty ones."""
    sections = []
    for heading, entries in (
        ("Key Points", insights.key_points),
        ("Unresolved Topics", insights.unresolved_topics),
        ("Risks", insights.risks),
    ):
        if entries:
            sections.append((heading, [f"- {entry}" for entry in entries]))

    actions = [i for i in insights.items if i.kind == "action_item"]
    if actions:
        sections.append(
            ("Action Items", [f"- [ ] {a.task} — {_owner_text(a.owner)}" for a in actions])
        )
    return sections


def write_meeting_markdown(record: MeetingRecord, output_dir: str) -> str:
    """
    Generate and write a markdown file for a meeting.

    Insights are only rendered for completed meetings; anything else gets a
    status line so a failed or pending meeting is never mistaken for a
    finished one.

    Args:
        record: The meeting to export
        output_dir: Directory to write markdown file to

    Returns:
        Path to the generated markdown file

    Raises:
        DataCorruptionError: If a completed meeting's insights do not decode
    """
    filepath = _export_path(record, output_dir, "md")
    insights = read_insights(record)

    lines = []
    title = record.title or "Untitled meeting"
    lines.append(f"# {title} — {record.created_at.strftime('%Y-%m-%d %H:%M')}")
    lines.append("")

    meta = [f"**Status:** {record.processing_status.value}"]
    if record.template_used:
        meta.append(f"**Template:** {record.template_used}")
    if record.last_processed_date:
        meta.append(f"**Processed:** {record.last_processed_date.strftime('%Y-%m-%d %H:%M')}")
    lines.append(" · ".join(meta))
    lines.append(f"**Duration:** {record.formatted_duration()}")
    lines.append("")

    if insights is not None:
        if insights.executive_summary:
            lines.append("## Executive Summary")
            lines.append(insights.executive_summary)
            lines.append("")

        if insights.critical_info:
            lines.append("## Critical Information")
            lines.append(insights.critical_info)
            lines.append("")

        for heading, entries in _insight_sections(insights):
            lines.append(f"## {heading}")
            lines.extend(entries)
            lines.append("")

    if record.enhanced_notes and insights is not None:
        lines.append("## Notes")
        lines.append(record.enhanced_notes)
        lines.append("")

    if record.raw_notes:
        lines.append("## Your Notes")
        lines.append(record.raw_notes)
        lines.append("")

    if record.transcript:
        lines.append("## Transcript")
        lines.append(record.transcript)
        lines.append("")

    content = "\n".join(lines).rstrip() + "\n"
    filepath.write_text(content)
    logger.debug("Wrote %s", filepath)

    return str(filepath)


def write_meeting_text(record: MeetingRecord, output_dir: str) -> str:
    """Write a plain-text export of a meeting, same content as the markdown one."""
    filepath = _export_path(record, output_dir, "txt")
    insights = read_insights(record)

    def section(heading: str, body: list[str]) -> None:
        heading = heading.upper()
        lines.extend([heading, "-" * len(heading), *body, ""])

    title = f"{record.title or 'Untitled meeting'} — {record.created_at.strftime('%Y-%m-%d %H:%M')}"
    lines = [title, "=" * len(title), ""]
    lines.append(f"Status: {record.processing_status.value}")
    lines.append(f"Duration: {record.formatted_duration()}")
    if record.template_used:
        lines.append(f"Template: {record.template_used}")
    if record.last_processed_date:
        lines.append(f"Processed: {record.last_processed_date.strftime('%Y-%m-%d %H:%M')}")
    lines.append("")

    if insights is not None:
        if insights.executive_summary:
            section("Summary", [insights.executive_summary])
        if insights.critical_info:
            section("Critical Information", [insights.critical_info])
        for heading, entries in _insight_sections(insights):
            section(heading, entries)
        if record.enhanced_notes:
            section("Notes", [record.enhanced_notes])

    if record.raw_notes:
        section("Your Notes", [record.raw_notes])
    if record.transcript:
        section("Transcript", [record.transcript])

    filepath.write_text("\n".join(lines).rstrip() + "\n")
    logger.debug("Wrote %s", filepath)

    return str(filepath)


def write_meeting_export(record: MeetingRecord, output_dir: str, fmt: str = "markdown") -> str:
    """Write a meeting export in one of EXPORT_FORMATS and return its path."""
    if fmt == "markdown":
        return write_meeting_markdown(record, output_dir)
    if fmt == "text":
        return write_meeting_text(record, output_dir)
    raise ValueError(f"Unknown export format: {fmt} (have: {', '.join(EXPORT_FORMATS)})")


def append_processing_log(output_dir: str, record: MeetingRecord) -> None:
    """
    Append a tab-separated entry for a processing attempt to processing.log.

    Columns: log time, meeting id, status, key points, follow-ups, questions.
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    insights = read_insights(record)
    counts = ["0", "0", "0"]
    if insights is not None:
        counts = [
            str(len(insights.key_points)),
            str(len(insights.follow_up_items)),
            str(len(insights.unresolved_topics)),
        ]

    fields = [
        datetime.now().isoformat(),
        record.id,
        record.processing_status.value,
        *counts,
    ]

    with open(output_path / "processing.log", "a") as f:
        f.write("\t".join(fields) + "\n")
