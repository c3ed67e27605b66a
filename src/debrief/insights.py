"""Derive structured insights from the markdown notes of the extraction phase."""

from __future__ import annotations

import logging
import re
from typing import Optional

from debrief.models import ActionItem, KeyDecision, MeetingInsights, OpenQuestion
from debrief.prompts import ExtractionElement

logger = logging.getLogger(__name__)

_MD_HEADER_RE = re.compile(r"^#{1,6}\s*(.+?)\s*#*$")
_BOLD_HEADER_RE = re.compile(r"^\*\*(.+?)\*\*:?$")
_COLON_HEADER_RE = re.compile(r"^([A-Za-z][^:]{0,40}):$")
_BULLET_RE = re.compile(r"^(?:[-*•+]|\d+[.)])\s+(.*)$")
_CHECKBOX_RE = re.compile(r"^\[[ xX]\]\s*")
_OWNER_RE = re.compile(r"\s*[(\[]?\bowner:\s*([^,)\]]+)[)\]]?", re.IGNORECASE)

_HEADER_ALIASES = {
    "people and dates": ExtractionElement.PEOPLE_DATES,
    "next steps": ExtractionElement.ACTION_ITEMS,
    "follow-up": ExtractionElement.ACTION_ITEMS,
    "todos": ExtractionElement.ACTION_ITEMS,
}

RISK_INDICATORS = (
    "risk", "concern", "worried", "problem", "issue",
    "challenge", "difficult", "blocker", "dependency",
    "critical", "urgent", "careful", "watch out",
)


def _header_text(line: str) -> Optional[str]:
    for pattern in (_MD_HEADER_RE, _BOLD_HEADER_RE, _COLON_HEADER_RE):
        m = pattern.match(line)
        if m:
            return m.group(1).strip().rstrip(":").strip("*").strip()
    return None


def match_header(text: str) -> Optional[ExtractionElement]:
    """Map a section header to the element it names, if any."""
    folded = text.casefold()
    for element in ExtractionElement:
        if element.label.casefold() in folded:
            return element
    for alias, element in _HEADER_ALIASES.items():
        if alias in folded:
            return element
    return None


def _strip_bullet(line: str) -> tuple[str, bool]:
    m = _BULLET_RE.match(line)
    if not m:
        return line, False
    return _CHECKBOX_RE.sub("", m.group(1)).strip(), True


def split_sections(text: str) -> tuple[list[str], dict[ExtractionElement, list[str]], list[str]]:
    """Split extraction output into prose, per-element entries and loose bullets.

    Returns:
        Tuple of (prose_lines, sections, loose_bullets). Every non-blank line
        under an element header becomes one entry of that element, bulleted or
        not. Outside element sections, bullets are loose and other lines prose.
    """
    prose: list[str] = []
    sections: dict[ExtractionElement, list[str]] = {}
    loose: list[str] = []
    current: Optional[ExtractionElement] = None

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            if current is None and prose and prose[-1] != "":
                prose.append("")
            continue

        header = _header_text(line)
        if header is not None:
            if prose and prose[-1] != "":
                prose.append("")
            current = match_header(header)
            if current is not None:
                sections.setdefault(current, [])
            continue

        entry, is_bullet = _strip_bullet(line)
        if not entry:
            continue
        if current is not None:
            sections[current].append(entry)
        elif is_bullet:
            loose.append(entry)
        else:
            prose.append(entry)

    return prose, sections, loose


def _first_paragraph(lines: list[str]) -> str:
    paragraph = []
    for line in lines:
        if line == "":
            if paragraph:
                break
            continue
        paragraph.append(line)
    return " ".join(paragraph)


def _split_owner(entry: str) -> tuple[str, Optional[str]]:
    m = _OWNER_RE.search(entry)
    if not m:
        return entry, None
    task = (entry[: m.start()] + entry[m.end():]).strip(" -—,")
    return task or entry, m.group(1).strip()


def derive_insights(text: str) -> MeetingInsights:
    """Build MeetingInsights from the phase-2 markdown notes.

    Key points, ideas and decisions feed key_points; action items feed
    follow_up_items; questions feed unresolved_topics; people & dates feed
    critical_info. Any entry mentioning a risk word is also listed as a risk.
    The executive summary is the first prose paragraph, else the first entry.
    """
    prose, sections, loose = split_sections(text)

    def entries(element: ExtractionElement) -> list[str]:
        return sections.get(element, [])

    key_points = (
        entries(ExtractionElement.KEY_POINTS)
        + loose
        + entries(ExtractionElement.IDEAS)
        + entries(ExtractionElement.DECISIONS)
    )
    actions = entries(ExtractionElement.ACTION_ITEMS)
    questions = entries(ExtractionElement.QUESTIONS)
    people_dates = entries(ExtractionElement.PEOPLE_DATES)

    items = []
    for entry in actions:
        task, owner = _split_owner(entry)
        items.append(ActionItem(task=task, owner=owner))
    items.extend(KeyDecision(decision=d) for d in entries(ExtractionElement.DECISIONS))
    items.extend(OpenQuestion(question=q) for q in questions)

    all_entries = [e for group in sections.values() for e in group] + loose
    risks = [e for e in all_entries if any(word in e.casefold() for word in RISK_INDICATORS)]

    summary = _first_paragraph(prose)
    if not summary and all_entries:
        summary = all_entries[0]
    if not summary and text.strip():
        summary = text.strip().splitlines()[0]

    insights = MeetingInsights(
        executive_summary=summary,
        key_points=key_points,
        critical_info="; ".join(people_dates) or None,
        unresolved_topics=questions,
        risks=risks,
        follow_up_items=actions,
        items=items,
    )
    logger.debug(
        "Derived insights: %d key points, %d follow-ups, %d questions, %d risks",
        len(key_points), len(actions), len(questions), len(risks),
    )
    return insights
