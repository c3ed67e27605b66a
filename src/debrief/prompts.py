"""Two-phase adaptive prompts: pick what to extract, then extract it."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

from debrief.templates import NoteTemplate


class ExtractionElement(Enum):
    """The closed set of content categories notes can be organized around.

    The value is the canonical label used both in prompts and when parsing
    the model's answer, so the two always agree.
    """

    ACTION_ITEMS = "Action items"
    DECISIONS = "Decisions"
    IDEAS = "Ideas"
    QUESTIONS = "Questions"
    KEY_POINTS = "Key points"
    PEOPLE_DATES = "People & dates"

    @property
    def label(self) -> str:
        return self.value

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    ExtractionElement.ACTION_ITEMS: "Tasks, next steps, todos, things that need to be done",
    ExtractionElement.DECISIONS: "What was decided, concluded, or agreed upon",
    ExtractionElement.IDEAS: "Concepts, suggestions, possibilities, creative thoughts",
    ExtractionElement.QUESTIONS: "Open issues, unknowns, things to explore or figure out",
    ExtractionElement.KEY_POINTS: "Important information, facts, main takeaways, critical details",
    ExtractionElement.PEOPLE_DATES: "Who's responsible for what, when things are happening, deadlines",
}

DEFAULT_ELEMENTS = (ExtractionElement.KEY_POINTS,)


def format_elements(elements: Iterable[ExtractionElement]) -> str:
    """Join element labels the way phase 1 is asked to answer."""
    return ", ".join(e.label for e in elements)


def _notes_block(user_notes: Optional[str]) -> list[str]:
    if user_notes and user_notes.strip():
        return [f"User Notes: {user_notes}", ""]
    return []


class AdaptivePromptService:
    """Builds both phase prompts and parses the phase-1 answer.

    Holds no state and performs no I/O; the caller owns the completion calls.
    """

    def build_analysis_prompt(self, transcript: str, user_notes: Optional[str] = None) -> str:
        catalogue = [f"- {e.label}: {e.description}" for e in ExtractionElement]
        example = format_elements(
            [ExtractionElement.ACTION_ITEMS, ExtractionElement.DECISIONS, ExtractionElement.PEOPLE_DATES]
        )
        lines = [
            "Analyze this transcript and determine which elements would be most "
            "helpful to extract and summarize.",
            "",
            "Transcript:",
            transcript,
            "",
            *_notes_block(user_notes),
            "From the following list, identify which elements would actually be "
            "valuable for this content:",
            *catalogue,
            "",
            "Return ONLY the relevant element names as a comma-separated list, with no other text.",
            f'For example: "{example}"',
            "",
            "Only include elements that are genuinely present and useful. "
            "Don't force categories that don't apply.",
        ]
        return "\n".join(lines)

    def parse_elements(self, response: str) -> list[ExtractionElement]:
        """Find which elements the phase-1 answer names.

        Matching is a case-insensitive substring test per label rather than
        strict list parsing, so stray quotes, bullets or prose around the list
        still work. Results follow catalogue order. An answer naming nothing
        falls back to key points.
        """
        normalized = " ".join((response or "").split()).casefold()
        found = [e for e in ExtractionElement if e.label.casefold() in normalized]
        return found or list(DEFAULT_ELEMENTS)

    def build_extraction_prompt(
        self,
        transcript: str,
        user_notes: Optional[str],
        elements: Iterable[ExtractionElement],
        template: Optional[NoteTemplate] = None,
    ) -> str:
        selected = [f"- {e.label}" for e in elements]
        lines = [
            "Based on this transcript, extract and summarize ONLY the following elements:",
            *selected,
            "",
            "Transcript:",
            transcript,
            "",
            *_notes_block(user_notes),
            "For each element you extract:",
            "- Use the element name as a clear section header",
            "- Be concise but complete",
            "- Use bullet points for multiple items",
            "- Only include sections for elements that actually have content",
            "",
            "If an element has no relevant content, skip it entirely.",
        ]
        if template is not None and template.sections:
            lines.append(
                f'These notes follow the "{template.name}" template; where it fits, '
                f"also reflect its sections: {', '.join(template.sections)}."
            )
        lines.append("Focus on being helpful and actionable.")
        return "\n".join(lines)
