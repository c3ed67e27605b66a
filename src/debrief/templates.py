"""Note-taking templates that shape the extraction output."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class NoteTemplate(BaseModel):
    """A named layout for meeting notes."""

    name: str = Field(description="Label stored in MeetingRecord.template_used")
    title: str = ""
    description: str = ""
    sections: list[str] = Field(default_factory=list)


BUILTIN_TEMPLATES = [
    NoteTemplate(
        name="1-on-1",
        title="One-on-One",
        description="Regular check-in meeting",
        sections=["Agenda", "Discussion Points", "Action Items", "Next Meeting"],
    ),
    NoteTemplate(
        name="Stand-up",
        title="Stand-up",
        description="Daily team sync",
        sections=["Yesterday", "Today", "Blockers"],
    ),
    NoteTemplate(
        name="Client Meeting",
        title="Client Meeting",
        description="External meeting notes",
        sections=["Attendees", "Agenda", "Notes", "Decisions", "Follow-up"],
    ),
    NoteTemplate(
        name="Brainstorm",
        title="Brainstorm",
        description="Creative session",
        sections=["Topic", "Ideas", "Pros/Cons", "Next Steps"],
    ),
]


def load_templates(path: str = "") -> dict[str, NoteTemplate]:
    """
    Load note templates, layering a YAML file over the built-ins.

    The file holds either a list of templates or a mapping with a
    "templates" key. Entries whose name matches a built-in replace it.

    Args:
        path: Path to YAML templates file, empty for built-ins only

    Returns:
        Mapping of template name to NoteTemplate. Falls back to the
        built-ins if the file is missing or malformed.
    """
    templates = {t.name: t for t in BUILTIN_TEMPLATES}
    if not path:
        return templates

    filepath = Path(path).expanduser()
    if not filepath.exists():
        logger.warning(f"Templates file not found: {path}")
        return templates

    try:
        with open(filepath, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.warning(f"Error loading templates from {path}: {e}")
        return templates

    if isinstance(data, dict):
        data = data.get("templates", [])
    if not isinstance(data, list):
        return templates

    for entry in data:
        try:
            template = NoteTemplate.model_validate(entry)
        except ValidationError as e:
            logger.warning(f"Skipping invalid template in {path}: {e}")
            continue
        templates[template.name] = template

    return templates


def get_template(
    name: Optional[str], templates: dict[str, NoteTemplate]
) -> Optional[NoteTemplate]:
    if not name:
        return None
    template = templates.get(name)
    if template is None:
        logger.debug("Unknown template %r, extracting without one", name)
    return template
