"""Shared fixtures for debrief tests."""

import pytest

from debrief.models import MeetingRecord
from debrief.store import JsonRecordStore


class ScriptedCompletion:
    """Completion fake that replays responses in order.

    An Exception instance in the script is raised instead of returned.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def store(tmp_path):
    return JsonRecordStore(str(tmp_path / "meetings"))


@pytest.fixture
def meeting(store):
    record = MeetingRecord(
        title="Release sync",
        transcript="Dana: let's ship the beta Friday. Sam: I'll book the demo room.",
        raw_notes="beta friday",
    )
    store.save(record)
    return record


@pytest.fixture
def scripted():
    """Factory for ScriptedCompletion instances."""
    return ScriptedCompletion
