"""Application-lifetime wiring of the processing components."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from debrief.completion import TextCompletion, get_backend
from debrief.config import Config
from debrief.models import ProcessingStatus
from debrief.processor import MeetingProcessor
from debrief.prompts import AdaptivePromptService
from debrief.session import BackgroundSessionManager, HostScheduler, LifecycleEvents, LocalScheduler
from debrief.store import JsonRecordStore, RecordStore
from debrief.templates import NoteTemplate, load_templates


@dataclass
class App:
    """Everything one process needs, built once and passed around."""

    config: Config
    store: RecordStore
    prompts: AdaptivePromptService
    templates: dict[str, NoteTemplate]
    processor: MeetingProcessor
    sessions: BackgroundSessionManager
    scheduler: HostScheduler
    events: LifecycleEvents


def build_app(
    config: Config,
    completion: Optional[TextCompletion] = None,
    store: Optional[RecordStore] = None,
    scheduler: Optional[HostScheduler] = None,
) -> App:
    """Construct the components and register the deferred task with the host.

    Collaborators left as None are built from the configuration.
    """
    store = store or JsonRecordStore(config.store_dir)
    completion = completion or get_backend(config)
    scheduler = scheduler or LocalScheduler()
    prompts = AdaptivePromptService()
    templates = load_templates(config.templates_path)

    processor = MeetingProcessor(store, completion, prompts=prompts, templates=templates)
    sessions = BackgroundSessionManager(
        processor,
        store,
        scheduler,
        task_name=config.deferred_task_name,
        budget_hint=config.deferred_budget,
        resume_policy=ProcessingStatus(config.resume_policy),
    )
    sessions.register()

    events = LifecycleEvents()
    sessions.attach(events)

    return App(
        config=config,
        store=store,
        prompts=prompts,
        templates=templates,
        processor=processor,
        sessions=sessions,
        scheduler=scheduler,
        events=events,
    )
