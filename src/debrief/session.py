"""Background session lifecycle: suspension, deferred work and resume recovery."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Protocol

from debrief.errors import EmptyInputError, ProcessingError, ProcessingInProgressError
from debrief.models import ProcessingStatus
from debrief.processor import MeetingProcessor
from debrief.store import RecordStore

logger = logging.getLogger(__name__)

DeferredHandler = Callable[[float], object]


class LifecycleEvent(Enum):
    """Host notifications the core reacts to."""

    SESSION_ENDED = "session_ended"
    APP_WILL_SUSPEND = "app_will_suspend"
    ON_RESUME = "on_resume"


class LifecycleEvents:
    """Event channel the host publishes lifecycle notifications on."""

    def __init__(self):
        self._subscribers: list[Callable[[LifecycleEvent], None]] = []

    def subscribe(self, callback: Callable[[LifecycleEvent], None]) -> None:
        self._subscribers.append(callback)

    def emit(self, event: LifecycleEvent) -> None:
        for callback in list(self._subscribers):
            callback(event)


class HostScheduler(Protocol):
    """Host capability for running work later under a time budget."""

    def register_deferred_task(self, name: str, handler: DeferredHandler) -> None:
        ...

    def request_execution_slot(self, name: str, budget_hint: float) -> bool:
        ...


class LocalScheduler:
    """In-process host scheduler.

    Slot requests are queued and only run when the host calls run_pending(),
    mirroring a platform scheduler that decides on its own when to grant time.
    """

    def __init__(self):
        self._handlers: dict[str, DeferredHandler] = {}
        self._requests: list[tuple[str, float]] = []

    def register_deferred_task(self, name: str, handler: DeferredHandler) -> None:
        if name in self._handlers:
            raise RuntimeError(f"Deferred task {name!r} is already registered")
        self._handlers[name] = handler

    def request_execution_slot(self, name: str, budget_hint: float) -> bool:
        if name not in self._handlers:
            raise RuntimeError(f"Deferred task {name!r} was never registered")
        self._requests.append((name, budget_hint))
        return True

    def pending(self) -> list[tuple[str, float]]:
        return list(self._requests)

    def run_pending(self) -> list[object]:
        requests, self._requests = self._requests, []
        return [self._handlers[name](budget) for name, budget in requests]


class BackgroundSessionManager:
    """Tracks whether a session is open and keeps records consistent across
    suspension and resume.

    Only a live process() call may hold a record in processing. On resume,
    anything still marked processing that this process is not working on was
    orphaned by a previous lifecycle and gets swept.
    """

    def __init__(
        self,
        processor: MeetingProcessor,
        store: RecordStore,
        scheduler: HostScheduler,
        task_name: str = "debrief.processing",
        budget_hint: float = 30.0,
        resume_policy: ProcessingStatus = ProcessingStatus.FAILED,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        timer: Callable[[], float] = time.monotonic,
    ):
        if resume_policy not in (ProcessingStatus.FAILED, ProcessingStatus.PENDING):
            raise ValueError(f"Unsupported resume policy: {resume_policy}")
        self.processor = processor
        self.store = store
        self.scheduler = scheduler
        self.task_name = task_name
        self.budget_hint = budget_hint
        self.resume_policy = resume_policy
        self.clock = clock
        self.timer = timer
        self._active = False
        self._suspended = False

    @property
    def is_active(self) -> bool:
        return self._active

    def register(self) -> None:
        """Register the deferred task with the host. Call once at startup."""
        self.scheduler.register_deferred_task(self.task_name, self.run_deferred)

    def attach(self, events: LifecycleEvents) -> None:
        events.subscribe(self.handle_event)

    def handle_event(self, event: LifecycleEvent) -> None:
        if event is LifecycleEvent.SESSION_ENDED:
            self.session_ended()
        elif event is LifecycleEvent.APP_WILL_SUSPEND:
            self.app_will_suspend()
        elif event is LifecycleEvent.ON_RESUME:
            self.on_resume()

    def session_started(self) -> None:
        self._active = True

    def session_ended(self) -> None:
        self._active = False

    def app_will_suspend(self) -> bool:
        """Handle imminent suspension.

        Returns:
            True if a deferred execution slot was requested
        """
        if self._suspended:
            logger.debug("Ignoring repeated suspend before resume")
            return False
        self._suspended = True

        busy = self.processor.in_flight()
        requested = False
        if self._active and busy:
            logger.info(
                f"Suspending with {len(busy)} meeting(s) in flight, requesting deferred slot"
            )
            requested = self.scheduler.request_execution_slot(self.task_name, self.budget_hint)
        self.session_ended()
        return requested

    def on_resume(self) -> list[str]:
        """Sweep records orphaned in processing by an earlier lifecycle.

        Returns:
            Ids of the swept records
        """
        self._suspended = False
        swept = []
        for record in self.store.list_records(ProcessingStatus.PROCESSING):
            changes = {}
            if self.resume_policy.is_terminal:
                changes["last_processed_date"] = self.clock()
            if not self.processor.reclaim(record.id, self.resume_policy, **changes):
                continue
            swept.append(record.id)
            logger.warning(
                f"Meeting {record.id} was stuck processing, moved to {self.resume_policy.value}"
            )
        return swept

    def run_deferred(self, budget_seconds: Optional[float] = None) -> int:
        """Process pending meetings until the time budget runs out.

        A meeting already started is allowed to finish; no new one starts
        after the deadline. Processing failures are recorded on the meeting
        and counted; store errors propagate.

        Returns:
            Number of meetings completed
        """
        budget = self.budget_hint if budget_seconds is None else budget_seconds
        deadline = self.timer() + budget
        completed = 0
        failed = 0

        for record in self.store.list_records(ProcessingStatus.PENDING):
            if self.timer() >= deadline:
                logger.info("Deferred budget exhausted, leaving remaining meetings pending")
                break
            try:
                self.processor.process(record)
            except (EmptyInputError, ProcessingInProgressError) as e:
                logger.debug("Skipping meeting %s: %s", record.id, e)
                continue
            except ProcessingError as e:
                logger.warning("Deferred processing of %s failed: %s", record.id, e)
                failed += 1
                continue
            completed += 1

        logger.info(f"Deferred run finished: {completed} completed, {failed} failed")
        return completed
