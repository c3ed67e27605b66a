"""Exceptions raised by the processing pipeline and its collaborators."""


class DebriefError(Exception):
    """Base class for all debrief errors."""


class ProcessingError(DebriefError):
    """A meeting could not be processed."""


class EmptyInputError(ProcessingError):
    """The meeting has neither a transcript nor notes."""


class CompletionError(ProcessingError):
    """The text completion call failed, timed out or was cancelled."""


class EmptyExtractionError(ProcessingError):
    """The extraction call returned nothing usable."""


class ProcessingInProgressError(ProcessingError):
    """Another process() call already owns this meeting."""


class StoreError(DebriefError):
    """A record could not be read from or written to the store."""


class RecordNotFoundError(StoreError):
    """No record exists for the requested id."""


class DataCorruptionError(DebriefError):
    """A persisted insights blob exists but cannot be decoded."""
