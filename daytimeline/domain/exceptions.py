"""
Domain-specific exception hierarchy for the day-timeline editor.

Validation outcomes are not exceptions: they are returned as
``ValidationResult`` values. These classes cover misuse and I/O failures.
"""


class TimeTrackerError(Exception):
    """Base class for all application-level errors."""


class RecordStoreError(TimeTrackerError):
    """Raised when time records cannot be fetched, saved or deleted."""


class SlotNotFoundError(TimeTrackerError):
    """Raised when a slot id is not part of the day's collection."""


class InteractionError(TimeTrackerError):
    """Raised when the interaction state machine is driven out of order."""
