"""
Domain layer - Timeline editing logic without I/O.
"""

from .boundaries import above_boundary, below_boundary, free_window
from .collection import SlotCollection
from .grid import snap
from .interaction import (
    CommitResult,
    CommitStatus,
    DragOperation,
    InteractionState,
    TimelineInteraction,
)
from .models import GestureType, ResizeEdge, TimeSlot
from .validator import SlotValidator, ValidationFailure, ValidationResult

__all__ = [
    "above_boundary",
    "below_boundary",
    "free_window",
    "snap",
    "CommitResult",
    "CommitStatus",
    "DragOperation",
    "GestureType",
    "InteractionState",
    "ResizeEdge",
    "SlotCollection",
    "SlotValidator",
    "TimelineInteraction",
    "TimeSlot",
    "ValidationFailure",
    "ValidationResult",
]
