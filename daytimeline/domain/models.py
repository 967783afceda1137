"""
Domain models for the day timeline.
"""

import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from pendulum import Date

from .timeunits import format_duration, minutes_to_clock


def generate_slot_id() -> str:
    """Generate a new opaque slot identifier."""
    return uuid.uuid4().hex


class GestureType(str, Enum):
    """Kind of pointer gesture on the timeline."""
    CREATE = "create"
    MOVE = "move"
    RESIZE = "resize"


class ResizeEdge(str, Enum):
    """Edge grabbed by a resize gesture."""
    TOP = "top"
    BOTTOM = "bottom"


@dataclass
class TimeSlot:
    """
    A contiguous interval ``[start_time, end_time)`` on a single day.

    No invariants are enforced here: candidates produced mid-gesture may be
    invalid, the ``SlotValidator`` decides whether a slot may be stored.
    """
    date: Date
    start_time: int
    end_time: int
    category_id: str
    id: str = field(default_factory=generate_slot_id)
    title: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    exercise_type_id: Optional[str] = None
    exercise_count: Optional[int] = None

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end_time - self.start_time

    def overlaps(self, other: "TimeSlot") -> bool:
        """Check if this slot overlaps another slot on the same day."""
        if self.date != other.date:
            return False
        return self.start_time < other.end_time and self.end_time > other.start_time

    def with_times(self, start_time: int, end_time: int) -> "TimeSlot":
        """Return a copy of this slot with new edges (same id)."""
        return TimeSlot(
            date=self.date,
            start_time=start_time,
            end_time=end_time,
            category_id=self.category_id,
            id=self.id,
            title=self.title,
            description=self.description,
            color=self.color,
            exercise_type_id=self.exercise_type_id,
            exercise_count=self.exercise_count,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict view, with the date as ``YYYY-MM-DD``."""
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: HH:MM - HH:MM (duration)
        """
        return (
            f"{minutes_to_clock(self.start_time)} - {minutes_to_clock(self.end_time)} "
            f"({format_duration(self.duration_minutes())})"
        )

    def __str__(self) -> str:
        return f"{self.date.isoformat()} {self.format_display()}"
