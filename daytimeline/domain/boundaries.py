"""
Nearest free boundaries around a slot.

Used to clamp the live edges of a move or resize gesture so the transient
slot never overlaps a neighbour mid-gesture. The validator still runs at
commit time.
"""

from typing import Iterable, Optional, Tuple

from .models import TimeSlot
from .timeunits import DAY_END


def _neighbours(
    slots: Iterable[TimeSlot],
    current: TimeSlot,
    exclude_id: Optional[str],
) -> Iterable[TimeSlot]:
    for slot in slots:
        if slot.id == current.id or slot.id == exclude_id:
            continue
        if slot.date != current.date:
            continue
        yield slot


def below_boundary(
    slots: Iterable[TimeSlot],
    current: TimeSlot,
    exclude_id: Optional[str] = None,
) -> Optional[int]:
    """
    Earliest start among slots starting at or after ``current.end_time``.

    This is the ceiling the current slot's end may extend to. Returns None
    when nothing follows the slot on that day.
    """
    starts = [
        slot.start_time
        for slot in _neighbours(slots, current, exclude_id)
        if slot.start_time >= current.end_time
    ]
    return min(starts) if starts else None


def above_boundary(
    slots: Iterable[TimeSlot],
    current: TimeSlot,
    exclude_id: Optional[str] = None,
) -> Optional[int]:
    """
    Latest end among slots ending at or before ``current.start_time``.

    This is the floor the current slot's start may retreat to. Returns None
    when nothing precedes the slot on that day.
    """
    ends = [
        slot.end_time
        for slot in _neighbours(slots, current, exclude_id)
        if slot.end_time <= current.start_time
    ]
    return max(ends) if ends else None


def free_window(
    slots: Iterable[TimeSlot],
    current: TimeSlot,
    exclude_id: Optional[str] = None,
) -> Tuple[int, int]:
    """Return ``(floor, ceiling)`` around a slot, defaulting to the day bounds."""
    slots = list(slots)
    floor = above_boundary(slots, current, exclude_id)
    ceiling = below_boundary(slots, current, exclude_id)
    return (
        0 if floor is None else floor,
        DAY_END if ceiling is None else ceiling,
    )
