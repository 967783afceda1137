"""
Conversions between clock strings, minute offsets and axis offsets.

A day is laid out on a linear axis of ``MINUTES_PER_DAY`` minutes. Minute
positions on the axis are ``0..LAST_MINUTE``; slot edges may additionally
sit on ``DAY_END`` since slots are half-open ``[start, end)`` intervals.

Numeric conversions never fail: out-of-range input is clamped to the
nearest valid bound.
"""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING, Tuple

if TYPE_CHECKING:
    from .models import TimeSlot

MINUTES_PER_DAY = 1440
DAY_END = MINUTES_PER_DAY
LAST_MINUTE = MINUTES_PER_DAY - 1

_CLOCK_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def _clamp(value, low, high):
    return max(low, min(high, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def minutes_to_clock(minutes: int) -> str:
    """
    Format a minute offset as ``HH:MM``.

    ``DAY_END`` is rendered as ``24:00`` so the end of a slot running to
    midnight stays readable.
    """
    minutes = _clamp(int(minutes), 0, DAY_END)
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def clock_to_minutes(clock: str) -> int:
    """
    Parse ``HH:MM`` (or ``H:MM``) into a minute offset.

    Raises:
        ValueError: If the string is not a clock time within the day
    """
    match = _CLOCK_PATTERN.match(clock)
    if not match:
        raise ValueError(f"Invalid clock time '{clock}', expected HH:MM")

    hours, mins = int(match.group(1)), int(match.group(2))
    if mins > 59:
        raise ValueError(f"Invalid minutes in clock time '{clock}'")

    total = hours * 60 + mins
    if total > DAY_END:
        raise ValueError(f"Clock time '{clock}' is past the end of the day")
    return total


def minutes_to_offset(minutes: float, axis_length: float) -> float:
    """Project a minute offset onto an axis of ``axis_length`` pixels."""
    if axis_length <= 0:
        return 0.0
    minutes = _clamp(minutes, 0, DAY_END)
    return minutes * axis_length / MINUTES_PER_DAY


def offset_to_minutes(offset: float, axis_length: float) -> int:
    """
    Map an axis offset back to the nearest whole minute.

    The result is a minute position, so it is clamped to ``[0, LAST_MINUTE]``.
    """
    if axis_length <= 0:
        return 0
    minutes = _round_half_up(offset * MINUTES_PER_DAY / axis_length)
    return _clamp(minutes, 0, LAST_MINUTE)


def slot_position(slot: "TimeSlot", axis_length: float) -> Tuple[float, float]:
    """Return ``(offset, length)`` of a slot on the axis."""
    offset = minutes_to_offset(slot.start_time, axis_length)
    end = minutes_to_offset(slot.end_time, axis_length)
    return offset, max(0.0, end - offset)


def format_duration(minutes: int) -> str:
    """
    Human readable duration.

    Examples: ``45m``, ``2h``, ``1h 30m``
    """
    hours, mins = divmod(max(0, int(minutes)), 60)
    if hours > 0:
        return f"{hours}h {mins}m" if mins > 0 else f"{hours}h"
    return f"{mins}m"
