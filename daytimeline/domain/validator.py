"""
Validity checks for candidate slots.

The validator is the final gate before a slot enters a day's collection.
It never raises for an invalid candidate; the outcome is a
``ValidationResult`` naming the first rule that failed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from ..config import TrackerConfig
from .models import TimeSlot
from .timeunits import DAY_END, minutes_to_clock


class ValidationFailure(str, Enum):
    """Rule violated by a candidate slot."""
    OUT_OF_BOUNDS = "out_of_bounds"
    INVERTED_INTERVAL = "inverted_interval"
    OVERLAP = "overlap"
    DURATION_OUT_OF_RANGE = "duration_out_of_range"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validation; truthy when the candidate is valid."""
    failure: Optional[ValidationFailure] = None
    message: str = ""
    conflict_id: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls()

    @property
    def is_valid(self) -> bool:
        return self.failure is None

    def __bool__(self) -> bool:
        return self.is_valid


class SlotValidator:
    """
    Decides whether a candidate slot may be stored next to existing slots.

    Rules, checked in order:
    1. Bounds: 0 <= start_time and end_time <= DAY_END
    2. Ordering: start_time < end_time
    3. Duration within [min_slot_duration, max_slot_duration] (optional)
    4. No half-open overlap with another slot of the same date
    """

    def __init__(self, config: TrackerConfig):
        self.config = config

    def validate(
        self,
        candidate: TimeSlot,
        existing: Iterable[TimeSlot],
        *,
        exclude_id: Optional[str] = None,
        check_duration: bool = True,
    ) -> ValidationResult:
        """
        Validate a candidate against the existing slots.

        Args:
            candidate: Slot to check
            existing: Slots already stored (any date; other dates are ignored)
            exclude_id: Id of the slot being edited, skipped in the overlap test
            check_duration: Whether the min/max duration policy applies

        Returns:
            ValidationResult describing the first violated rule, if any
        """
        if candidate.start_time < 0 or candidate.end_time > DAY_END:
            return ValidationResult(
                ValidationFailure.OUT_OF_BOUNDS,
                f"Slot {candidate.start_time}-{candidate.end_time} is outside 0-{DAY_END}",
            )

        if candidate.start_time >= candidate.end_time:
            return ValidationResult(
                ValidationFailure.INVERTED_INTERVAL,
                f"Start {minutes_to_clock(candidate.start_time)} must be before "
                f"end {minutes_to_clock(candidate.end_time)}",
            )

        if check_duration:
            duration = candidate.duration_minutes()
            if not self.config.min_slot_duration <= duration <= self.config.max_slot_duration:
                return ValidationResult(
                    ValidationFailure.DURATION_OUT_OF_RANGE,
                    f"Duration {duration} min is outside "
                    f"{self.config.min_slot_duration}-{self.config.max_slot_duration} min",
                )

        conflict = self._find_conflict(candidate, existing, exclude_id)
        if conflict is not None:
            return ValidationResult(
                ValidationFailure.OVERLAP,
                f"Slot overlaps {conflict.format_display()}",
                conflict_id=conflict.id,
            )

        return ValidationResult.ok()

    def is_valid(
        self,
        candidate: TimeSlot,
        existing: Iterable[TimeSlot],
        *,
        exclude_id: Optional[str] = None,
        check_duration: bool = True,
    ) -> bool:
        """Boolean shortcut for ``validate``."""
        return self.validate(
            candidate,
            existing,
            exclude_id=exclude_id,
            check_duration=check_duration,
        ).is_valid

    @staticmethod
    def _find_conflict(
        candidate: TimeSlot,
        existing: Iterable[TimeSlot],
        exclude_id: Optional[str],
    ) -> Optional[TimeSlot]:
        for other in existing:
            if other.id == candidate.id or other.id == exclude_id:
                continue
            if candidate.overlaps(other):
                return other
        return None
