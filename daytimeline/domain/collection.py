"""
The set of slots belonging to one day.

Every mutation goes through the ``SlotValidator``; an invalid slot never
enters the collection.
"""

import logging
from bisect import insort
from typing import Dict, Iterable, Iterator, List, Optional

from pendulum import Date

from ..config import TrackerConfig
from .boundaries import above_boundary, below_boundary
from .exceptions import SlotNotFoundError
from .models import TimeSlot
from .validator import SlotValidator, ValidationResult

logger = logging.getLogger(__name__)


def _start_key(slot: TimeSlot) -> int:
    return slot.start_time


class SlotCollection:
    """Ordered-by-start slots of a single day."""

    def __init__(self, date: Date, config: TrackerConfig):
        self.date = date
        self.config = config
        self.validator = SlotValidator(config)
        self._slots: List[TimeSlot] = []

    @classmethod
    def from_slots(
        cls,
        date: Date,
        slots: Iterable[TimeSlot],
        config: TrackerConfig,
    ) -> "SlotCollection":
        """
        Build a collection from already persisted slots.

        Stored data is not re-checked against the duration policy, but
        slots from another day, out of bounds or overlapping an earlier
        loaded slot are skipped with a warning.
        """
        collection = cls(date, config)

        for slot in sorted(slots, key=_start_key):
            if slot.date != date:
                logger.warning("Skipping slot %s dated %s while loading %s", slot.id, slot.date, date)
                continue
            # insert() raises on a repeated id; stored data only warrants a warning
            if slot.id in collection:
                logger.warning("Skipping duplicate slot id %s", slot.id)
                continue

            result = collection.insert(slot, check_duration=False)
            if not result:
                logger.warning("Skipping stored slot %s: %s", slot.id, result.message)

        return collection

    @property
    def slots(self) -> tuple:
        """Read-only view of the slots, ordered by start time."""
        return tuple(self._slots)

    def __iter__(self) -> Iterator[TimeSlot]:
        return iter(tuple(self._slots))

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, slot_id: object) -> bool:
        return any(slot.id == slot_id for slot in self._slots)

    def get(self, slot_id: str) -> Optional[TimeSlot]:
        """Find a slot by id."""
        for slot in self._slots:
            if slot.id == slot_id:
                return slot
        return None

    def slot_covering(self, minute: int) -> Optional[TimeSlot]:
        """Find the slot whose interior contains ``minute`` (edges excluded)."""
        for slot in self._slots:
            if slot.start_time < minute < slot.end_time:
                return slot
        return None

    def validate(
        self,
        candidate: TimeSlot,
        *,
        exclude_id: Optional[str] = None,
        check_duration: bool = True,
    ) -> ValidationResult:
        """Validate a candidate against this day's slots."""
        self._check_date(candidate)
        return self.validator.validate(
            candidate,
            self._slots,
            exclude_id=exclude_id,
            check_duration=check_duration,
        )

    def would_overlap(self, candidate: TimeSlot, exclude_id: Optional[str] = None) -> bool:
        """Check only the overlap rule for a candidate."""
        return any(
            candidate.overlaps(slot)
            for slot in self._slots
            if slot.id not in (candidate.id, exclude_id)
        )

    def above_boundary(self, current: TimeSlot, exclude_id: Optional[str] = None) -> Optional[int]:
        return above_boundary(self._slots, current, exclude_id)

    def below_boundary(self, current: TimeSlot, exclude_id: Optional[str] = None) -> Optional[int]:
        return below_boundary(self._slots, current, exclude_id)

    def insert(self, slot: TimeSlot, *, check_duration: bool = True) -> ValidationResult:
        """
        Insert a new slot if it passes validation.

        Returns:
            The validation result; the collection is unchanged when invalid
        """
        if slot.id in self:
            raise ValueError(f"Slot {slot.id} is already part of the collection")

        result = self.validate(slot, check_duration=check_duration)
        if result:
            insort(self._slots, slot, key=_start_key)
        return result

    def replace(self, slot: TimeSlot, *, check_duration: bool = True) -> ValidationResult:
        """
        Replace the stored slot with the same id if the new version is valid.

        Raises:
            SlotNotFoundError: If no slot with that id exists
        """
        index = self._index_of(slot.id)
        result = self.validate(slot, exclude_id=slot.id, check_duration=check_duration)
        if result:
            del self._slots[index]
            insort(self._slots, slot, key=_start_key)
        return result

    def remove(self, slot_id: str) -> TimeSlot:
        """
        Remove a slot by id.

        Raises:
            SlotNotFoundError: If no slot with that id exists
        """
        return self._slots.pop(self._index_of(slot_id))

    def clear(self) -> None:
        """Remove every slot of the day."""
        self._slots.clear()

    def total_minutes_by_category(self) -> Dict[str, int]:
        """Sum slot durations per category id."""
        totals: Dict[str, int] = {}
        for slot in self._slots:
            totals[slot.category_id] = totals.get(slot.category_id, 0) + slot.duration_minutes()
        return totals

    def snapshot(self) -> List[dict]:
        """Plain-data copy of the collection, for comparisons."""
        return [slot.to_dict() for slot in self._slots]

    def _index_of(self, slot_id: str) -> int:
        for index, slot in enumerate(self._slots):
            if slot.id == slot_id:
                return index
        raise SlotNotFoundError(f"No slot with id '{slot_id}' on {self.date.isoformat()}")

    def _check_date(self, slot: TimeSlot) -> None:
        if slot.date != self.date:
            raise ValueError(
                f"Slot dated {slot.date.isoformat()} does not belong to {self.date.isoformat()}"
            )
