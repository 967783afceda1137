"""
Application services for editing a day's time slots.

The service loads a day from a record store into a ``SlotCollection``,
lets callers edit it (gestures or form input) and persists every accepted
change. Edits are applied to the collection first; if the store rejects
the write the collection is reverted and ``RecordStoreError`` propagates,
so retrying or reporting stays with the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Tuple

from pendulum import Date

from ..adapters.records import SlotRecommendation, TimeRecord
from ..config import TrackerConfig
from ..domain.collection import SlotCollection
from ..domain.exceptions import InteractionError, RecordStoreError, SlotNotFoundError
from ..domain.interaction import CommitResult, CommitStatus, TimelineInteraction
from ..domain.models import GestureType, ResizeEdge, TimeSlot
from ..domain.timeunits import MINUTES_PER_DAY, minutes_to_clock
from ..domain.validator import ValidationResult

logger = logging.getLogger(__name__)


class RecordStoreProtocol(Protocol):
    """Protocol describing the persistence behaviour needed by the service."""

    async def query(self, date: Date) -> List[TimeRecord]:
        """Return all records of a day."""

    async def save(self, record: TimeRecord) -> None:
        """Persist a new record."""

    async def update(self, record: TimeRecord) -> None:
        """Overwrite an existing record."""

    async def delete(self, record_id: str) -> None:
        """Delete one record."""

    async def delete_by_date(self, date: Date) -> None:
        """Delete all records of a day."""

    async def query_for_week(self, date: Date) -> List[TimeRecord]:
        """Return all records of the week containing ``date``."""

    async def recommend_type(self, date: Date, time: int) -> Optional[str]:
        """Return the category usually recorded at ``time``, if any."""

    async def recommend_next(self, date: Date) -> Optional[SlotRecommendation]:
        """Return the slot most likely to follow on ``date``, if any."""


@dataclass(frozen=True)
class CategorySummary:
    """Tracked minutes of one category on a day."""
    category_id: str
    name: str
    color: str
    minutes: int


class TimeTrackerService:
    """
    Orchestrates record loading, slot editing and persistence.

    The store is typed against a protocol so the REST client and the mock
    store are interchangeable.
    """

    def __init__(self, record_store: RecordStoreProtocol, config: TrackerConfig) -> None:
        self._store = record_store
        self._config = config

    @property
    def config(self) -> TrackerConfig:
        return self._config

    async def load_day(self, date: Date) -> SlotCollection:
        """Fetch a day's records and build its collection."""
        records = await self._store.query(date)
        return SlotCollection.from_slots(
            date,
            [record.to_slot() for record in records],
            self._config,
        )

    async def load_week(self, date: Date) -> Dict[Date, SlotCollection]:
        """
        Fetch the week containing ``date`` (Monday first).

        Returns:
            One collection per day of the week, empty days included
        """
        first = date.start_of("week")
        days = [first.add(days=offset) for offset in range(7)]
        by_day: Dict[str, List[TimeSlot]] = {day.isoformat(): [] for day in days}

        for record in await self._store.query_for_week(date):
            if record.date not in by_day:
                logger.warning("Skipping record %s dated %s outside the week", record.id, record.date)
                continue
            by_day[record.date].append(record.to_slot())

        return {
            day: SlotCollection.from_slots(day, by_day[day.isoformat()], self._config)
            for day in days
        }

    async def suggest_category(self, date: Date, time: int) -> str:
        """Category the store recommends at ``time``, else the configured default."""
        category_id = await self._store.recommend_type(date, time)
        if category_id is None or self._config.find_category(category_id) is None:
            return self._config.default_category_id
        return category_id

    async def suggest_next(self, collection: SlotCollection) -> Optional[TimeSlot]:
        """
        Candidate for the next slot of the day, not yet stored.

        Suggestions that would not pass validation are dropped.
        """
        recommendation = await self._store.recommend_next(collection.date)
        if recommendation is None:
            return None

        candidate = recommendation.to_slot()
        if candidate.date != collection.date:
            logger.warning("Ignoring recommendation for %s while editing %s", candidate.date, collection.date)
            return None

        result = collection.validate(candidate)
        if not result:
            logger.info("Ignoring recommended slot %s: %s", candidate.format_display(), result.message)
            return None

        candidate.color = self._config.category_color(candidate.category_id)
        return candidate

    def start_interaction(self, collection: SlotCollection, axis_length: float) -> TimelineInteraction:
        """Create a gesture state machine for a rendered timeline."""
        return TimelineInteraction(collection, axis_length, self._config)

    async def commit_gesture(
        self,
        interaction: TimelineInteraction,
    ) -> CommitResult:
        """
        Commit the active gesture and persist the result.

        Raises:
            RecordStoreError: If persisting fails (the collection is reverted)
        """
        result = interaction.commit()
        if result.status is not CommitStatus.COMMITTED:
            return result

        collection = interaction.collection
        record = TimeRecord.from_slot(result.slot)
        try:
            if result.previous is None:
                await self._store.save(record)
            else:
                await self._store.update(record)
        except RecordStoreError:
            logger.warning("Persisting slot %s failed, reverting", result.slot.id)
            if result.previous is None:
                collection.remove(result.slot.id)
            else:
                collection.replace(result.previous, check_duration=False)
            raise

        logger.info("Saved slot %s (%s)", result.slot.id, result.slot.format_display())
        return result

    async def apply_gesture(
        self,
        collection: SlotCollection,
        gesture: GestureType,
        anchor_time: int,
        target_time: int,
        *,
        slot_id: Optional[str] = None,
        direction: Optional[ResizeEdge] = None,
        category_id: Optional[str] = None,
    ) -> CommitResult:
        """
        Run a whole gesture from minute values.

        The pointer goes down at ``anchor_time``, moves to ``target_time``
        and is released. A one-pixel-per-minute axis is used, so positions
        and minutes coincide.

        Raises:
            SlotNotFoundError: If slot_id is not part of the collection
            InteractionError: If a create starts inside an existing slot
        """
        slot = None
        if slot_id is not None:
            slot = collection.get(slot_id)
            if slot is None:
                raise SlotNotFoundError(f"No slot with id '{slot_id}' on {collection.date.isoformat()}")

        interaction = self.start_interaction(collection, axis_length=MINUTES_PER_DAY)
        op = interaction.begin(
            gesture,
            anchor_time,
            anchor_time=anchor_time,
            slot=slot,
            direction=direction,
            category_id=category_id,
        )
        if op is None:
            raise InteractionError(
                f"Cannot start a new slot at {minutes_to_clock(anchor_time)}: "
                f"it lies inside an existing slot"
            )
        interaction.update(target_time)
        return await self.commit_gesture(interaction)

    async def add_slot(
        self,
        collection: SlotCollection,
        start_time: int,
        end_time: int,
        category_id: Optional[str] = None,
        *,
        title: Optional[str] = None,
        description: Optional[str] = None,
        exercise_type_id: Optional[str] = None,
        exercise_count: Optional[int] = None,
    ) -> Tuple[TimeSlot, ValidationResult]:
        """
        Create a slot from form input.

        Returns:
            The candidate slot and its validation result; nothing is stored
            when the result is invalid
        """
        category_id = category_id or self._config.default_category_id
        slot = TimeSlot(
            date=collection.date,
            start_time=start_time,
            end_time=end_time,
            category_id=category_id,
            title=title,
            description=description,
            color=self._config.category_color(category_id),
            exercise_type_id=exercise_type_id,
            exercise_count=exercise_count,
        )

        result = collection.insert(slot)
        if not result:
            return slot, result

        try:
            await self._store.save(TimeRecord.from_slot(slot))
        except RecordStoreError:
            collection.remove(slot.id)
            raise

        logger.info("Added slot %s (%s)", slot.id, slot.format_display())
        return slot, result

    async def delete_slot(self, collection: SlotCollection, slot_id: str) -> TimeSlot:
        """
        Delete a slot from the day and the store.

        Raises:
            SlotNotFoundError: If the slot is not part of the collection
        """
        removed = collection.remove(slot_id)
        try:
            await self._store.delete(slot_id)
        except RecordStoreError:
            collection.insert(removed, check_duration=False)
            raise

        logger.info("Deleted slot %s", slot_id)
        return removed

    async def clear_day(self, collection: SlotCollection) -> int:
        """Delete every slot of the day. Returns how many were removed."""
        removed = list(collection.slots)
        collection.clear()
        try:
            await self._store.delete_by_date(collection.date)
        except RecordStoreError:
            for slot in removed:
                collection.insert(slot, check_duration=False)
            raise

        logger.info("Cleared %d slot(s) on %s", len(removed), collection.date.isoformat())
        return len(removed)

    def category_totals(self, collection: SlotCollection) -> List[CategorySummary]:
        """Minutes per category, largest first."""
        summaries = [
            CategorySummary(
                category_id=category_id,
                name=self._config.category_name(category_id),
                color=self._config.category_color(category_id),
                minutes=minutes,
            )
            for category_id, minutes in collection.total_minutes_by_category().items()
        ]
        return sorted(summaries, key=lambda s: (-s.minutes, s.category_id))

    def tracked_minutes(self, collection: SlotCollection) -> int:
        """Minutes spent in categories flagged ``is_track_time``."""
        total = 0
        for slot in collection:
            category = self._config.find_category(slot.category_id)
            if category is not None and category.is_track_time:
                total += slot.duration_minutes()
        return total
