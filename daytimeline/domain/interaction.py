"""
Pointer-driven editing of a day's slots.

A gesture is ``begin`` (pointer down), any number of ``update`` calls
(pointer move samples) and one ``commit`` (pointer up) or ``cancel``.
Only one gesture is active at a time. Updates only touch the transient
``DragOperation``; the collection is mutated by ``commit`` alone.

State flow::

    IDLE -> DRAGGING -> COMMITTING -> IDLE
                     -> CANCELLING -> IDLE
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from pendulum import Date

from ..config import ClickCreatePolicy, TrackerConfig
from .boundaries import free_window
from .collection import SlotCollection
from .exceptions import InteractionError
from .grid import snap
from .models import GestureType, ResizeEdge, TimeSlot, generate_slot_id
from .timeunits import DAY_END, minutes_to_clock, offset_to_minutes
from .validator import ValidationFailure, ValidationResult

logger = logging.getLogger(__name__)


class InteractionState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTING = "committing"
    CANCELLING = "cancelling"


class CommitStatus(str, Enum):
    COMMITTED = "committed"
    UNCHANGED = "unchanged"
    IGNORED = "ignored"
    REJECTED = "rejected"


@dataclass
class DragOperation:
    """
    The in-flight gesture.

    ``floor``/``ceiling`` are the free boundaries around the edited slot
    (or the create anchor), captured once at ``begin``.
    """
    type: GestureType
    date: Date
    anchor_position: float
    anchor_time: int
    current_time: int
    start_time: int
    end_time: int
    category_id: str
    slot_id: Optional[str] = None
    draft_id: str = field(default_factory=generate_slot_id)
    direction: Optional[ResizeEdge] = None
    original_start: Optional[int] = None
    original_end: Optional[int] = None
    floor: int = 0
    ceiling: int = DAY_END
    changed: bool = False


@dataclass(frozen=True)
class CommitResult:
    """
    Outcome of a commit.

    On ``REJECTED`` the collection is unchanged and the caller restores
    ``operation.original_start``/``original_end`` on screen.
    """
    status: CommitStatus
    operation: DragOperation
    slot: Optional[TimeSlot] = None
    previous: Optional[TimeSlot] = None
    candidate: Optional[TimeSlot] = None
    validation: ValidationResult = field(default_factory=ValidationResult.ok)

    @property
    def ok(self) -> bool:
        return self.status is not CommitStatus.REJECTED

    @property
    def failure(self) -> Optional[ValidationFailure]:
        return self.validation.failure


class TimelineInteraction:
    """
    Single-pointer gesture state machine over one day's ``SlotCollection``.

    Positions are axis offsets (pixels) along an axis of ``axis_length``
    covering the whole day.
    """

    def __init__(
        self,
        collection: SlotCollection,
        axis_length: float,
        config: Optional[TrackerConfig] = None,
    ):
        self.collection = collection
        self.axis_length = axis_length
        self.config = config or collection.config
        self._state = InteractionState.IDLE
        self._op: Optional[DragOperation] = None
        self._source: Optional[TimeSlot] = None

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def active(self) -> Optional[DragOperation]:
        return self._op

    def begin(
        self,
        gesture: GestureType,
        anchor_position: float,
        *,
        anchor_time: Optional[int] = None,
        slot: Optional[TimeSlot] = None,
        direction: Optional[ResizeEdge] = None,
        category_id: Optional[str] = None,
    ) -> Optional[DragOperation]:
        """
        Start a gesture (pointer down).

        Args:
            gesture: create, move or resize
            anchor_position: Axis offset where the pointer went down
            anchor_time: Minute under the pointer; derived from the position if omitted
            slot: Slot being moved or resized
            direction: Edge grabbed by a resize
            category_id: Category of a created slot (defaults to the configured one)

        Returns:
            The new DragOperation, or None if a gesture is already running
            or a create anchor lands inside a stored slot

        Raises:
            InteractionError: If move/resize lacks a stored slot or resize lacks a direction
        """
        if self._state is not InteractionState.IDLE:
            logger.debug("Ignoring %s pointer-down while a gesture is active", gesture)
            return None

        gesture = GestureType(gesture)
        if anchor_time is None:
            anchor_time = offset_to_minutes(anchor_position, self.axis_length)

        if gesture is GestureType.CREATE:
            op = self._begin_create(anchor_position, anchor_time, category_id)
            if op is None:
                return None
        else:
            op = self._begin_edit(gesture, anchor_position, anchor_time, slot, direction)

        self._op = op
        self._state = InteractionState.DRAGGING
        return op

    def _begin_create(
        self,
        anchor_position: float,
        anchor_time: int,
        category_id: Optional[str],
    ) -> Optional[DragOperation]:
        start = max(0, min(snap(anchor_time, self.config.grid_size), DAY_END))
        covering = self.collection.slot_covering(start)
        if covering is not None:
            logger.debug("Ignoring create pointer-down inside slot %s", covering.id)
            return None

        probe = TimeSlot(
            date=self.collection.date,
            start_time=start,
            end_time=start,
            category_id=category_id or self.config.default_category_id,
        )
        floor, ceiling = free_window(self.collection.slots, probe)
        self._source = None

        return DragOperation(
            type=GestureType.CREATE,
            date=self.collection.date,
            anchor_position=anchor_position,
            anchor_time=start,
            current_time=start,
            start_time=start,
            end_time=start,
            category_id=probe.category_id,
            draft_id=probe.id,
            floor=floor,
            ceiling=ceiling,
        )

    def _begin_edit(
        self,
        gesture: GestureType,
        anchor_position: float,
        anchor_time: int,
        slot: Optional[TimeSlot],
        direction: Optional[ResizeEdge],
    ) -> DragOperation:
        if slot is None:
            raise InteractionError(f"A {gesture.value} gesture needs the slot being edited")
        stored = self.collection.get(slot.id)
        if stored is None:
            raise InteractionError(f"Slot {slot.id} is not part of {self.collection.date.isoformat()}")
        if gesture is GestureType.RESIZE and direction is None:
            raise InteractionError("A resize gesture needs a direction (top or bottom)")

        floor, ceiling = free_window(self.collection.slots, stored)
        self._source = stored

        return DragOperation(
            type=gesture,
            date=stored.date,
            anchor_position=anchor_position,
            anchor_time=anchor_time,
            current_time=anchor_time,
            start_time=stored.start_time,
            end_time=stored.end_time,
            category_id=stored.category_id,
            slot_id=stored.id,
            direction=ResizeEdge(direction) if direction is not None else None,
            original_start=stored.start_time,
            original_end=stored.end_time,
            floor=floor,
            ceiling=ceiling,
        )

    def update(self, pointer_position: float) -> Tuple[DragOperation, TimeSlot]:
        """
        Consume a pointer-move sample.

        Returns:
            The updated operation and the transient slot to draw

        Raises:
            InteractionError: If no gesture is active
        """
        op = self._require_active()
        grid = self.config.grid_size
        pointer = offset_to_minutes(pointer_position, self.axis_length)
        op.current_time = pointer

        if op.type is GestureType.MOVE:
            duration = op.original_end - op.original_start
            start = op.original_start + snap(pointer - op.anchor_time, grid)
            start = max(op.floor, min(start, op.ceiling - duration))
            op.start_time, op.end_time = start, start + duration

        elif op.type is GestureType.RESIZE:
            edge = snap(pointer, grid)
            if op.direction is ResizeEdge.BOTTOM:
                op.end_time = min(max(edge, op.original_start + grid), op.ceiling)
            else:
                op.start_time = max(min(edge, op.original_end - grid), op.floor)

        else:
            edge = max(op.floor, min(snap(pointer, grid), op.ceiling))
            op.start_time = min(op.anchor_time, edge)
            op.end_time = max(op.anchor_time, edge)

        if not op.changed:
            if op.type is GestureType.CREATE:
                op.changed = op.end_time > op.start_time
            else:
                op.changed = (op.start_time, op.end_time) != (op.original_start, op.original_end)

        return op, self._transient(op)

    def commit(self) -> CommitResult:
        """
        Finish the gesture (pointer up) and apply it to the collection.

        Raises:
            InteractionError: If no gesture is active
        """
        op = self._require_active()
        self._state = InteractionState.COMMITTING
        try:
            result = self._commit(op)
        finally:
            self._finish()

        if result.status is CommitStatus.REJECTED:
            logger.info("Rejected %s gesture: %s", op.type.value, result.validation.message)
        else:
            logger.debug("%s gesture finished: %s", op.type.value, result.status.value)
        return result

    def _commit(self, op: DragOperation) -> CommitResult:
        if op.type is GestureType.CREATE:
            return self._commit_create(op)

        source = self._source
        if not op.changed:
            return CommitResult(CommitStatus.UNCHANGED, op, slot=source, previous=source)

        candidate = source.with_times(op.start_time, op.end_time)
        validation = self.collection.replace(
            candidate,
            check_duration=self.config.enforce_duration_on_drag,
        )
        if not validation:
            return CommitResult(
                CommitStatus.REJECTED, op, previous=source, candidate=candidate, validation=validation
            )
        return CommitResult(CommitStatus.COMMITTED, op, slot=candidate, previous=source, candidate=candidate)

    def _commit_create(self, op: DragOperation) -> CommitResult:
        start, end = op.start_time, op.end_time

        if start == end:
            policy = self.config.click_create
            if policy is ClickCreatePolicy.IGNORE:
                return CommitResult(CommitStatus.IGNORED, op)
            if policy is ClickCreatePolicy.REJECT:
                return CommitResult(
                    CommitStatus.REJECTED,
                    op,
                    validation=ValidationResult(
                        ValidationFailure.INVERTED_INTERVAL,
                        f"Empty slot at {minutes_to_clock(start)}",
                    ),
                )
            length = max(self.config.grid_size, self.config.min_slot_duration)
            start = max(0, min(start, DAY_END - length))
            end = start + length

        candidate = self._transient(op).with_times(start, end)
        validation = self.collection.insert(candidate, check_duration=True)
        if not validation:
            return CommitResult(CommitStatus.REJECTED, op, candidate=candidate, validation=validation)
        return CommitResult(CommitStatus.COMMITTED, op, slot=candidate, candidate=candidate)

    def cancel(self) -> None:
        """Abort the gesture without touching the collection. Safe to call twice."""
        if self._op is None:
            return
        self._state = InteractionState.CANCELLING
        logger.debug("Cancelled %s gesture", self._op.type.value)
        self._finish()

    def _transient(self, op: DragOperation) -> TimeSlot:
        if self._source is not None:
            return self._source.with_times(op.start_time, op.end_time)
        return TimeSlot(
            date=op.date,
            start_time=op.start_time,
            end_time=op.end_time,
            category_id=op.category_id,
            id=op.draft_id,
        )

    def _require_active(self) -> DragOperation:
        if self._op is None or self._state is not InteractionState.DRAGGING:
            raise InteractionError("No gesture in progress")
        return self._op

    def _finish(self) -> None:
        self._op = None
        self._source = None
        self._state = InteractionState.IDLE
