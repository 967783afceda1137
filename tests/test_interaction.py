"""
Tests for the gesture state machine.

Unless stated otherwise the axis is 1440px long, so one pixel is one minute.
"""

import pendulum
import pytest

from daytimeline.config import ClickCreatePolicy, TrackerConfig
from daytimeline.domain.collection import SlotCollection
from daytimeline.domain.exceptions import InteractionError
from daytimeline.domain.interaction import CommitStatus, InteractionState, TimelineInteraction
from daytimeline.domain.models import GestureType, ResizeEdge, TimeSlot
from daytimeline.domain.timeunits import clock_to_minutes, minutes_to_offset
from daytimeline.domain.validator import ValidationFailure

DAY = pendulum.date(2024, 1, 10)
AXIS = 1440


def _build(config: TrackerConfig | None = None, slots=None) -> TimelineInteraction:
    config = config or TrackerConfig()
    if slots is None:
        slots = [
            TimeSlot(date=DAY, start_time=540, end_time=600, category_id="work", id="work"),
            TimeSlot(date=DAY, start_time=840, end_time=900, category_id="rest", id="rest"),
        ]
    collection = SlotCollection.from_slots(DAY, slots, config)
    return TimelineInteraction(collection, AXIS, config)


class TestCreateGesture:
    """Tests for create gestures."""

    def test_create_touching_slot_succeeds(self):
        """Test creating 10:00-11:00 right after the work slot."""
        interaction = _build()

        interaction.begin(GestureType.CREATE, clock_to_minutes("10:00"), category_id="study")
        interaction.update(clock_to_minutes("11:00"))
        result = interaction.commit()

        assert result.status is CommitStatus.COMMITTED
        assert (result.slot.start_time, result.slot.end_time) == (600, 660)
        assert result.slot.category_id == "study"
        assert result.slot.id in interaction.collection

    def test_create_overlapping_slot_fails(self):
        """Test that 09:30-10:30 can neither be drawn nor stored."""
        interaction = _build()
        before = interaction.collection.snapshot()

        op = interaction.begin(GestureType.CREATE, clock_to_minutes("09:30"))
        result = interaction.collection.insert(
            TimeSlot(date=DAY, start_time=570, end_time=630, category_id="study")
        )

        assert op is None
        assert interaction.state is InteractionState.IDLE
        assert result.failure is ValidationFailure.OVERLAP
        assert result.conflict_id == "work"
        assert interaction.collection.snapshot() == before

    def test_anchor_inside_slot_never_shows_an_overlap(self):
        """Test that a create starting inside a stored slot is ignored."""
        interaction = _build()

        assert interaction.begin(GestureType.CREATE, 570) is None
        with pytest.raises(InteractionError):
            interaction.update(660)

    def test_anchor_on_slot_edge_is_allowed(self):
        """Test that slot edges are free positions for a create."""
        interaction = _build()

        op = interaction.begin(GestureType.CREATE, 540)
        _, transient = interaction.update(480)

        assert op is not None
        assert (transient.start_time, transient.end_time) == (480, 540)
        assert not interaction.collection.would_overlap(transient)

    def test_backward_drag_is_normalized(self):
        """Test dragging from 08:00 up to 07:00 yields 07:00-08:00."""
        interaction = _build()

        op = interaction.begin(GestureType.CREATE, clock_to_minutes("08:00"))
        op, transient = interaction.update(clock_to_minutes("07:00"))

        assert (transient.start_time, transient.end_time) == (420, 480)
        assert op.changed

        result = interaction.commit()
        assert (result.slot.start_time, result.slot.end_time) == (420, 480)

    def test_create_is_clamped_by_neighbours(self):
        """Test that the live edge stops at the free window."""
        interaction = _build()

        interaction.begin(GestureType.CREATE, clock_to_minutes("12:00"))
        _, down = interaction.update(clock_to_minutes("16:00"))
        assert (down.start_time, down.end_time) == (720, 840)

        _, up = interaction.update(clock_to_minutes("08:00"))
        assert (up.start_time, up.end_time) == (600, 720)

    def test_created_slot_keeps_draft_id(self):
        """Test that the transient and committed slot share one id."""
        interaction = _build()

        op = interaction.begin(GestureType.CREATE, 600)
        _, transient = interaction.update(660)
        result = interaction.commit()

        assert transient.id == op.draft_id == result.slot.id

    def test_anchor_is_snapped(self):
        """Test that the anchor edge lands on the grid."""
        interaction = _build()

        op = interaction.begin(GestureType.CREATE, 607)

        assert op.anchor_time == 600
        assert (op.start_time, op.end_time) == (600, 600)


class TestClickCreatePolicy:
    """Tests for create gestures without pointer movement."""

    def _click(self, policy: ClickCreatePolicy):
        interaction = _build(TrackerConfig(click_create=policy))
        interaction.begin(GestureType.CREATE, 600)
        return interaction, interaction.commit()

    def test_reject(self):
        interaction, result = self._click(ClickCreatePolicy.REJECT)

        assert result.status is CommitStatus.REJECTED
        assert result.failure is ValidationFailure.INVERTED_INTERVAL
        assert len(interaction.collection) == 2

    def test_ignore(self):
        interaction, result = self._click(ClickCreatePolicy.IGNORE)

        assert result.status is CommitStatus.IGNORED
        assert result.ok
        assert len(interaction.collection) == 2

    def test_expand_to_one_grid_unit(self):
        interaction, result = self._click(ClickCreatePolicy.EXPAND)

        assert result.status is CommitStatus.COMMITTED
        assert (result.slot.start_time, result.slot.end_time) == (600, 615)
        assert len(interaction.collection) == 3

    def test_expand_at_day_end_stays_in_bounds(self):
        interaction = _build(TrackerConfig(click_create=ClickCreatePolicy.EXPAND), slots=[])
        interaction.begin(GestureType.CREATE, 1439)

        result = interaction.commit()

        assert (result.slot.start_time, result.slot.end_time) == (1425, 1440)


class TestMoveGesture:
    """Tests for move gestures."""

    def test_move_preserves_duration(self):
        """Test shifting the work slot by one hour."""
        interaction = _build()
        work = interaction.collection.get("work")

        interaction.begin(GestureType.MOVE, 550, slot=work)
        op, transient = interaction.update(610)

        assert (transient.start_time, transient.end_time) == (600, 660)
        assert transient.id == "work"
        assert op.original_start == 540 and op.original_end == 600

    def test_move_is_clamped_below(self):
        """Test that a move cannot pass the next slot."""
        interaction = _build()
        work = interaction.collection.get("work")

        interaction.begin(GestureType.MOVE, 540, slot=work)
        _, transient = interaction.update(900)

        assert (transient.start_time, transient.end_time) == (780, 840)

        result = interaction.commit()
        assert result.status is CommitStatus.COMMITTED
        assert interaction.collection.get("work").start_time == 780
        assert result.previous.start_time == 540

    def test_move_is_clamped_at_day_start(self):
        interaction = _build()
        work = interaction.collection.get("work")

        interaction.begin(GestureType.MOVE, 540, slot=work)
        _, transient = interaction.update(-200)

        assert (transient.start_time, transient.end_time) == (0, 60)

    def test_move_is_clamped_above(self):
        """Test that a move cannot pass the previous slot."""
        interaction = _build()
        rest = interaction.collection.get("rest")

        interaction.begin(GestureType.MOVE, 840, slot=rest)
        _, transient = interaction.update(300)

        assert (transient.start_time, transient.end_time) == (600, 660)

    def test_click_without_movement_is_unchanged(self):
        """Test that a pure click is a no-op success."""
        interaction = _build()
        work = interaction.collection.get("work")
        before = interaction.collection.snapshot()

        interaction.begin(GestureType.MOVE, 560, slot=work)
        result = interaction.commit()

        assert result.status is CommitStatus.UNCHANGED
        assert result.slot is work
        assert interaction.collection.snapshot() == before

    def test_off_grid_slot_moves_by_pointer_delta(self):
        """Test that a slot off the grid keeps its offset while moving."""
        off_grid = TimeSlot(date=DAY, start_time=547, end_time=607, category_id="work", id="work")
        interaction = _build(slots=[off_grid])

        interaction.begin(GestureType.MOVE, 560, slot=off_grid)
        _, still = interaction.update(560)
        assert (still.start_time, still.end_time) == (547, 607)

        _, moved = interaction.update(620)
        assert (moved.start_time, moved.end_time) == (607, 667)

    def test_off_grid_slot_click_is_unchanged(self):
        """Test that a pure click on an off-grid slot does not move it."""
        off_grid = TimeSlot(date=DAY, start_time=547, end_time=607, category_id="work", id="work")
        interaction = _build(slots=[off_grid])

        interaction.begin(GestureType.MOVE, 560, slot=off_grid)
        interaction.update(560)
        result = interaction.commit()

        assert result.status is CommitStatus.UNCHANGED
        assert interaction.collection.get("work").start_time == 547

    def test_pixel_axis(self):
        """Test a 960px axis where one pixel is 1.5 minutes."""
        interaction = _build()
        interaction.axis_length = 960
        work = interaction.collection.get("work")

        interaction.begin(GestureType.MOVE, minutes_to_offset(540, 960), slot=work)
        _, transient = interaction.update(400)

        assert (transient.start_time, transient.end_time) == (600, 660)


class TestResizeGesture:
    """Tests for resize gestures."""

    def test_bottom_edge_stops_at_next_slot(self):
        """Test that resizing work toward 16:00 stops at the rest slot (14:00)."""
        interaction = _build()
        collection = interaction.collection
        work = collection.get("work")

        interaction.begin(GestureType.RESIZE, 600, slot=work, direction=ResizeEdge.BOTTOM)
        _, at_neighbour = interaction.update(clock_to_minutes("14:00"))
        _, past_neighbour = interaction.update(clock_to_minutes("16:00"))

        assert at_neighbour.end_time == 840
        assert past_neighbour.end_time == collection.below_boundary(work) == 840
        assert past_neighbour.start_time == 540

        result = interaction.commit()
        assert result.status is CommitStatus.COMMITTED
        assert collection.get("work").end_time == 840

    def test_bottom_edge_keeps_one_grid_unit(self):
        """Test the minimum duration while shrinking."""
        interaction = _build()
        work = interaction.collection.get("work")

        interaction.begin(GestureType.RESIZE, 600, slot=work, direction=ResizeEdge.BOTTOM)
        _, transient = interaction.update(500)

        assert (transient.start_time, transient.end_time) == (540, 555)

    def test_top_edge_keeps_one_grid_unit(self):
        interaction = _build()
        work = interaction.collection.get("work")

        interaction.begin(GestureType.RESIZE, 540, slot=work, direction=ResizeEdge.TOP)
        _, transient = interaction.update(620)

        assert (transient.start_time, transient.end_time) == (585, 600)

    def test_top_edge_stops_at_previous_slot(self):
        interaction = _build()
        rest = interaction.collection.get("rest")

        interaction.begin(GestureType.RESIZE, 840, slot=rest, direction=ResizeEdge.TOP)
        _, transient = interaction.update(500)

        assert (transient.start_time, transient.end_time) == (600, 900)

    def test_duration_policy_on_drag(self):
        """Test that drag edits only check durations when configured."""
        work = TimeSlot(date=DAY, start_time=540, end_time=600, category_id="work", id="work")

        lenient = _build(TrackerConfig(), slots=[work])
        lenient.begin(GestureType.RESIZE, 600, slot=work, direction=ResizeEdge.BOTTOM)
        lenient.update(1200)
        assert lenient.commit().status is CommitStatus.COMMITTED

        strict = _build(TrackerConfig(enforce_duration_on_drag=True), slots=[work.with_times(540, 600)])
        strict.begin(GestureType.RESIZE, 600, slot=work, direction=ResizeEdge.BOTTOM)
        strict.update(1200)
        result = strict.commit()

        assert result.status is CommitStatus.REJECTED
        assert result.failure is ValidationFailure.DURATION_OUT_OF_RANGE
        assert result.operation.original_end == 600
        assert strict.collection.get("work").end_time == 600


class TestLifecycle:
    """Tests for state handling."""

    def test_states(self):
        interaction = _build()
        assert interaction.state is InteractionState.IDLE

        interaction.begin(GestureType.CREATE, 600)
        assert interaction.state is InteractionState.DRAGGING

        interaction.commit()
        assert interaction.state is InteractionState.IDLE
        assert interaction.active is None

    def test_cancel_leaves_collection_untouched(self):
        """Test that cancel after three updates changes nothing."""
        interaction = _build()
        before = interaction.collection.snapshot()
        work = interaction.collection.get("work")

        interaction.begin(GestureType.MOVE, 540, slot=work)
        interaction.update(600)
        interaction.update(700)
        interaction.update(760)
        interaction.cancel()

        assert interaction.collection.snapshot() == before
        assert interaction.state is InteractionState.IDLE
        assert interaction.active is None

    def test_cancel_is_idempotent(self):
        interaction = _build()

        interaction.cancel()
        interaction.begin(GestureType.CREATE, 600)
        interaction.cancel()
        interaction.cancel()

        assert interaction.state is InteractionState.IDLE

    def test_second_pointer_down_is_ignored(self):
        """Test that a new begin while dragging keeps the active gesture."""
        interaction = _build()
        first = interaction.begin(GestureType.CREATE, 600)

        second = interaction.begin(GestureType.CREATE, 1000)

        assert second is None
        assert interaction.active is first

    def test_update_and_commit_require_a_gesture(self):
        interaction = _build()

        with pytest.raises(InteractionError):
            interaction.update(100)
        with pytest.raises(InteractionError):
            interaction.commit()

    def test_move_requires_stored_slot(self):
        interaction = _build()
        stranger = TimeSlot(date=DAY, start_time=0, end_time=60, category_id="work")

        with pytest.raises(InteractionError):
            interaction.begin(GestureType.MOVE, 0)
        with pytest.raises(InteractionError):
            interaction.begin(GestureType.MOVE, 0, slot=stranger)
        assert interaction.state is InteractionState.IDLE

    def test_resize_requires_direction(self):
        interaction = _build()
        work = interaction.collection.get("work")

        with pytest.raises(InteractionError, match="direction"):
            interaction.begin(GestureType.RESIZE, 600, slot=work)
