"""Tests for availability aggregation."""

import pytest
from datetime import date, timedelta

from braindumper.engine.availability import (
    build_availability,
    compute_availability,
    compute_calendar_availability,
    find_free_blocks,
    mask_slots,
    merge_availability_windows,
)
from braindumper.engine.errors import DateMismatch, InvalidTimeFormat
from braindumper.models.calendar_event import EventStatus
from braindumper.models.preferences import SchedulingPreferences, WorkingHours
from braindumper.models.time_slot import AvailabilityWindow, TimeSlot


class TestComputeAvailability:
    """Test compute_availability() for a single calendar."""

    def test_one_hour_event_is_sixty_busy_minutes(self, monday, at, make_event):
        """09:00-17:00 with a 10:00-11:00 event: exactly the four slots inside it are busy."""
        event = make_event(at(10), at(11), id="standup")

        window = compute_availability([event], monday, WorkingHours(start="09:00", end="17:00"))

        assert window.total_busy_minutes == 60
        assert window.total_free_minutes == 420
        busy = [s for s in window.slots if s.event_id == "standup"]
        assert [s.start for s in busy] == [at(10), at(10, 15), at(10, 30), at(10, 45)]
        assert all(not s.available for s in busy)
        assert all(s.calendar_id == "primary" for s in busy)

    def test_totals_only_count_working_hours(self, monday, at, make_event):
        """An evening event does not count as busy time."""
        event = make_event(at(19), at(21))

        window = compute_availability([event], monday, WorkingHours())

        assert window.total_busy_minutes == 0
        assert window.total_free_minutes == 8 * 60
        in_hours = [s for s in window.slots if at(9) <= s.start and s.end <= at(17)]
        assert sum(s.duration_minutes for s in in_hours) == window.total_free_minutes + window.total_busy_minutes

    def test_slots_outside_working_hours_are_unavailable(self, monday, at):
        window = compute_availability([], monday, WorkingHours())

        outside = [s for s in window.slots if s.start < at(9) or s.end > at(17)]
        assert outside
        assert all(not s.available and s.event_id is None for s in outside)

    def test_cancelled_events_are_ignored(self, monday, at, make_event):
        event = make_event(at(10), at(11), status=EventStatus.CANCELLED)

        window = compute_availability([event], monday, WorkingHours())

        assert window.total_busy_minutes == 0

    def test_touching_event_does_not_block_adjacent_slot(self, monday, at, make_event):
        event = make_event(at(9), at(10))

        window = compute_availability([event], monday, WorkingHours())

        slot_at_ten = next(s for s in window.slots if s.start == at(10))
        assert slot_at_ten.available

    def test_partial_slot_overlap_blocks_slot(self, monday, at, make_event):
        """A 10:05-10:20 event blocks both the 10:00 and 10:15 slots."""
        event = make_event(at(10, 5), at(10, 20))

        window = compute_availability([event], monday, WorkingHours())

        assert window.total_busy_minutes == 30

    def test_day_off_has_no_working_time(self, monday):
        window = compute_availability([], monday, None)

        assert window.total_free_minutes == 0
        assert window.total_busy_minutes == 0
        assert not any(s.available for s in window.slots)

    def test_invalid_working_hours_raise(self, monday):
        with pytest.raises(InvalidTimeFormat):
            compute_availability([], monday, WorkingHours(start="9am", end="17:00"))

    def test_earliest_overlapping_event_owns_slot(self, monday, at, make_event):
        first = make_event(at(10), at(11), id="first")
        second = make_event(at(10, 15), at(10, 45), id="second")

        window = compute_availability([second, first], monday, WorkingHours())

        slot = next(s for s in window.slots if s.start == at(10, 15))
        assert slot.event_id == "first"


class TestMergeAvailabilityWindows:
    """Test merge_availability_windows() AND semantics."""

    def test_single_window_is_returned_unchanged(self, monday, at, make_event):
        window = compute_availability([make_event(at(10), at(11))], monday, WorkingHours())

        assert merge_availability_windows([window]) is window

    def test_empty_input_has_zero_totals(self):
        merged = merge_availability_windows([])

        assert merged.total_free_minutes == 0
        assert merged.total_busy_minutes == 0
        assert merged.date == date.today()

    def test_busy_in_any_window_is_busy(self, monday, at):
        """Slot free in A but busy in B is busy after merging."""
        window_a = AvailabilityWindow(
            date=monday,
            slots=[TimeSlot(start=at(9), end=at(9, 15), available=True)],
            total_free_minutes=15,
        )
        window_b = AvailabilityWindow(
            date=monday,
            slots=[TimeSlot(start=at(9), end=at(9, 15), available=False, calendar_id="work", event_id="e1")],
            total_busy_minutes=15,
        )

        merged = merge_availability_windows([window_a, window_b])

        assert merged.slots[0].available is False
        assert merged.slots[0].event_id == "e1"
        assert merged.total_busy_minutes == 15
        assert merged.total_free_minutes == 0

    def test_merge_is_order_independent(self, monday, at, make_event):
        home = compute_availability([make_event(at(9), at(10), calendar_id="home")], monday, WorkingHours())
        work = compute_availability([make_event(at(14), at(15), calendar_id="work")], monday, WorkingHours())

        ab = merge_availability_windows([home, work])
        ba = merge_availability_windows([work, home])

        assert [s.available for s in ab.slots] == [s.available for s in ba.slots]
        assert ab.total_busy_minutes == ba.total_busy_minutes == 120
        assert ab.total_free_minutes == 360

    def test_different_dates_raise(self, monday):
        with pytest.raises(DateMismatch):
            merge_availability_windows([
                AvailabilityWindow(date=monday),
                AvailabilityWindow(date=monday + timedelta(days=1)),
            ])


class TestCalendarAvailability:
    """Test multi-calendar and multi-day helpers."""

    def test_events_from_all_calendars_are_busy(self, monday, at, make_event, preferences):
        events = [
            make_event(at(9), at(10), calendar_id="home"),
            make_event(at(11), at(12), calendar_id="work"),
        ]

        window = compute_calendar_availability(events, monday, preferences)

        assert window.total_busy_minutes == 120
        assert window.total_free_minutes == 360

    def test_weekend_is_not_working_time(self, monday, preferences):
        saturday = monday + timedelta(days=5)

        window = compute_calendar_availability([], saturday, preferences)

        assert window.total_free_minutes == 0

    def test_per_weekday_working_hours(self, monday):
        preferences = SchedulingPreferences(
            working_hours_by_weekday={0: WorkingHours(start="10:00", end="14:00")},
        )

        window = compute_calendar_availability([], monday, preferences)

        assert window.total_free_minutes == 240

    def test_build_availability_covers_each_day(self, monday, preferences):
        windows = build_availability([], monday, monday + timedelta(days=6), preferences)

        assert [w.date for w in windows] == [monday + timedelta(days=i) for i in range(7)]
        assert sum(w.total_free_minutes for w in windows) == 5 * 480


class TestFreeBlocks:
    """Test find_free_blocks() and mask_slots()."""

    def test_blocks_split_around_events(self, monday, at, make_event):
        window = compute_availability([make_event(at(12), at(13))], monday, WorkingHours())

        blocks = find_free_blocks(window)

        assert [(b.start, b.end) for b in blocks] == [(at(9), at(12)), (at(13), at(17))]

    def test_min_minutes_discards_short_blocks(self, monday, at, make_event):
        events = [make_event(at(9, 30), at(16, 45))]
        window = compute_availability(events, monday, WorkingHours())

        blocks = find_free_blocks(window, min_minutes=30)

        assert [(b.start, b.end) for b in blocks] == [(at(9), at(9, 30))]

    def test_mask_marks_overlapping_slots_busy(self, monday, at):
        window = compute_availability([], monday, WorkingHours())

        masked = mask_slots([window], [TimeSlot(start=at(9), end=at(10))])[0]

        assert masked.total_free_minutes == 420
        assert masked.total_busy_minutes == 60
        assert window.total_free_minutes == 480
        assert find_free_blocks(masked)[0].start == at(10)
