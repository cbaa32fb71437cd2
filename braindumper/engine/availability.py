"""Availability aggregation for braindumper.

Turns calendar events and working hours into per-day availability windows,
merges windows from several calendars, and finds contiguous free blocks.
"""

import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence

from braindumper.engine.errors import DateMismatch
from braindumper.engine.timeutils import (
    combine_date_and_time,
    date_range,
    generate_slots,
    ranges_overlap,
)
from braindumper.models.calendar_event import CalendarEvent
from braindumper.models.constants import SLOT_GRANULARITY_MINUTES
from braindumper.models.preferences import SchedulingPreferences, WorkingHours
from braindumper.models.time_slot import AvailabilityWindow, TimeSlot

logger = logging.getLogger(__name__)


def compute_availability(
    events: Sequence[CalendarEvent],
    day: date,
    working_hours: Optional[WorkingHours],
    interval_minutes: int = SLOT_GRANULARITY_MINUTES,
    tz: str = "UTC",
) -> AvailabilityWindow:
    """Compute the availability of one day from calendar events.

    Slots outside working hours are unavailable without looking at events.
    Inside working hours a slot is busy if any non-cancelled event overlaps it;
    the earliest such event is recorded on the slot. Totals only count time
    inside working hours: time outside them is neither free nor busy.

    Args:
        events: Calendar events (any calendar, any day)
        day: Day to compute
        working_hours: Working hours for the day (None for a day off)
        interval_minutes: Slot granularity
        tz: User's IANA timezone

    Returns:
        AvailabilityWindow for the day

    Raises:
        InvalidTimeFormat: If the working hours are malformed
    """
    base_slots = generate_slots(day, interval_minutes, tz)
    if working_hours is None:
        return AvailabilityWindow(
            date=day,
            slots=[s.model_copy(update={"available": False}) for s in base_slots],
        )

    work_start = combine_date_and_time(day, working_hours.start, tz)
    work_end = combine_date_and_time(day, working_hours.end, tz)

    if base_slots:
        day_start, day_end = base_slots[0].start, base_slots[-1].end
        day_events = sorted(
            (
                e for e in events
                if not e.is_cancelled and ranges_overlap(e.start, e.end, day_start, day_end)
            ),
            key=lambda e: (e.start, e.id),
        )
    else:
        day_events = []

    slots: List[TimeSlot] = []
    free_minutes = 0
    busy_minutes = 0

    for slot in base_slots:
        if not (slot.start >= work_start and slot.end <= work_end):
            slots.append(slot.model_copy(update={"available": False}))
            continue

        overlapping = next(
            (e for e in day_events if ranges_overlap(e.start, e.end, slot.start, slot.end)),
            None,
        )
        if overlapping is not None:
            slots.append(slot.model_copy(update={
                "available": False,
                "calendar_id": overlapping.calendar_id,
                "event_id": overlapping.id,
            }))
            busy_minutes += slot.duration_minutes
        else:
            slots.append(slot)
            free_minutes += slot.duration_minutes

    logger.debug(
        f"Availability for {day.isoformat()}: {free_minutes} free / {busy_minutes} busy minutes "
        f"from {len(day_events)} events"
    )
    return AvailabilityWindow(
        date=day,
        slots=slots,
        total_free_minutes=free_minutes,
        total_busy_minutes=busy_minutes,
    )


def _counts_toward_totals(slot: TimeSlot) -> bool:
    # Slots outside working hours are unavailable without an owning event
    return slot.available or slot.event_id is not None


def merge_availability_windows(windows: Sequence[AvailabilityWindow]) -> AvailabilityWindow:
    """Merge per-calendar windows of the same day.

    A merged slot is available only if it is available in every window: busy
    on any connected calendar makes it busy.

    Args:
        windows: Windows for the same date

    Returns:
        Merged AvailabilityWindow (the input itself for a single window)

    Raises:
        DateMismatch: If the windows describe different dates
    """
    if not windows:
        return AvailabilityWindow(date=date.today())

    if len(windows) == 1:
        return windows[0]

    first_date = windows[0].date
    for window in windows[1:]:
        if window.date != first_date:
            raise DateMismatch(
                f"Cannot merge availability for {window.date.isoformat()} into {first_date.isoformat()}"
            )

    merged: Dict[datetime, TimeSlot] = OrderedDict()
    counted: Dict[datetime, bool] = {}
    for window in windows:
        for slot in window.slots:
            key = slot.start
            counted[key] = counted.get(key, False) or _counts_toward_totals(slot)
            existing = merged.get(key)
            if existing is None:
                merged[key] = slot
            elif existing.available and not slot.available:
                merged[key] = slot
            elif not existing.available and existing.event_id is None and slot.event_id is not None:
                # Prefer the slot that names the event making it busy
                merged[key] = slot

    slots = sorted(merged.values(), key=lambda s: s.start)
    free_minutes = 0
    busy_minutes = 0
    for slot in slots:
        if not counted[slot.start]:
            continue
        if slot.available:
            free_minutes += slot.duration_minutes
        else:
            busy_minutes += slot.duration_minutes

    return AvailabilityWindow(
        date=first_date,
        slots=slots,
        total_free_minutes=free_minutes,
        total_busy_minutes=busy_minutes,
    )


def compute_calendar_availability(
    events: Sequence[CalendarEvent],
    day: date,
    preferences: SchedulingPreferences,
    interval_minutes: int = SLOT_GRANULARITY_MINUTES,
) -> AvailabilityWindow:
    """Availability of a day across all connected calendars."""
    working_hours = preferences.working_hours_for(day.weekday())
    by_calendar: Dict[str, List[CalendarEvent]] = OrderedDict()
    for event in events:
        by_calendar.setdefault(event.calendar_id, []).append(event)

    if not by_calendar:
        return compute_availability([], day, working_hours, interval_minutes, preferences.timezone)

    windows = [
        compute_availability(cal_events, day, working_hours, interval_minutes, preferences.timezone)
        for cal_events in by_calendar.values()
    ]
    return merge_availability_windows(windows)


def build_availability(
    events: Sequence[CalendarEvent],
    start_day: date,
    end_day: date,
    preferences: SchedulingPreferences,
    interval_minutes: int = SLOT_GRANULARITY_MINUTES,
) -> List[AvailabilityWindow]:
    """Merged availability for every day from start_day to end_day (inclusive)."""
    return [
        compute_calendar_availability(events, day, preferences, interval_minutes)
        for day in date_range(start_day, end_day)
    ]


def find_free_blocks(window: AvailabilityWindow, min_minutes: int = 0) -> List[TimeSlot]:
    """Find maximal runs of contiguous available slots.

    Single forward scan: a running block is extended while slots stay
    available and touch the previous one, and closed on any gap or busy slot.

    Args:
        window: Availability window to scan
        min_minutes: Blocks shorter than this are discarded

    Returns:
        Free blocks in chronological order
    """
    blocks: List[TimeSlot] = []
    block_start: Optional[datetime] = None
    block_end: Optional[datetime] = None

    def close_block():
        if block_start is not None and (block_end - block_start) >= timedelta(minutes=min_minutes):
            blocks.append(TimeSlot(start=block_start, end=block_end))

    for slot in window.slots:
        if slot.available and block_end is not None and slot.start == block_end:
            block_end = slot.end
            continue
        close_block()
        if slot.available:
            block_start, block_end = slot.start, slot.end
        else:
            block_start, block_end = None, None
    close_block()

    return blocks


def mask_slots(
    windows: Sequence[AvailabilityWindow],
    busy: Sequence[TimeSlot],
) -> List[AvailabilityWindow]:
    """Return copies of the windows with every slot overlapping `busy` marked unavailable."""
    if not busy:
        return list(windows)

    masked: List[AvailabilityWindow] = []
    for window in windows:
        slots: List[TimeSlot] = []
        free_minutes = window.total_free_minutes
        busy_minutes = window.total_busy_minutes
        for slot in window.slots:
            if slot.available and any(
                ranges_overlap(slot.start, slot.end, b.start, b.end) for b in busy
            ):
                slots.append(slot.model_copy(update={"available": False}))
                free_minutes -= slot.duration_minutes
                busy_minutes += slot.duration_minutes
            else:
                slots.append(slot)
        masked.append(window.model_copy(update={
            "slots": slots,
            "total_free_minutes": max(0, free_minutes),
            "total_busy_minutes": busy_minutes,
        }))
    return masked
