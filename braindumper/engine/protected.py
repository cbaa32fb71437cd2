"""Protected time handling for braindumper.

Protected slots are recurring windows the user never wants scheduled over.
Some of them (e.g. a slot kept free for ad-hoc calls) may be overridden by
high-priority tasks.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

from braindumper.engine.rules import get_task_type
from braindumper.engine.timeutils import combine_date_and_time, parse_time_string, ranges_overlap
from braindumper.models.preferences import ProtectedSlot, SchedulingPreferences, TimeOfDay
from braindumper.models.task import Priority, Task, TaskType
from braindumper.models.time_slot import TimeSlot

CALL_SLOT_ID = "call-slot"

# Start of the call slot for each preferred part of the day
_CALL_SLOT_STARTS = {
    TimeOfDay.MORNING: "10:00",
    TimeOfDay.AFTERNOON: "15:00",
    TimeOfDay.EVENING: "17:00",
}


@dataclass(frozen=True)
class ProtectedWindow:
    """A protected slot expanded onto a concrete day."""
    slot: ProtectedSlot
    start: datetime
    end: datetime


def call_slot_for(preferences: SchedulingPreferences) -> Optional[ProtectedSlot]:
    """Derive the protected call slot from the call-slot policy, if enabled."""
    if not preferences.keep_slot_free_for_calls:
        return None
    start = _CALL_SLOT_STARTS[TimeOfDay(preferences.call_slot_preferred_time)]
    hours, minutes = parse_time_string(start)
    end_total = min(hours * 60 + minutes + preferences.call_slot_duration, 23 * 60 + 59)
    return ProtectedSlot(
        id=CALL_SLOT_ID,
        name="Call slot",
        days_of_week=list(preferences.working_days),
        start_time=start,
        end_time=f"{end_total // 60:02d}:{end_total % 60:02d}",
        allow_override_for_urgent=True,
    )


def protected_slots_for_task(
    preferences: Optional[SchedulingPreferences],
    task: Optional[Task] = None,
) -> List[ProtectedSlot]:
    """All enabled protected slots that apply when scheduling this task.

    The derived call slot is kept free for calls, so it never blocks a
    call-type task.
    """
    if preferences is None:
        return []
    slots = [s for s in preferences.protected_slots if s.enabled]
    call_slot = call_slot_for(preferences)
    if call_slot is not None:
        if task is None or get_task_type(task) != TaskType.CALL:
            slots.append(call_slot)
    return slots


def expand_protected_slots(
    protected_slots: Sequence[ProtectedSlot],
    day: date,
    tz: str = "UTC",
) -> List[ProtectedWindow]:
    """Expand recurring protected slots onto a single day."""
    windows: List[ProtectedWindow] = []
    for slot in protected_slots:
        if not slot.enabled or day.weekday() not in slot.days_of_week:
            continue
        start = combine_date_and_time(day, slot.start_time, tz)
        end = combine_date_and_time(day, slot.end_time, tz)
        if end <= start:
            # Window spans midnight
            end = end + timedelta(days=1)
        windows.append(ProtectedWindow(slot=slot, start=start, end=end))
    return windows


def find_protected_windows(
    slot: TimeSlot,
    protected_slots: Sequence[ProtectedSlot],
    tz: str = "UTC",
) -> List[ProtectedWindow]:
    """Protected windows intersecting a slot (checks the slot's day and the day before)."""
    hits: List[ProtectedWindow] = []
    local_day = slot.start.date()
    for day in (local_day - timedelta(days=1), local_day):
        for window in expand_protected_slots(protected_slots, day, tz):
            if ranges_overlap(slot.start, slot.end, window.start, window.end):
                hits.append(window)
    return hits


def can_override_protected(task: Optional[Task], slot: ProtectedSlot) -> bool:
    """Only high-priority tasks may use a protected slot, and only if it allows it."""
    if task is None:
        return False
    return Priority(task.priority) == Priority.HIGH and slot.allow_override_for_urgent
