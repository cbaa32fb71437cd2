"""Conflict detection for braindumper.

Finds calendar events colliding with a candidate slot and classifies every
problem with the slot as a Conflict. Conflicts are advisory: nothing here
mutates its inputs.
"""

import logging
from typing import List, Optional, Sequence

from braindumper.engine.protected import can_override_protected, find_protected_windows
from braindumper.engine.rules import EffectiveRule, check_slot_against_rule
from braindumper.engine.timeutils import combine_date_and_time, convert_timezone, ranges_overlap
from braindumper.models.calendar_event import CalendarEvent, EventStatus
from braindumper.models.preferences import ProtectedSlot, WorkingHours
from braindumper.models.suggestion import Conflict, ConflictKind, ConflictSeverity
from braindumper.models.task import Priority, Task
from braindumper.models.time_slot import TimeSlot

logger = logging.getLogger(__name__)

PRIORITY_WEIGHTS = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


def priority_weight(priority: Optional[Priority]) -> int:
    """Numeric weight of a priority. Missing priorities count as medium."""
    if priority is None:
        return PRIORITY_WEIGHTS[Priority.MEDIUM]
    return PRIORITY_WEIGHTS[Priority(priority)]


def compare_priorities(a: Optional[Priority], b: Optional[Priority]) -> int:
    """Positive if a outranks b, negative if b outranks a, zero if equal."""
    return priority_weight(a) - priority_weight(b)


def can_displace_by_priority(candidate: Optional[Priority], existing: Optional[Priority]) -> bool:
    """A task may only displace strictly lower-priority work."""
    return compare_priorities(candidate, existing) > 0


def find_overlapping_events(slot: TimeSlot, events: Sequence[CalendarEvent]) -> List[CalendarEvent]:
    """All non-cancelled events intersecting the slot (half-open)."""
    return [
        e for e in events
        if not e.is_cancelled and ranges_overlap(slot.start, slot.end, e.start, e.end)
    ]


def has_blocking_conflict(conflicts: Sequence[Conflict]) -> bool:
    return any(ConflictSeverity(c.severity) == ConflictSeverity.ERROR for c in conflicts)


def _outside_working_hours(slot: TimeSlot, working_hours: WorkingHours, tz: str) -> bool:
    local_start = convert_timezone(slot.start, tz)
    work_start = combine_date_and_time(local_start.date(), working_hours.start, tz)
    work_end = combine_date_and_time(local_start.date(), working_hours.end, tz)
    return slot.start < work_start or slot.end > work_end


def build_conflicts(
    slot: TimeSlot,
    events: Sequence[CalendarEvent],
    protected_slots: Sequence[ProtectedSlot] = (),
    task: Optional[Task] = None,
    rule: Optional[EffectiveRule] = None,
    working_hours: Optional[WorkingHours] = None,
    tz: str = "UTC",
) -> List[Conflict]:
    """Classify every conflict of a candidate slot.

    Args:
        slot: Candidate slot
        events: Calendar events to check against
        protected_slots: Protected slots that apply to this task
        task: Task being placed (decides whether protected slots may be overridden)
        rule: Effective task-type rule (enables rule_violation conflicts)
        working_hours: Working hours of the slot's day (enables outside-hours check)
        tz: User's IANA timezone

    Returns:
        Conflicts, most severe kinds first
    """
    conflicts: List[Conflict] = []

    for event in find_overlapping_events(slot, events):
        severity = (
            ConflictSeverity.WARNING
            if EventStatus(event.status) == EventStatus.TENTATIVE
            else ConflictSeverity.ERROR
        )
        conflicts.append(Conflict(
            kind=ConflictKind.OVERLAP,
            severity=severity,
            description=f"Overlaps with '{event.title}'",
            resolution=f"Choose another time or move '{event.title}'",
            event_id=event.id,
        ))

    for window in find_protected_windows(slot, protected_slots, tz):
        if can_override_protected(task, window.slot):
            conflicts.append(Conflict(
                kind=ConflictKind.PROTECTED_SLOT,
                severity=ConflictSeverity.WARNING,
                description=f"Uses protected time '{window.slot.name}'",
                resolution="Allowed for high-priority tasks",
            ))
        else:
            conflicts.append(Conflict(
                kind=ConflictKind.PROTECTED_SLOT,
                severity=ConflictSeverity.ERROR,
                description=f"Overlaps protected time '{window.slot.name}'",
                resolution="Choose a time outside the protected slot",
            ))

    if working_hours is not None and _outside_working_hours(slot, working_hours, tz):
        conflicts.append(Conflict(
            kind=ConflictKind.OUTSIDE_WORKING_HOURS,
            severity=ConflictSeverity.WARNING,
            description=f"Outside working hours ({working_hours.start}-{working_hours.end})",
        ))

    if rule is not None:
        local_slot = TimeSlot(start=convert_timezone(slot.start, tz), end=convert_timezone(slot.end, tz))
        for violation in check_slot_against_rule(local_slot, rule).violations:
            conflicts.append(Conflict(
                kind=ConflictKind.RULE_VIOLATION,
                severity=ConflictSeverity.INFO,
                description=violation,
            ))

    return conflicts
