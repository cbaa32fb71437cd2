"""Priority-based displacement for braindumper.

When a higher-priority task needs a slot held by lower-priority braindumper
events, those events are proposed to move elsewhere (or be unscheduled when
nothing else is free). External events are never negotiable. Nothing here
writes to a calendar.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from braindumper.engine.availability import mask_slots
from braindumper.engine.conflicts import can_displace_by_priority, find_overlapping_events, priority_weight
from braindumper.engine.suggestions import generate_suggestions
from braindumper.engine.timeutils import minutes_between
from braindumper.models.calendar_event import CalendarEvent
from braindumper.models.constants import PROPOSAL_SUGGESTIONS_PER_TASK
from braindumper.models.preferences import SchedulingPreferences
from braindumper.models.proposal import Displacement, DisplacementAction
from braindumper.models.suggestion import Conflict, ConflictKind, ConflictSeverity
from braindumper.models.task import Priority, Task
from braindumper.models.time_slot import AvailabilityWindow, TimeSlot

logger = logging.getLogger(__name__)


@dataclass
class DisplacementPlan:
    """Outcome of resolving a candidate slot against existing events."""
    displacements: List[Displacement] = field(default_factory=list)
    blocking_conflicts: List[Conflict] = field(default_factory=list)

    @property
    def feasible(self) -> bool:
        return not self.blocking_conflicts


def _task_for_event(event: CalendarEvent) -> Task:
    """Rebuild enough of the owning task to search a replacement slot."""
    duration = minutes_between(event.start, event.end)
    return Task(
        id=event.task_id,
        title=event.title,
        priority=event.task_priority or Priority.MEDIUM,
        task_type=event.task_type,
        time_estimate_minutes=duration if duration > 0 else None,
        buffer_before=0,
        buffer_after=0,
    )


def resolve_displacements(
    candidate_task: Task,
    candidate_slot: TimeSlot,
    existing_events: Sequence[CalendarEvent],
    availability: Sequence[AvailabilityWindow] = (),
    preferences: Optional[SchedulingPreferences] = None,
    now: Optional[datetime] = None,
) -> DisplacementPlan:
    """Work out which events must give way for a task to take a slot.

    Args:
        candidate_task: Task that wants the slot
        candidate_slot: Slot the task wants
        existing_events: Current calendar events
        availability: Merged availability used to find replacement slots
        preferences: User preferences
        now: Current time

    Returns:
        DisplacementPlan. Not feasible (and without displacements) when the
        slot collides with an external event or with equal/higher priority work.
    """
    plan = DisplacementPlan()
    targets: List[CalendarEvent] = []

    for event in find_overlapping_events(candidate_slot, existing_events):
        if not event.is_owned:
            plan.blocking_conflicts.append(Conflict(
                kind=ConflictKind.OVERLAP,
                severity=ConflictSeverity.ERROR,
                description=f"'{event.title}' is an external event and cannot be moved",
                event_id=event.id,
            ))
        elif not can_displace_by_priority(candidate_task.priority, event.task_priority):
            plan.blocking_conflicts.append(Conflict(
                kind=ConflictKind.OVERLAP,
                severity=ConflictSeverity.ERROR,
                description=f"'{event.title}' has equal or higher priority",
                resolution="Choose another time",
                event_id=event.id,
            ))
        else:
            targets.append(event)

    if plan.blocking_conflicts:
        logger.debug(
            f"Slot {candidate_slot.start.isoformat()} rejected for task {candidate_task.id}: "
            f"{len(plan.blocking_conflicts)} blocking conflicts"
        )
        return plan

    # Least valuable commitments are displaced first
    targets.sort(key=lambda e: (priority_weight(e.task_priority), e.start, e.id))

    occupied: List[TimeSlot] = [candidate_slot]
    target_ids = {e.id for e in targets}
    other_events = [e for e in existing_events if e.id not in target_ids]

    for event in targets:
        replacement_task = _task_for_event(event)
        suggestions = generate_suggestions(
            replacement_task,
            mask_slots(availability, occupied),
            count=PROPOSAL_SUGGESTIONS_PER_TASK,
            preferences=preferences,
            events=other_events,
            now=now,
        )
        best = next(
            (s for s in suggestions if not s.partial_fit and not s.has_blocking_conflict),
            None,
        )
        priority = Priority(event.task_priority or Priority.MEDIUM)

        if best is not None:
            occupied.append(best.slot)
            displacement = Displacement(
                event_id=event.id,
                task_id=event.task_id,
                calendar_id=event.calendar_id,
                title=event.title,
                priority=priority,
                original_slot=event.as_slot(),
                proposed_slot=best.slot,
                action=DisplacementAction.MOVE,
                reason=f"Moved for higher-priority task '{candidate_task.title or candidate_task.id}'",
                caused_by_task_id=candidate_task.id,
            )
        else:
            displacement = Displacement(
                event_id=event.id,
                task_id=event.task_id,
                calendar_id=event.calendar_id,
                title=event.title,
                priority=priority,
                original_slot=event.as_slot(),
                action=DisplacementAction.UNSCHEDULE,
                reason="No alternative time found",
                caused_by_task_id=candidate_task.id,
            )
        logger.debug(f"Displacing {event.id} ({priority.value}): {displacement.action}")
        plan.displacements.append(displacement)

    return plan
