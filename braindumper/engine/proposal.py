"""Proposal building for braindumper.

Places a batch of tasks into the user's free time, one task at a time in
stack-rank order, and bundles the result into a ScheduleProposal awaiting
approval. Unschedulable tasks are reported explicitly rather than raised.
"""

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Sequence, Set, Tuple

from braindumper.engine.availability import build_availability, mask_slots
from braindumper.engine.conflicts import can_displace_by_priority
from braindumper.engine.displacement import DisplacementPlan, resolve_displacements
from braindumper.engine.ranking import stack_rank
from braindumper.engine.rules import get_effective_rule
from braindumper.engine.suggestions import generate_suggestions
from braindumper.engine.timeutils import convert_timezone, ensure_aware
from braindumper.models.calendar_event import CalendarEvent
from braindumper.models.constants import (
    DEFAULT_SEARCH_HORIZON_DAYS,
    PROPOSAL_SUGGESTIONS_PER_TASK,
    PROPOSAL_TTL_MINUTES,
)
from braindumper.models.preferences import SchedulingPreferences
from braindumper.models.proposal import (
    ProposalStatus,
    ProposalSummary,
    ScheduleProposal,
    TaskAssignment,
    UnschedulableTask,
)
from braindumper.models.suggestion import SchedulingSuggestion
from braindumper.models.task import Priority, Task
from braindumper.models.time_slot import AvailabilityWindow, TimeSlot

logger = logging.getLogger(__name__)

NO_SUITABLE_TIME = "No suitable time found"
ALREADY_SCHEDULED = "Already scheduled"


def _is_clean(suggestion: SchedulingSuggestion) -> bool:
    return not suggestion.partial_fit and not suggestion.has_blocking_conflict


def _reserved_span(slot: TimeSlot, buffer_before: int, buffer_after: int) -> TimeSlot:
    return TimeSlot(
        start=slot.start - timedelta(minutes=buffer_before),
        end=slot.end + timedelta(minutes=buffer_after),
    )


def _try_displacement(
    task: Task,
    events: Sequence[CalendarEvent],
    displaced: Set[str],
    availability: List[AvailabilityWindow],
    taken: List[TimeSlot],
    start_day: date,
    end_day: date,
    preferences: SchedulingPreferences,
    now: datetime,
    count: int,
) -> Optional[Tuple[SchedulingSuggestion, DisplacementPlan]]:
    """Find the best slot that becomes free by moving lower-priority owned events.

    Events already displaced earlier in the proposal keep their original slot
    busy: the task that displaced them may still be rejected.
    """
    movable = {
        e.id for e in events
        if e.id not in displaced and e.is_owned and not e.is_cancelled
        and can_displace_by_priority(task.priority, e.task_priority)
    }
    if not movable:
        return None

    remaining = [e for e in events if e.id not in movable]
    relaxed = mask_slots(build_availability(remaining, start_day, end_day, preferences), taken)
    candidates = generate_suggestions(task, relaxed, count=count, preferences=preferences, events=remaining, now=now)

    for suggestion in candidates:
        if not _is_clean(suggestion):
            continue
        plan = resolve_displacements(
            task, suggestion.slot, events,
            availability=availability, preferences=preferences, now=now,
        )
        if plan.feasible and plan.displacements:
            return suggestion, plan
    return None


def build_proposal(
    tasks: Sequence[Task],
    events: Sequence[CalendarEvent],
    preferences: Optional[SchedulingPreferences] = None,
    start_day: Optional[date] = None,
    end_day: Optional[date] = None,
    now: Optional[datetime] = None,
    ttl_minutes: int = PROPOSAL_TTL_MINUTES,
    count: int = PROPOSAL_SUGGESTIONS_PER_TASK,
) -> ScheduleProposal:
    """Build a schedule proposal for a batch of tasks.

    Args:
        tasks: Tasks to place
        events: Calendar events across all connected calendars
        preferences: User preferences (defaults when None)
        start_day: First day of the search horizon (defaults to today in the user's timezone)
        end_day: Last day of the search horizon (inclusive)
        now: Current time
        ttl_minutes: Minutes until the proposal expires
        count: Suggestions offered per task

    Returns:
        ScheduleProposal in PENDING_APPROVAL status
    """
    preferences = preferences or SchedulingPreferences()
    now = ensure_aware(now) if now is not None else datetime.now(timezone.utc)
    if start_day is None:
        start_day = convert_timezone(now, preferences.timezone).date()
    if end_day is None:
        end_day = start_day + timedelta(days=DEFAULT_SEARCH_HORIZON_DAYS - 1)

    active_events = [e for e in events if not e.is_cancelled]
    availability = build_availability(active_events, start_day, end_day, preferences)

    proposal = ScheduleProposal(
        id=str(uuid.uuid4()),
        created_at=now,
        expires_at=now + timedelta(minutes=ttl_minutes),
        status=ProposalStatus.DRAFT,
        calendar_id=preferences.default_calendar_id,
    )

    taken: List[TimeSlot] = []
    displaced: Set[str] = set()
    conflict_count = 0

    for task in stack_rank(list(tasks)):
        if task.calendar_event_id:
            proposal.unschedulable.append(UnschedulableTask(
                task_id=task.id, task_title=task.title, reason=ALREADY_SCHEDULED,
            ))
            continue

        rule = get_effective_rule(task, preferences)
        masked = mask_slots(availability, taken)
        suggestions = generate_suggestions(
            task, masked, count=count, preferences=preferences, events=active_events, now=now,
        )

        recommended = next((i for i, s in enumerate(suggestions) if _is_clean(s)), None)
        requires_displacement = False

        if recommended is None and Priority(task.priority) != Priority.LOW:
            found = _try_displacement(
                task, active_events, displaced, masked, taken, start_day, end_day, preferences, now, count,
            )
            if found is not None:
                suggestion, plan = found
                suggestions = [suggestion]
                recommended = 0
                requires_displacement = True
                proposal.displacements.extend(plan.displacements)
                for d in plan.displacements:
                    displaced.add(d.event_id)
                    if d.proposed_slot is not None:
                        taken.append(d.proposed_slot)

        if recommended is None:
            recommended = next(
                (i for i, s in enumerate(suggestions) if not s.has_blocking_conflict),
                None,
            )

        if recommended is None:
            proposal.unschedulable.append(UnschedulableTask(
                task_id=task.id, task_title=task.title, reason=NO_SUITABLE_TIME,
            ))
            logger.debug(f"Task {task.id} is unschedulable")
            continue

        chosen = suggestions[recommended]
        taken.append(_reserved_span(chosen.slot, rule.buffer_before, rule.buffer_after))
        conflict_count += len(chosen.conflicts)
        proposal.assignments.append(TaskAssignment(
            task_id=task.id,
            task_title=task.title,
            suggestions=suggestions,
            recommended_slot_index=recommended,
            requires_displacement=requires_displacement,
            buffer_before=rule.buffer_before,
            buffer_after=rule.buffer_after,
        ))

    proposal.summary = ProposalSummary(
        total_tasks=len(tasks),
        scheduled=len(proposal.assignments),
        unschedulable=len(proposal.unschedulable),
        conflicts=conflict_count,
        displacements=len(proposal.displacements),
    )

    logger.info(
        f"Created proposal {proposal.id}: {proposal.summary.scheduled} scheduled, "
        f"{proposal.summary.unschedulable} unschedulable, {proposal.summary.displacements} displacements"
    )
    return proposal.model_copy(update={"status": ProposalStatus.PENDING_APPROVAL})
