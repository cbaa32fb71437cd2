"""Suggestion generation for braindumper.

Enumerates candidate slots for a task from merged availability, scores them
and returns the best ones.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from braindumper.engine.availability import find_free_blocks
from braindumper.engine.conflicts import build_conflicts
from braindumper.engine.protected import (
    can_override_protected,
    find_protected_windows,
    protected_slots_for_task,
)
from braindumper.engine.rules import EffectiveRule, get_effective_rule
from braindumper.engine.scoring import SlotContext, score_slot
from braindumper.engine.timeutils import convert_timezone, ensure_aware, round_to_granularity
from braindumper.models.calendar_event import CalendarEvent
from braindumper.models.constants import DEFAULT_SUGGESTION_COUNT, SLOT_GRANULARITY_MINUTES
from braindumper.models.preferences import ProtectedSlot, SchedulingPreferences
from braindumper.models.suggestion import SchedulingSuggestion
from braindumper.models.task import Task
from braindumper.models.time_slot import AvailabilityWindow, TimeSlot

logger = logging.getLogger(__name__)


class _Candidates:
    """Collects scored candidates for one task."""

    def __init__(
        self,
        task: Task,
        rule: EffectiveRule,
        preferences: Optional[SchedulingPreferences],
        events: Sequence[CalendarEvent],
        protected: Sequence[ProtectedSlot],
        now: datetime,
    ):
        self.task = task
        self.rule = rule
        self.preferences = preferences
        self.events = events
        self.protected = protected
        self.now = now
        self.tz = preferences.timezone if preferences else "UTC"
        self.prefer_contiguous = preferences.prefer_contiguous_blocks if preferences else True
        self.suggestions: List[SchedulingSuggestion] = []
        self.dropped_protected = 0

    def add(
        self,
        slot: TimeSlot,
        block: TimeSlot,
        buffer_before_ok: bool = True,
        buffer_after_ok: bool = True,
        partial_fit: bool = False,
    ) -> None:
        windows = find_protected_windows(slot, self.protected, self.tz)
        if any(not can_override_protected(self.task, w.slot) for w in windows):
            self.dropped_protected += 1
            return

        working_hours = None
        if self.preferences is not None:
            working_hours = self.preferences.working_hours_for(convert_timezone(slot.start, self.tz).weekday())

        conflicts = build_conflicts(
            slot,
            self.events,
            self.protected,
            task=self.task,
            rule=self.rule,
            working_hours=working_hours,
            tz=self.tz,
        )
        ctx = SlotContext(
            block=block,
            now=self.now,
            buffer_before_ok=buffer_before_ok,
            buffer_after_ok=buffer_after_ok,
            prefer_contiguous=self.prefer_contiguous,
            partial_fit=partial_fit,
            tz=self.tz,
        )
        score, factors, reasoning = score_slot(slot, self.task, self.rule, ctx)
        self.suggestions.append(SchedulingSuggestion(
            slot=slot,
            score=score,
            reasoning=reasoning,
            factors=factors,
            conflicts=conflicts,
            partial_fit=partial_fit,
        ))


def _first_start_at_or_after(block: TimeSlot, now: datetime, step: timedelta) -> datetime:
    if block.start >= now:
        return block.start
    start = round_to_granularity(now, int(step.total_seconds() // 60))
    if start < now:
        start = start + step
    return start


def generate_suggestions(
    task: Task,
    availability: Sequence[AvailabilityWindow],
    count: int = DEFAULT_SUGGESTION_COUNT,
    preferences: Optional[SchedulingPreferences] = None,
    events: Sequence[CalendarEvent] = (),
    now: Optional[datetime] = None,
) -> List[SchedulingSuggestion]:
    """Generate scored slot suggestions for a task.

    Free blocks long enough for the task and its buffers are split into
    candidate starts at the slot granularity. Buffers are part of the required
    span but not of the offered slot. When no block is long enough, shorter
    free blocks are offered as lower-scored partial fits.

    Args:
        task: Task to place
        availability: Merged availability windows covering the search horizon
        count: Maximum number of suggestions
        preferences: User preferences (rules, buffers, protected slots)
        events: Calendar events, used to attach overlap conflicts
        now: Current time; candidates never start before it

    Returns:
        Suggestions sorted by score (highest first), ties by earliest start.
        Empty when nothing is free at all.
    """
    if count <= 0:
        return []

    now = ensure_aware(now) if now is not None else datetime.now(timezone.utc)
    rule = get_effective_rule(task, preferences)
    candidates = _Candidates(
        task, rule, preferences, events, protected_slots_for_task(preferences, task), now,
    )

    step = timedelta(minutes=SLOT_GRANULARITY_MINUTES)
    duration = timedelta(minutes=rule.duration)
    before = timedelta(minutes=rule.buffer_before)
    after = timedelta(minutes=rule.buffer_after)
    span = before + duration + after

    blocks = [block for window in availability for block in find_free_blocks(window)]

    for block in blocks:
        start = _first_start_at_or_after(block, now, step)
        while start + span <= block.end:
            task_start = start + before
            candidates.add(TimeSlot(start=task_start, end=task_start + duration), block)
            start = start + step

    if not candidates.suggestions:
        # Nothing fits the full span; offer whatever free time there is
        for block in blocks:
            start = _first_start_at_or_after(block, now, step)
            available = block.end - start
            if available < step:
                continue
            if available >= duration:
                task_start = start + min(before, available - duration)
                task_end = task_start + duration
                candidates.add(
                    TimeSlot(start=task_start, end=task_end),
                    block,
                    buffer_before_ok=(task_start - start) >= before,
                    buffer_after_ok=(block.end - task_end) >= after,
                )
            else:
                candidates.add(
                    TimeSlot(start=start, end=block.end),
                    block,
                    buffer_before_ok=rule.buffer_before == 0,
                    buffer_after_ok=rule.buffer_after == 0,
                    partial_fit=True,
                )

    suggestions = sorted(candidates.suggestions, key=lambda s: (-s.score, s.slot.start))
    logger.debug(
        f"Task {task.id}: {len(blocks)} free blocks, {len(suggestions)} candidates, "
        f"{candidates.dropped_protected} dropped for protected time"
    )
    return suggestions[:count]
