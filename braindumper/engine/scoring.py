"""Slot scoring for braindumper.

Each candidate slot is scored from weighted factors. Every factor has a
value from 0 to 100 and a human-readable description, so the final score
can always be explained.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Tuple

from braindumper.engine.rules import EffectiveRule, check_slot_against_rule
from braindumper.engine.timeutils import convert_timezone, minutes_between, time_of_day_label
from braindumper.models.constants import (
    PARTIAL_FIT_PENALTY,
    WEIGHT_BUFFER_AVAILABILITY,
    WEIGHT_CONTIGUOUS_TIME,
    WEIGHT_DUE_DATE_PROXIMITY,
    WEIGHT_PRIORITY_ALIGNMENT,
    WEIGHT_TASK_TYPE_PREFERENCE,
    WEIGHT_TIME_OF_DAY,
)
from braindumper.models.suggestion import ScoringFactor
from braindumper.models.task import Priority, Task, TaskType
from braindumper.models.time_slot import TimeSlot

# Part of the day each task type works best in (None = no preference)
IDEAL_TIME_OF_DAY = {
    TaskType.DEEP_WORK: "morning",
    TaskType.CODING: "morning",
    TaskType.CALL: "afternoon",
    TaskType.MEETING: "morning",
    TaskType.PERSONAL: "evening",
    TaskType.ADMIN: "afternoon",
    TaskType.HEALTH: "morning",
    TaskType.OTHER: None,
}


@dataclass
class SlotContext:
    """Facts about a candidate slot that do not live on the slot itself."""
    block: TimeSlot
    now: datetime
    buffer_before_ok: bool = True
    buffer_after_ok: bool = True
    prefer_contiguous: bool = True
    partial_fit: bool = False
    tz: str = "UTC"


def score_task_type_preference(slot: TimeSlot, rule: EffectiveRule) -> ScoringFactor:
    check = check_slot_against_rule(slot, rule)
    if check.satisfied:
        description = f"Matches {rule.task_type.value} preferences ({rule.preferred_start}-{rule.preferred_end})"
    else:
        description = check.violations[0]
    return ScoringFactor(
        name="taskTypePreference",
        weight=WEIGHT_TASK_TYPE_PREFERENCE,
        value=check.partial_score,
        description=description,
    )


def score_due_date_proximity(slot: TimeSlot, task: Task) -> ScoringFactor:
    """Slots finishing well before the due date score highest."""
    if task.due_date is None:
        return ScoringFactor(
            name="dueDateProximity",
            weight=WEIGHT_DUE_DATE_PROXIMITY,
            value=50,
            description="No due date",
        )

    if slot.end > task.due_date:
        return ScoringFactor(
            name="dueDateProximity",
            weight=WEIGHT_DUE_DATE_PROXIMITY,
            value=0,
            description="Finishes after the due date",
        )

    lead_hours = (task.due_date - slot.end) / timedelta(hours=1)
    if lead_hours >= 24:
        value = 100
        description = "Finishes at least a day before the due date"
    else:
        value = 60 + round(40 * lead_hours / 24)
        description = f"Finishes {int(lead_hours)}h before the due date"
    return ScoringFactor(
        name="dueDateProximity",
        weight=WEIGHT_DUE_DATE_PROXIMITY,
        value=value,
        description=description,
    )


def score_buffer_availability(rule: EffectiveRule, ctx: SlotContext) -> ScoringFactor:
    needed = [(rule.buffer_before, ctx.buffer_before_ok), (rule.buffer_after, ctx.buffer_after_ok)]
    needed = [(minutes, ok) for minutes, ok in needed if minutes > 0]
    if not needed:
        value, description = 100, "No buffer needed"
    elif all(ok for _, ok in needed):
        value, description = 100, "Buffer time available"
    elif any(ok for _, ok in needed):
        value, description = 50, "Only part of the buffer time is available"
    else:
        value, description = 0, "No room for buffer time"
    return ScoringFactor(
        name="bufferAvailability",
        weight=WEIGHT_BUFFER_AVAILABILITY,
        value=value,
        description=description,
    )


def score_contiguous_time(slot: TimeSlot, rule: EffectiveRule, ctx: SlotContext) -> ScoringFactor:
    """Prefer slots that keep the rest of the free block in one piece."""
    if not ctx.prefer_contiguous:
        value, description = 100, "Contiguous blocks not required"
    else:
        span_start = slot.start - timedelta(minutes=rule.buffer_before)
        span_end = slot.end + timedelta(minutes=rule.buffer_after)
        if span_start <= ctx.block.start or span_end >= ctx.block.end:
            value = 100
            description = f"Sits at the edge of a {minutes_between(ctx.block.start, ctx.block.end)}-minute free block"
        else:
            value, description = 60, "Splits a free block"
    return ScoringFactor(
        name="contiguousTime",
        weight=WEIGHT_CONTIGUOUS_TIME,
        value=value,
        description=description,
    )


def score_priority_alignment(slot: TimeSlot, task: Task, now: datetime) -> ScoringFactor:
    """High-priority work should happen soon."""
    days_out = max(0, (slot.start - now).days)
    priority = Priority(task.priority)
    if priority == Priority.HIGH:
        value = max(0, 100 - days_out * 20)
        description = "High priority, scheduled soon" if days_out == 0 else f"High priority, {days_out} day(s) out"
    elif priority == Priority.MEDIUM:
        value = max(40, 100 - days_out * 10)
        description = "Medium priority"
    else:
        value = 70
        description = "Low priority, any time works"
    return ScoringFactor(
        name="priorityAlignment",
        weight=WEIGHT_PRIORITY_ALIGNMENT,
        value=value,
        description=description,
    )


def score_time_of_day(slot: TimeSlot, rule: EffectiveRule) -> ScoringFactor:
    label = time_of_day_label(slot.start)
    ideal = IDEAL_TIME_OF_DAY.get(rule.task_type)
    if ideal is None:
        value, description = 70, f"Any time of day suits {rule.task_type.value}"
    elif label == ideal:
        value, description = 100, f"{label.capitalize()} suits {rule.task_type.value}"
    else:
        value, description = 50, f"{ideal.capitalize()} would suit {rule.task_type.value} better"
    return ScoringFactor(
        name="timeOfDay",
        weight=WEIGHT_TIME_OF_DAY,
        value=value,
        description=description,
    )


def calculate_total_score(factors: List[ScoringFactor]) -> int:
    """Weighted average of factor values, 0-100."""
    total_weight = sum(f.weight for f in factors)
    if total_weight == 0:
        return 0
    score = sum(f.weight * f.value for f in factors) / total_weight
    return max(0, min(100, round(score)))


def generate_reasoning(factors: List[ScoringFactor]) -> str:
    """Combine the strongest positive factors and the weakest negative one."""
    weighted = [f for f in factors if f.weight > 0]
    positives = sorted(
        (f for f in weighted if f.value >= 80),
        key=lambda f: f.weight * f.value,
        reverse=True,
    )
    negatives = sorted((f for f in factors if f.value < 50), key=lambda f: f.value)

    parts = [f.description for f in positives[:2]]
    if negatives:
        parts.append(negatives[0].description)
    if not parts:
        return "Available time slot"
    return "; ".join(parts)


def score_slot(
    slot: TimeSlot,
    task: Task,
    rule: EffectiveRule,
    ctx: SlotContext,
) -> Tuple[int, List[ScoringFactor], str]:
    """Score a candidate slot for a task.

    Args:
        slot: Candidate slot (task time only, buffers excluded)
        task: Task being scheduled
        rule: Effective rule for the task
        ctx: Surrounding block, current time and buffer/partial-fit facts

    Returns:
        Tuple of (score, factors, reasoning)
    """
    local_slot = TimeSlot(start=convert_timezone(slot.start, ctx.tz), end=convert_timezone(slot.end, ctx.tz))

    factors = [
        score_task_type_preference(local_slot, rule),
        score_due_date_proximity(slot, task),
        score_buffer_availability(rule, ctx),
        score_contiguous_time(slot, rule, ctx),
        score_priority_alignment(slot, task, ctx.now),
        score_time_of_day(local_slot, rule),
    ]
    score = calculate_total_score(factors)

    if ctx.partial_fit:
        factors.append(ScoringFactor(
            name="durationFit",
            weight=0,
            value=round(100 * slot.duration_minutes / rule.duration) if rule.duration else 0,
            description=f"Slot is shorter than requested ({slot.duration_minutes} of {rule.duration} min)",
        ))
        score = round(score * PARTIAL_FIT_PENALTY)

    return score, factors, generate_reasoning(factors)
