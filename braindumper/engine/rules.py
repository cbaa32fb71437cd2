"""Task-type scheduling rules for braindumper.

Provides the default rule for every task type, merges user rules over those
defaults, and infers a task type from the title when none is set.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from braindumper.engine.timeutils import parse_time_string
from braindumper.models.constants import DEFAULT_DURATION_MINUTES
from braindumper.models.preferences import SchedulingPreferences, TaskTypeRule
from braindumper.models.task import Task, TaskType
from braindumper.models.time_slot import TimeSlot

WEEKDAYS = (0, 1, 2, 3, 4)
ALL_DAYS = (0, 1, 2, 3, 4, 5, 6)

DEFAULT_TASK_TYPE_RULES: Dict[TaskType, TaskTypeRule] = {
    TaskType.DEEP_WORK: TaskTypeRule(
        task_type=TaskType.DEEP_WORK, preferred_start="09:00", preferred_end="12:00",
        preferred_days=list(WEEKDAYS), default_duration=120, buffer_after=10,
    ),
    TaskType.CODING: TaskTypeRule(
        task_type=TaskType.CODING, preferred_start="09:00", preferred_end="12:00",
        preferred_days=list(WEEKDAYS), default_duration=120, buffer_after=10,
    ),
    TaskType.CALL: TaskTypeRule(
        task_type=TaskType.CALL, preferred_start="14:00", preferred_end="17:00",
        preferred_days=list(WEEKDAYS), default_duration=30, buffer_before=15, buffer_after=15,
    ),
    TaskType.MEETING: TaskTypeRule(
        task_type=TaskType.MEETING, preferred_start="10:00", preferred_end="16:00",
        preferred_days=list(WEEKDAYS), default_duration=60, buffer_before=10, buffer_after=5,
    ),
    TaskType.PERSONAL: TaskTypeRule(
        task_type=TaskType.PERSONAL, preferred_start="08:00", preferred_end="20:00",
        preferred_days=list(ALL_DAYS), default_duration=60,
    ),
    TaskType.ADMIN: TaskTypeRule(
        task_type=TaskType.ADMIN, preferred_start="14:00", preferred_end="17:00",
        preferred_days=list(WEEKDAYS), default_duration=30,
    ),
    TaskType.HEALTH: TaskTypeRule(
        task_type=TaskType.HEALTH, preferred_start="07:00", preferred_end="09:00",
        preferred_days=[0, 1, 2, 3, 4, 5], default_duration=60, buffer_after=15,
    ),
    TaskType.OTHER: TaskTypeRule(
        task_type=TaskType.OTHER, preferred_start="09:00", preferred_end="17:00",
        preferred_days=list(WEEKDAYS), default_duration=60,
    ),
}

# Checked in order; first match wins
_TASK_TYPE_KEYWORDS: List[tuple] = [
    (TaskType.CALL, ("call", "phone", "zoom")),
    (TaskType.MEETING, ("meeting", "sync", "standup", "1:1", "one-on-one")),
    (TaskType.CODING, ("code", "coding", "develop", "implement", "fix bug", "debug")),
    (TaskType.DEEP_WORK, ("write", "design", "research", "plan", "strategy")),
    (TaskType.ADMIN, ("email", "inbox", "expense", "report", "paperwork")),
    (TaskType.HEALTH, ("exercise", "gym", "workout", "doctor", "dentist")),
    (TaskType.PERSONAL, ("personal", "family", "errand", "shopping")),
]

_DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


@dataclass
class RuleCheck:
    """Result of checking a slot against a task-type rule."""
    satisfied: bool
    violations: List[str] = field(default_factory=list)
    partial_score: int = 100


@dataclass
class EffectiveRule:
    """Rule after merging defaults, user rules and task overrides."""
    task_type: TaskType
    preferred_start: str
    preferred_end: str
    preferred_days: List[int]
    duration: int
    buffer_before: int
    buffer_after: int


def infer_task_type(title: str) -> TaskType:
    """Infer a task type from keywords in the title."""
    content = (title or "").lower()
    for task_type, keywords in _TASK_TYPE_KEYWORDS:
        if any(k in content for k in keywords):
            return task_type
    return TaskType.OTHER


def get_task_type(task: Task) -> TaskType:
    """Explicit task type, or the one inferred from the title."""
    if task.task_type:
        return TaskType(task.task_type)
    return infer_task_type(task.title)


def find_user_rule(task_type: TaskType, rules: Sequence[TaskTypeRule]) -> Optional[TaskTypeRule]:
    for rule in rules:
        if TaskType(rule.task_type) == task_type and rule.enabled:
            return rule
    return None


def get_effective_rule(task: Task, preferences: Optional[SchedulingPreferences] = None) -> EffectiveRule:
    """Resolve the rule that applies to a task.
    
    Precedence: task fields, then the user's rule for the task type, then the
    built-in default for the task type. Buffers fall back to the preference
    defaults when neither the task nor a user rule sets them.
    
    Args:
        task: Task being scheduled
        preferences: User preferences (None means built-in defaults only)
        
    Returns:
        EffectiveRule for the task
    """
    task_type = get_task_type(task)
    user_rule = find_user_rule(task_type, preferences.task_type_rules) if preferences else None
    base = user_rule or DEFAULT_TASK_TYPE_RULES.get(task_type, DEFAULT_TASK_TYPE_RULES[TaskType.OTHER])

    buffer_before = base.buffer_before
    buffer_after = base.buffer_after
    if user_rule is None and preferences is not None:
        buffer_before = max(buffer_before, preferences.default_buffer_before)
        buffer_after = max(buffer_after, preferences.default_buffer_after)
    if task.buffer_before is not None:
        buffer_before = task.buffer_before
    if task.buffer_after is not None:
        buffer_after = task.buffer_after

    duration = task.time_estimate_minutes or base.default_duration or DEFAULT_DURATION_MINUTES

    return EffectiveRule(
        task_type=task_type,
        preferred_start=base.preferred_start,
        preferred_end=base.preferred_end,
        preferred_days=list(base.preferred_days),
        duration=duration,
        buffer_before=buffer_before,
        buffer_after=buffer_after,
    )


def _minutes_of_day(time_str: str) -> int:
    hours, minutes = parse_time_string(time_str)
    return hours * 60 + minutes


def _format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def slot_in_preferred_range(slot: TimeSlot, rule: EffectiveRule) -> bool:
    """True if the slot lies fully inside the rule's preferred hours."""
    start_min = slot.start.hour * 60 + slot.start.minute
    end_min = start_min + slot.duration_minutes
    return start_min >= _minutes_of_day(rule.preferred_start) and end_min <= _minutes_of_day(rule.preferred_end)


def slot_on_preferred_day(slot: TimeSlot, rule: EffectiveRule) -> bool:
    return not rule.preferred_days or slot.start.weekday() in rule.preferred_days


def check_slot_against_rule(slot: TimeSlot, rule: EffectiveRule) -> RuleCheck:
    """Check day, time range and duration of a slot against a rule."""
    violations: List[str] = []
    passed = 0

    if slot_on_preferred_day(slot, rule):
        passed += 1
    else:
        violations.append(f"{_DAY_NAMES[slot.start.weekday()]} is not a preferred day for {rule.task_type.value}")

    if slot_in_preferred_range(slot, rule):
        passed += 1
    else:
        start_min = slot.start.hour * 60 + slot.start.minute
        violations.append(
            f"Slot ({_format_minutes(start_min)}-{_format_minutes(start_min + slot.duration_minutes)}) "
            f"is outside preferred time range ({rule.preferred_start}-{rule.preferred_end})"
        )

    if slot.duration_minutes >= rule.duration:
        passed += 1
    else:
        violations.append(
            f"Slot duration ({slot.duration_minutes} min) is less than required ({rule.duration} min)"
        )

    return RuleCheck(
        satisfied=not violations,
        violations=violations,
        partial_score=round(passed / 3 * 100),
    )
