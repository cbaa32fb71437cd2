"""Tests for task-type rules and protected time."""

from datetime import timedelta

from braindumper.engine.protected import (
    CALL_SLOT_ID,
    call_slot_for,
    can_override_protected,
    expand_protected_slots,
    find_protected_windows,
    protected_slots_for_task,
)
from braindumper.engine.rules import (
    check_slot_against_rule,
    get_effective_rule,
    infer_task_type,
)
from braindumper.models.preferences import (
    ProtectedSlot,
    SchedulingPreferences,
    TaskTypeRule,
    TimeOfDay,
)
from braindumper.models.task import Priority, Task, TaskType
from braindumper.models.time_slot import TimeSlot


class TestInferTaskType:
    """Test keyword-based task type inference."""

    def test_infers_from_keywords(self):
        assert infer_task_type("Call the plumber") == TaskType.CALL
        assert infer_task_type("Weekly sync with design") == TaskType.MEETING
        assert infer_task_type("Debug flaky upload") == TaskType.CODING
        assert infer_task_type("Clear inbox") == TaskType.ADMIN
        assert infer_task_type("Gym session") == TaskType.HEALTH

    def test_unknown_title_is_other(self):
        assert infer_task_type("Water the ferns") == TaskType.OTHER
        assert infer_task_type("") == TaskType.OTHER


class TestEffectiveRule:
    """Test rule precedence: task, then user rule, then default."""

    def test_defaults_for_task_type(self, sample_task_base):
        task = Task(**{**sample_task_base, "task_type": TaskType.CALL, "time_estimate_minutes": None})

        rule = get_effective_rule(task)

        assert rule.preferred_start == "14:00"
        assert rule.duration == 30
        assert (rule.buffer_before, rule.buffer_after) == (15, 15)

    def test_type_inferred_when_missing(self, sample_task_base):
        task = Task(**{**sample_task_base, "task_type": None, "title": "Write design doc"})

        assert get_effective_rule(task).task_type == TaskType.DEEP_WORK

    def test_user_rule_overrides_default(self, sample_task_base):
        preferences = SchedulingPreferences(task_type_rules=[
            TaskTypeRule(task_type=TaskType.OTHER, preferred_start="13:00", preferred_end="15:00",
                         buffer_after=5),
        ])
        task = Task(**sample_task_base)

        rule = get_effective_rule(task, preferences)

        assert (rule.preferred_start, rule.preferred_end) == ("13:00", "15:00")
        assert rule.buffer_after == 5

    def test_disabled_user_rule_is_ignored(self, sample_task_base):
        preferences = SchedulingPreferences(task_type_rules=[
            TaskTypeRule(task_type=TaskType.OTHER, preferred_start="13:00", enabled=False),
        ])

        assert get_effective_rule(Task(**sample_task_base), preferences).preferred_start == "09:00"

    def test_preference_default_buffers_apply(self, sample_task_base):
        preferences = SchedulingPreferences(default_buffer_before=10, default_buffer_after=5)

        rule = get_effective_rule(Task(**sample_task_base), preferences)

        assert (rule.buffer_before, rule.buffer_after) == (10, 5)

    def test_task_buffers_win(self, sample_task_base):
        preferences = SchedulingPreferences(default_buffer_before=10)
        task = Task(**{**sample_task_base, "buffer_before": 0, "buffer_after": 20})

        rule = get_effective_rule(task, preferences)

        assert (rule.buffer_before, rule.buffer_after) == (0, 20)

    def test_time_estimate_wins_over_default_duration(self, sample_task_base):
        task = Task(**{**sample_task_base, "time_estimate_minutes": 45})

        assert get_effective_rule(task).duration == 45


class TestCheckSlotAgainstRule:
    """Test check_slot_against_rule()."""

    def test_matching_slot_is_satisfied(self, at, sample_task):
        rule = get_effective_rule(sample_task)

        check = check_slot_against_rule(TimeSlot(start=at(10), end=at(10, 30)), rule)

        assert check.satisfied
        assert check.partial_score == 100

    def test_weekend_and_evening_violations(self, at, monday, sample_task):
        rule = get_effective_rule(sample_task)
        saturday = monday + timedelta(days=5)

        check = check_slot_against_rule(TimeSlot(start=at(18, day=saturday), end=at(18, 30, day=saturday)), rule)

        assert not check.satisfied
        assert len(check.violations) == 2
        assert check.partial_score == 33


class TestProtectedSlots:
    """Test protected slot expansion and override policy."""

    def test_expands_on_matching_days_only(self, monday):
        lunch = ProtectedSlot(id="lunch", name="Lunch", start_time="12:00", end_time="13:00", days_of_week=[0])

        assert len(expand_protected_slots([lunch], monday)) == 1
        assert expand_protected_slots([lunch], monday + timedelta(days=1)) == []

    def test_overnight_window_reaches_next_day(self, at, monday):
        sleep = ProtectedSlot(id="sleep", name="Sleep", start_time="22:00", end_time="06:00",
                              days_of_week=[0, 1, 2, 3, 4, 5, 6])
        tuesday = monday + timedelta(days=1)

        hits = find_protected_windows(TimeSlot(start=at(5, day=tuesday), end=at(5, 30, day=tuesday)), [sleep])

        assert len(hits) == 1
        assert hits[0].start == at(22)

    def test_disabled_slots_never_apply(self, at):
        lunch = ProtectedSlot(id="lunch", name="Lunch", start_time="12:00", end_time="13:00", enabled=False)

        assert find_protected_windows(TimeSlot(start=at(12), end=at(13)), [lunch]) == []

    def test_only_high_priority_overrides(self, sample_task_base):
        slot = ProtectedSlot(id="focus", name="Focus", start_time="12:00", end_time="13:00",
                             allow_override_for_urgent=True)
        high = Task(**{**sample_task_base, "priority": Priority.HIGH})
        medium = Task(**sample_task_base)

        assert can_override_protected(high, slot)
        assert not can_override_protected(medium, slot)
        assert not can_override_protected(None, slot)

    def test_non_overridable_slot_blocks_everyone(self, sample_task_base):
        slot = ProtectedSlot(id="lunch", name="Lunch", start_time="12:00", end_time="13:00")
        high = Task(**{**sample_task_base, "priority": Priority.HIGH})

        assert not can_override_protected(high, slot)


class TestCallSlot:
    """Test the derived call slot."""

    def test_disabled_by_default(self, preferences):
        assert call_slot_for(preferences) is None

    def test_derived_from_policy(self):
        preferences = SchedulingPreferences(
            keep_slot_free_for_calls=True,
            call_slot_duration=30,
            call_slot_preferred_time=TimeOfDay.MORNING,
        )

        slot = call_slot_for(preferences)

        assert slot.id == CALL_SLOT_ID
        assert (slot.start_time, slot.end_time) == ("10:00", "10:30")
        assert slot.allow_override_for_urgent

    def test_call_tasks_are_not_blocked_by_call_slot(self, sample_task_base):
        preferences = SchedulingPreferences(keep_slot_free_for_calls=True)
        call = Task(**{**sample_task_base, "task_type": TaskType.CALL})
        other = Task(**sample_task_base)

        assert [s.id for s in protected_slots_for_task(preferences, other)] == [CALL_SLOT_ID]
        assert protected_slots_for_task(preferences, call) == []
