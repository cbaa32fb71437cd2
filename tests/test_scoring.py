"""Tests for slot scoring."""

from datetime import timedelta

from braindumper.engine.rules import get_effective_rule
from braindumper.engine.scoring import (
    SlotContext,
    calculate_total_score,
    generate_reasoning,
    score_due_date_proximity,
    score_slot,
)
from braindumper.models.constants import (
    WEIGHT_BUFFER_AVAILABILITY,
    WEIGHT_CONTIGUOUS_TIME,
    WEIGHT_DUE_DATE_PROXIMITY,
    WEIGHT_PRIORITY_ALIGNMENT,
    WEIGHT_TASK_TYPE_PREFERENCE,
    WEIGHT_TIME_OF_DAY,
)
from braindumper.models.suggestion import ScoringFactor
from braindumper.models.task import Task, TaskType
from braindumper.models.time_slot import TimeSlot


def test_weights_sum_to_one_hundred():
    total = (
        WEIGHT_TASK_TYPE_PREFERENCE + WEIGHT_DUE_DATE_PROXIMITY + WEIGHT_BUFFER_AVAILABILITY
        + WEIGHT_CONTIGUOUS_TIME + WEIGHT_PRIORITY_ALIGNMENT + WEIGHT_TIME_OF_DAY
    )
    assert total == 100


class TestScoreSlot:
    """Test score_slot()."""

    def test_ideal_slot_scores_high_and_explains_itself(self, at, now, sample_task):
        slot = TimeSlot(start=at(9), end=at(9, 30))
        block = TimeSlot(start=at(9), end=at(17))

        score, factors, reasoning = score_slot(slot, sample_task, get_effective_rule(sample_task),
                                               SlotContext(block=block, now=now))

        assert score == 87
        assert [f.name for f in factors] == [
            "taskTypePreference", "dueDateProximity", "bufferAvailability",
            "contiguousTime", "priorityAlignment", "timeOfDay",
        ]
        assert all(f.description for f in factors)
        assert "Matches other preferences" in reasoning

    def test_is_deterministic(self, at, now, sample_task):
        slot = TimeSlot(start=at(11), end=at(11, 30))
        ctx = SlotContext(block=TimeSlot(start=at(9), end=at(17)), now=now)
        rule = get_effective_rule(sample_task)

        assert score_slot(slot, sample_task, rule, ctx) == score_slot(slot, sample_task, rule, ctx)

    def test_splitting_a_block_scores_lower(self, at, now, sample_task):
        block = TimeSlot(start=at(9), end=at(17))
        rule = get_effective_rule(sample_task)

        edge, _, _ = score_slot(TimeSlot(start=at(9), end=at(9, 30)), sample_task, rule,
                                SlotContext(block=block, now=now))
        middle, _, _ = score_slot(TimeSlot(start=at(12), end=at(12, 30)), sample_task, rule,
                                  SlotContext(block=block, now=now))

        assert edge > middle

    def test_partial_fit_is_penalised_and_flagged(self, at, now, sample_task_base):
        task = Task(**{**sample_task_base, "time_estimate_minutes": 60})
        slot = TimeSlot(start=at(12), end=at(12, 30))
        rule = get_effective_rule(task)

        full, _, _ = score_slot(slot, task, rule, SlotContext(block=slot, now=now))
        partial, factors, _ = score_slot(slot, task, rule, SlotContext(block=slot, now=now, partial_fit=True))

        assert partial < full
        fit = next(f for f in factors if f.name == "durationFit")
        assert "shorter than requested" in fit.description

    def test_high_priority_prefers_sooner(self, at, now, high_task):
        rule = get_effective_rule(high_task)
        today = TimeSlot(start=at(9), end=at(10))
        later_day = at(9) + timedelta(days=3)
        later = TimeSlot(start=later_day, end=later_day + timedelta(hours=1))

        soon_score, _, _ = score_slot(today, high_task, rule, SlotContext(block=today, now=now))
        late_score, _, _ = score_slot(later, high_task, rule, SlotContext(block=later, now=now))

        assert soon_score > late_score

    def test_deep_work_prefers_morning(self, at, now, sample_task_base):
        task = Task(**{**sample_task_base, "task_type": TaskType.DEEP_WORK, "time_estimate_minutes": 60})
        rule = get_effective_rule(task)
        morning = TimeSlot(start=at(9), end=at(10))
        afternoon = TimeSlot(start=at(15), end=at(16))

        morning_score, _, _ = score_slot(morning, task, rule, SlotContext(block=morning, now=now))
        afternoon_score, _, _ = score_slot(afternoon, task, rule, SlotContext(block=afternoon, now=now))

        assert morning_score > afternoon_score


class TestDueDateProximity:
    """Test the due date factor."""

    def test_after_due_date_scores_zero(self, at, sample_task_base):
        task = Task(**{**sample_task_base, "due_date": at(10)})

        factor = score_due_date_proximity(TimeSlot(start=at(10), end=at(11)), task)

        assert factor.value == 0

    def test_well_before_due_date_scores_full(self, at, sample_task_base):
        task = Task(**{**sample_task_base, "due_date": at(10) + timedelta(days=2)})

        factor = score_due_date_proximity(TimeSlot(start=at(9), end=at(10)), task)

        assert factor.value == 100


class TestReasoning:
    """Test score aggregation and reasoning text."""

    def test_total_score_is_weighted_average(self):
        factors = [
            ScoringFactor(name="a", weight=75, value=100, description="A"),
            ScoringFactor(name="b", weight=25, value=0, description="B"),
        ]

        assert calculate_total_score(factors) == 75

    def test_no_weight_scores_zero(self):
        assert calculate_total_score([]) == 0

    def test_reasoning_names_strongest_and_weakest(self):
        factors = [
            ScoringFactor(name="a", weight=25, value=100, description="Strong"),
            ScoringFactor(name="b", weight=10, value=90, description="Good"),
            ScoringFactor(name="c", weight=20, value=85, description="Also good"),
            ScoringFactor(name="d", weight=15, value=10, description="Weak"),
        ]

        assert generate_reasoning(factors) == "Strong; Also good; Weak"

    def test_reasoning_fallback(self):
        factors = [ScoringFactor(name="a", weight=10, value=60, description="Meh")]

        assert generate_reasoning(factors) == "Available time slot"
