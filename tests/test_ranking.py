"""Tests for stack ranking (deterministic ordering)."""

from datetime import datetime, timedelta, timezone
import uuid

from braindumper.engine.ranking import stack_rank
from braindumper.models.task import Priority, Task


class TestStackRank:
    """Test stack_rank() ordering rules."""

    def test_priority_comes_first(self, sample_task_base):
        low = Task(**{**sample_task_base, "id": str(uuid.uuid4()), "priority": Priority.LOW})
        high = Task(**{**sample_task_base, "id": str(uuid.uuid4()), "priority": Priority.HIGH})
        medium = Task(**{**sample_task_base, "id": str(uuid.uuid4()), "priority": Priority.MEDIUM})

        ranked = stack_rank([low, medium, high])

        assert [t.id for t in ranked] == [high.id, medium.id, low.id]

    def test_earlier_due_date_first_within_priority(self, sample_task_base, now):
        later = Task(**{**sample_task_base, "id": str(uuid.uuid4()), "due_date": now + timedelta(days=3)})
        sooner = Task(**{**sample_task_base, "id": str(uuid.uuid4()), "due_date": now + timedelta(days=1)})
        no_due = Task(**{**sample_task_base, "id": str(uuid.uuid4()), "due_date": None})

        ranked = stack_rank([no_due, later, sooner])

        assert [t.id for t in ranked] == [sooner.id, later.id, no_due.id]

    def test_older_task_first_when_otherwise_equal(self, sample_task_base):
        older = Task(**{**sample_task_base, "id": "b",
                        "created_at": datetime(2025, 5, 1, tzinfo=timezone.utc)})
        newer = Task(**{**sample_task_base, "id": "a",
                        "created_at": datetime(2025, 5, 2, tzinfo=timezone.utc)})

        assert [t.id for t in stack_rank([newer, older])] == ["b", "a"]

    def test_id_breaks_remaining_ties(self, sample_task_base):
        tasks = [Task(**{**sample_task_base, "id": task_id}) for task_id in ("c", "a", "b")]

        assert [t.id for t in stack_rank(tasks)] == ["a", "b", "c"]

    def test_is_deterministic(self, sample_task_base):
        tasks = [
            Task(**{**sample_task_base, "id": str(uuid.uuid4()), "priority": p})
            for p in (Priority.LOW, Priority.HIGH, Priority.MEDIUM, Priority.HIGH)
        ]

        assert [t.id for t in stack_rank(tasks)] == [t.id for t in stack_rank(list(reversed(tasks)))]
