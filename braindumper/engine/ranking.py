"""Stack ranking logic for braindumper.

Sorts tasks by priority, then by due date urgency within each priority.
This produces a deterministic ordering for building proposals.
"""

from typing import List

from braindumper.engine.conflicts import priority_weight
from braindumper.models.task import Task


def stack_rank(tasks: List[Task]) -> List[Task]:
    """Stack-rank tasks by priority and due date urgency.

    Tasks are sorted:
    1. By priority (high first)
    2. Within priority, by due date (earliest first)
    3. Tasks without due dates go after those with due dates
    4. Then by creation time (oldest first), then by id

    This function is deterministic - same inputs always produce same outputs.

    Args:
        tasks: List of tasks to rank

    Returns:
        List of tasks sorted by priority (highest first)
    """
    return sorted(
        tasks,
        key=lambda t: (
            -priority_weight(t.priority),
            _due_date_sort_key(t),
            _created_sort_key(t),
            t.id,
        ),
    )


def _due_date_sort_key(task: Task) -> tuple:
    """Get sort key for due date urgency.

    Args:
        task: Task to get sort key for

    Returns:
        Tuple for sorting: (has_due_date: 0 or 1, due timestamp or max)
    """
    if task.due_date:
        return (0, task.due_date.timestamp())
    else:
        return (1, float('inf'))


def _created_sort_key(task: Task) -> float:
    if task.created_at:
        return task.created_at.timestamp()
    return float('inf')
