"""Pytest fixtures and configuration for braindumper tests."""

import pytest
import uuid
from datetime import date, datetime, timezone
from fastapi.testclient import TestClient

from braindumper.models.calendar_event import CalendarEvent
from braindumper.models.preferences import SchedulingPreferences
from braindumper.models.task import Task, Priority, TaskType


# 2025-06-02 is a Monday; engine tests run against this fixed week
MONDAY = date(2025, 6, 2)


@pytest.fixture
def monday():
    """The Monday all engine tests are scheduled around."""
    return MONDAY


@pytest.fixture
def now():
    """Current time for engine tests: the start of MONDAY (UTC)."""
    return datetime(2025, 6, 2, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def at():
    """Build an aware UTC timestamp on MONDAY (or another day)."""
    def _at(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
        return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)
    return _at


@pytest.fixture
def sample_task_base():
    """Base task data for creating test tasks.

    Returns a dict with default task attributes that can be overridden.
    """
    return {
        "id": str(uuid.uuid4()),
        "title": "Test Task",
        "priority": Priority.MEDIUM,
        "time_estimate_minutes": 30,
        "task_type": TaskType.OTHER,
        "due_date": None,
        "created_at": datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc),
    }


@pytest.fixture
def sample_task(sample_task_base):
    """Create a sample Task object for testing."""
    return Task(**sample_task_base)


@pytest.fixture
def high_task(sample_task_base):
    """Create a high-priority one-hour task."""
    return Task(**{**sample_task_base, "id": "high-task", "title": "Ship release",
                   "priority": Priority.HIGH, "time_estimate_minutes": 60})


@pytest.fixture
def make_event():
    """Factory for calendar events.

    External by default; pass task_id/task_priority to make a braindumper-owned event.
    """
    def _make_event(start: datetime, end: datetime, **overrides) -> CalendarEvent:
        data = {
            "id": overrides.pop("id", str(uuid.uuid4())),
            "calendar_id": "primary",
            "title": "Existing Event",
            "start": start,
            "end": end,
        }
        data.update(overrides)
        return CalendarEvent(**data)
    return _make_event


@pytest.fixture
def preferences():
    """Default preferences: UTC, 09:00-17:00, Monday to Friday, no buffers."""
    return SchedulingPreferences()


@pytest.fixture
def test_client():
    """Create a FastAPI test client with an empty proposal store."""
    from braindumper.api.app import app, proposals_store

    proposals_store.clear()
    with TestClient(app) as client:
        yield client
    proposals_store.clear()
