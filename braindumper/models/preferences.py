"""User scheduling preference models for braindumper.

Times of day are "HH:mm" strings interpreted in the user's timezone.
Days of the week use Python's numbering (Monday=0 ... Sunday=6).
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from braindumper.models.constants import (
    DEFAULT_TIMEZONE,
    DEFAULT_WORKING_DAYS,
    DEFAULT_WORKING_HOURS_END,
    DEFAULT_WORKING_HOURS_START,
)
from braindumper.models.task import TaskType


class TimeOfDay(str, Enum):
    """Named part of the day (display/derived concern only)."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


def _validate_days(v: List[int]) -> List[int]:
    # Deduplicate but preserve order
    seen = set()
    out: List[int] = []
    for day in v:
        if day < 0 or day > 6:
            raise ValueError("days of week must be between 0 (Monday) and 6 (Sunday)")
        if day not in seen:
            seen.add(day)
            out.append(day)
    return out


class WorkingHours(BaseModel):
    """Working-hour window for a day."""

    start: str = Field(DEFAULT_WORKING_HOURS_START, description="Start of working hours (HH:mm)")
    end: str = Field(DEFAULT_WORKING_HOURS_END, description="End of working hours (HH:mm)")


class TaskTypeRule(BaseModel):
    """Scheduling preferences for one task type."""

    task_type: TaskType
    enabled: bool = True
    preferred_start: str = Field("09:00", description="Start of preferred time range (HH:mm)")
    preferred_end: str = Field("17:00", description="End of preferred time range (HH:mm)")
    preferred_days: List[int] = Field(default_factory=lambda: list(DEFAULT_WORKING_DAYS))
    default_duration: int = Field(60, gt=0, description="Duration used when a task has no estimate")
    buffer_before: int = Field(0, ge=0)
    buffer_after: int = Field(0, ge=0)

    @field_validator("preferred_days")
    @classmethod
    def _validate_preferred_days(cls, v):
        return _validate_days(v)

    class Config:
        use_enum_values = True


class ProtectedSlot(BaseModel):
    """Recurring window the user has marked as off-limits for scheduling."""

    id: str
    name: str
    days_of_week: List[int] = Field(default_factory=lambda: list(DEFAULT_WORKING_DAYS))
    start_time: str = Field(..., description="Start of the protected window (HH:mm)")
    end_time: str = Field(..., description="End of the protected window (HH:mm)")
    enabled: bool = True
    allow_override_for_urgent: bool = Field(
        False, description="Whether high-priority tasks may be placed here"
    )

    @field_validator("days_of_week")
    @classmethod
    def _validate_days_of_week(cls, v):
        return _validate_days(v)


class SchedulingPreferences(BaseModel):
    """Everything the engine needs to know about how a user likes to work."""

    timezone: str = Field(DEFAULT_TIMEZONE, description="IANA timezone for all HH:mm values")
    default_calendar_id: str = Field("primary", description="Calendar new events are written to")
    working_hours: WorkingHours = Field(default_factory=WorkingHours)
    working_days: List[int] = Field(default_factory=lambda: list(DEFAULT_WORKING_DAYS))
    working_hours_by_weekday: Dict[int, WorkingHours] = Field(
        default_factory=dict, description="Per-weekday overrides of working_hours"
    )
    task_type_rules: List[TaskTypeRule] = Field(default_factory=list)
    protected_slots: List[ProtectedSlot] = Field(default_factory=list)
    default_buffer_before: int = Field(0, ge=0)
    default_buffer_after: int = Field(0, ge=0)
    keep_slot_free_for_calls: bool = False
    call_slot_duration: int = Field(60, gt=0)
    call_slot_preferred_time: TimeOfDay = TimeOfDay.AFTERNOON
    prefer_contiguous_blocks: bool = True

    @field_validator("working_days")
    @classmethod
    def _validate_working_days(cls, v):
        return _validate_days(v)

    def working_hours_for(self, weekday: int) -> Optional[WorkingHours]:
        """Working hours for a weekday, or None on a day off."""
        if weekday not in self.working_days:
            return None
        return self.working_hours_by_weekday.get(weekday, self.working_hours)

    class Config:
        use_enum_values = True
