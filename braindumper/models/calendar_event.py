"""CalendarEvent data model for braindumper."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from braindumper.models.task import Priority, TaskType
from braindumper.models.time_slot import TimeSlot, ensure_aware


class EventStatus(str, Enum):
    """Calendar event status enumeration."""
    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    CANCELLED = "cancelled"


class CalendarEvent(BaseModel):
    """An event read from one of the user's connected calendars.

    Events created by braindumper carry the owning task's id, priority and
    type. Only those events may ever be displaced; every other event is an
    immovable constraint.
    """
    
    id: str = Field(..., description="Calendar event ID")
    calendar_id: str = Field("primary", description="Calendar the event belongs to")
    title: str = Field("Untitled Event", description="Event summary")
    start: datetime = Field(..., description="Event start")
    end: datetime = Field(..., description="Event end")
    all_day: bool = Field(False, description="Whether this is an all-day event")
    status: EventStatus = Field(EventStatus.CONFIRMED, description="Event status")
    task_id: Optional[str] = Field(None, description="Owning braindumper task (null for external events)")
    task_priority: Optional[Priority] = Field(None, description="Priority of the owning task")
    task_type: Optional[TaskType] = Field(None, description="Type of the owning task")

    @field_validator("start", "end")
    @classmethod
    def _validate_aware(cls, v):
        return ensure_aware(v)

    @property
    def is_owned(self) -> bool:
        """True if braindumper created this event for a task."""
        return self.task_id is not None

    @property
    def is_cancelled(self) -> bool:
        return self.status == EventStatus.CANCELLED

    def as_slot(self) -> TimeSlot:
        return TimeSlot(
            start=self.start,
            end=self.end,
            available=False,
            calendar_id=self.calendar_id,
            event_id=self.id,
        )
    
    class Config:
        """Pydantic configuration."""
        use_enum_values = True
