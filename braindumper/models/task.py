"""Task data model for braindumper."""

from datetime import datetime
from typing import Optional
from enum import Enum
from pydantic import BaseModel, Field, field_validator

from braindumper.models.time_slot import ensure_aware


class Priority(str, Enum):
    """Task priority enumeration."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TaskType(str, Enum):
    """Kind of work a task represents, used to pick scheduling rules."""
    DEEP_WORK = "deep_work"
    CODING = "coding"
    CALL = "call"
    MEETING = "meeting"
    PERSONAL = "personal"
    ADMIN = "admin"
    HEALTH = "health"
    OTHER = "other"


class SyncStatus(str, Enum):
    """Calendar sync state of a scheduled task."""
    PENDING = "pending"
    SYNCED = "synced"
    ERROR = "error"
    ORPHANED = "orphaned"  # Calendar event was removed outside braindumper


class Task(BaseModel):
    """Task as seen by the scheduling engine.

    Tasks are owned by an external store. The engine only reads them and
    proposes changes; it never mutates a Task.
    """
    
    id: str = Field(..., description="Unique task identifier")
    title: str = Field("", description="Task title (used for task type inference and event titles)")
    priority: Priority = Field(Priority.MEDIUM, description="Task priority")
    time_estimate_minutes: Optional[int] = Field(None, gt=0, description="Estimated duration in minutes")
    task_type: Optional[TaskType] = Field(None, description="Task type (inferred from title when missing)")
    due_date: Optional[datetime] = Field(None, description="Task due date")
    created_at: Optional[datetime] = Field(None, description="Task creation timestamp")
    buffer_before: Optional[int] = Field(None, ge=0, description="Buffer minutes before the task (overrides rules)")
    buffer_after: Optional[int] = Field(None, ge=0, description="Buffer minutes after the task (overrides rules)")
    scheduled_start: Optional[datetime] = Field(None, description="Start of the current calendar placement")
    scheduled_end: Optional[datetime] = Field(None, description="End of the current calendar placement")
    calendar_event_id: Optional[str] = Field(None, description="ID of the calendar event backing this task")
    calendar_id: Optional[str] = Field(None, description="Calendar holding the backing event")
    sync_status: Optional[SyncStatus] = Field(None, description="Calendar sync status")

    @field_validator("due_date", "created_at", "scheduled_start", "scheduled_end")
    @classmethod
    def _validate_aware(cls, v):
        """Naive timestamps are taken as UTC."""
        return ensure_aware(v) if v is not None else v
    
    class Config:
        """Pydantic configuration."""
        use_enum_values = True
