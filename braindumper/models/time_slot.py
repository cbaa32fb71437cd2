"""TimeSlot and AvailabilityWindow data models for braindumper."""

import datetime as dt
from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


def ensure_aware(value: datetime) -> datetime:
    """Return value unchanged if timezone-aware, otherwise tag it as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TimeSlot(BaseModel):
    """A half-open [start, end) interval of time.

    Slots are immutable; consumers build new slots instead of editing them.
    """
    
    start: datetime = Field(..., description="Slot start (inclusive)")
    end: datetime = Field(..., description="Slot end (exclusive)")
    available: bool = Field(True, description="Whether the slot is free")
    calendar_id: Optional[str] = Field(None, description="Calendar of the event occupying this slot")
    event_id: Optional[str] = Field(None, description="Event occupying this slot")

    @field_validator("start", "end")
    @classmethod
    def _validate_aware(cls, v):
        return ensure_aware(v)

    @field_validator("end")
    @classmethod
    def _validate_end_after_start(cls, v, info):
        start = info.data.get("start")
        if start is not None and v <= start:
            raise ValueError("end must be after start")
        return v

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)
    
    class Config:
        """Pydantic configuration."""
        frozen = True


class AvailabilityWindow(BaseModel):
    """Free/busy breakdown of a single day."""
    
    date: dt.date = Field(..., description="Calendar date this window describes")
    slots: List[TimeSlot] = Field(default_factory=list, description="Chronological, non-overlapping slots")
    total_free_minutes: int = Field(0, ge=0, description="Free minutes inside working hours")
    total_busy_minutes: int = Field(0, ge=0, description="Busy minutes inside working hours")
