"""Scheduling suggestion and conflict models for braindumper."""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from braindumper.models.time_slot import TimeSlot


class ConflictKind(str, Enum):
    """What a candidate slot collides with."""
    OVERLAP = "overlap"
    OUTSIDE_WORKING_HOURS = "outside_working_hours"
    PROTECTED_SLOT = "protected_slot"
    RULE_VIOLATION = "rule_violation"


class ConflictSeverity(str, Enum):
    """Conflict severity. Only ERROR blocks direct placement."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Conflict(BaseModel):
    """Advisory description of a problem with a candidate slot."""
    
    kind: ConflictKind = Field(..., description="Type of conflict")
    severity: ConflictSeverity = Field(..., description="Conflict severity")
    description: str = Field(..., description="Human-readable description")
    resolution: Optional[str] = Field(None, description="Suggested resolution")
    event_id: Optional[str] = Field(None, description="Conflicting calendar event, if any")
    
    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class ScoringFactor(BaseModel):
    """One named contribution to a suggestion's score."""
    
    name: str
    weight: int = Field(..., ge=0)
    value: int = Field(..., ge=0, le=100)
    description: str


class SchedulingSuggestion(BaseModel):
    """One scored candidate slot for a task."""
    
    slot: TimeSlot
    score: int = Field(..., ge=0, le=100)
    reasoning: str
    factors: List[ScoringFactor] = Field(default_factory=list)
    conflicts: List[Conflict] = Field(default_factory=list)
    partial_fit: bool = Field(False, description="Slot is shorter than the requested duration")

    @property
    def has_blocking_conflict(self) -> bool:
        return any(c.severity == ConflictSeverity.ERROR for c in self.conflicts)
