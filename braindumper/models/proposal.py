"""Schedule proposal, displacement and commit instruction models for braindumper."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from braindumper.models.suggestion import SchedulingSuggestion
from braindumper.models.task import Priority
from braindumper.models.time_slot import TimeSlot


class ProposalStatus(str, Enum):
    """Lifecycle of a proposal."""
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    EXPIRED = "expired"


TERMINAL_STATUSES = frozenset({
    ProposalStatus.CONFIRMED,
    ProposalStatus.REJECTED,
    ProposalStatus.EXPIRED,
})


class DisplacementAction(str, Enum):
    """What happens to a displaced calendar item."""
    MOVE = "move"
    UNSCHEDULE = "unschedule"


class Displacement(BaseModel):
    """A lower-priority owned event that must make room for another task."""
    
    event_id: str = Field(..., description="Calendar event being displaced")
    task_id: Optional[str] = Field(None, description="Task owning the displaced event")
    calendar_id: str = Field(..., description="Calendar holding the displaced event")
    title: str = Field("", description="Title of the displaced event")
    priority: Priority = Field(..., description="Priority of the displaced task")
    original_slot: TimeSlot
    proposed_slot: Optional[TimeSlot] = Field(None, description="Replacement slot (null when unscheduled)")
    action: DisplacementAction
    reason: str
    caused_by_task_id: str = Field(..., description="Task whose placement requires this displacement")
    
    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class TaskAssignment(BaseModel):
    """Suggested placements for one task inside a proposal."""
    
    task_id: str
    task_title: str = ""
    suggestions: List[SchedulingSuggestion] = Field(default_factory=list)
    recommended_slot_index: int = Field(0, ge=0)
    requires_displacement: bool = False
    buffer_before: int = Field(0, ge=0)
    buffer_after: int = Field(0, ge=0)


class UnschedulableTask(BaseModel):
    """A task the proposal could not place, with the reason why."""
    
    task_id: str
    task_title: str = ""
    reason: str


class ProposalSummary(BaseModel):
    """Counts shown to the user when reviewing a proposal."""
    
    total_tasks: int = 0
    scheduled: int = 0
    unschedulable: int = 0
    conflicts: int = 0
    displacements: int = 0


class ScheduleProposal(BaseModel):
    """Time-boxed batch of suggested placements awaiting approval.

    Proposals live only in memory or in transit; they are never the source of
    truth for a task's schedule.
    """
    
    id: str
    created_at: datetime
    expires_at: datetime
    status: ProposalStatus = ProposalStatus.DRAFT
    calendar_id: str = "primary"
    assignments: List[TaskAssignment] = Field(default_factory=list)
    displacements: List[Displacement] = Field(default_factory=list)
    unschedulable: List[UnschedulableTask] = Field(default_factory=list)
    summary: ProposalSummary = Field(default_factory=ProposalSummary)
    
    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class ApprovalState(BaseModel):
    """Per-task review state during one approval session."""
    
    approved: bool = True
    selected_slot_index: int = Field(0, ge=0)
    modified: bool = False


class TaskDecision(BaseModel):
    """A reviewer's decision for one task, as submitted with a confirm request."""
    
    task_id: str
    slot_index: Optional[int] = Field(None, ge=0, description="Chosen suggestion (keeps the current choice when null)")
    confirmed: bool = True


class CommitOperation(str, Enum):
    """Calendar write operations handed to the calendar-write collaborator."""
    CREATE_EVENT = "create_event"
    MOVE_EVENT = "move_event"
    DELETE_EVENT = "delete_event"


class CommitInstruction(BaseModel):
    """One calendar write derived from a confirmed proposal."""
    
    operation: CommitOperation
    calendar_id: str
    task_id: Optional[str] = None
    event_id: Optional[str] = None
    title: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    buffer_before: int = 0
    buffer_after: int = 0
    
    class Config:
        """Pydantic configuration."""
        use_enum_values = True
