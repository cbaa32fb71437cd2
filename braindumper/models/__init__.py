"""Data models for braindumper."""

from braindumper.models.task import Task, Priority, TaskType, SyncStatus
from braindumper.models.time_slot import TimeSlot, AvailabilityWindow
from braindumper.models.calendar_event import CalendarEvent, EventStatus
from braindumper.models.preferences import (
    SchedulingPreferences,
    WorkingHours,
    TaskTypeRule,
    ProtectedSlot,
    TimeOfDay,
)
from braindumper.models.suggestion import (
    Conflict,
    ConflictKind,
    ConflictSeverity,
    ScoringFactor,
    SchedulingSuggestion,
)
from braindumper.models.proposal import (
    ApprovalState,
    CommitInstruction,
    CommitOperation,
    Displacement,
    DisplacementAction,
    ProposalStatus,
    ProposalSummary,
    ScheduleProposal,
    TaskAssignment,
    TaskDecision,
    UnschedulableTask,
)

__all__ = [
    "Task",
    "Priority",
    "TaskType",
    "SyncStatus",
    "TimeSlot",
    "AvailabilityWindow",
    "CalendarEvent",
    "EventStatus",
    "SchedulingPreferences",
    "WorkingHours",
    "TaskTypeRule",
    "ProtectedSlot",
    "TimeOfDay",
    "Conflict",
    "ConflictKind",
    "ConflictSeverity",
    "ScoringFactor",
    "SchedulingSuggestion",
    "ApprovalState",
    "CommitInstruction",
    "CommitOperation",
    "Displacement",
    "DisplacementAction",
    "ProposalStatus",
    "ProposalSummary",
    "ScheduleProposal",
    "TaskAssignment",
    "TaskDecision",
    "UnschedulableTask",
]
