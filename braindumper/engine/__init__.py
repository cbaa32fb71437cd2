"""Scheduling engine for braindumper."""

from braindumper.engine.approval import ApprovalWorkflow
from braindumper.engine.availability import (
    build_availability,
    compute_availability,
    compute_calendar_availability,
    find_free_blocks,
    mask_slots,
    merge_availability_windows,
)
from braindumper.engine.conflicts import (
    build_conflicts,
    can_displace_by_priority,
    compare_priorities,
    find_overlapping_events,
    has_blocking_conflict,
    priority_weight,
)
from braindumper.engine.displacement import DisplacementPlan, resolve_displacements
from braindumper.engine.errors import (
    CalendarWriteError,
    ConflictingSelections,
    DateMismatch,
    DisplacementsNotApproved,
    InvalidTimeFormat,
    NothingApproved,
    ProposalAlreadyFinalized,
    ProposalError,
    ProposalExpired,
    SchedulingError,
    SlotAlreadyTaken,
)
from braindumper.engine.proposal import build_proposal
from braindumper.engine.ranking import stack_rank
from braindumper.engine.rules import get_effective_rule, infer_task_type
from braindumper.engine.service import SchedulingService
from braindumper.engine.suggestions import generate_suggestions

__all__ = [
    "ApprovalWorkflow",
    "build_availability",
    "compute_availability",
    "compute_calendar_availability",
    "find_free_blocks",
    "mask_slots",
    "merge_availability_windows",
    "build_conflicts",
    "can_displace_by_priority",
    "compare_priorities",
    "find_overlapping_events",
    "has_blocking_conflict",
    "priority_weight",
    "DisplacementPlan",
    "resolve_displacements",
    "CalendarWriteError",
    "ConflictingSelections",
    "DateMismatch",
    "DisplacementsNotApproved",
    "InvalidTimeFormat",
    "NothingApproved",
    "ProposalAlreadyFinalized",
    "ProposalError",
    "ProposalExpired",
    "SchedulingError",
    "SlotAlreadyTaken",
    "build_proposal",
    "stack_rank",
    "get_effective_rule",
    "infer_task_type",
    "SchedulingService",
    "generate_suggestions",
]
