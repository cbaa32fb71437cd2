"""Approval workflow for schedule proposals.

Tracks the reviewer's per-task decisions and the single displacement flag,
validates them, and turns a confirmed proposal into calendar commit
instructions. Performs no I/O: instructions are handed to a calendar writer
by the caller.

State machine:
    DRAFT -> PENDING_APPROVAL -> CONFIRMED | REJECTED | EXPIRED
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from braindumper.engine.errors import (
    ConflictingSelections,
    DisplacementsNotApproved,
    NothingApproved,
    ProposalAlreadyFinalized,
    ProposalExpired,
)
from braindumper.engine.timeutils import ensure_aware, ranges_overlap
from braindumper.models.proposal import (
    TERMINAL_STATUSES,
    ApprovalState,
    CommitInstruction,
    CommitOperation,
    DisplacementAction,
    ProposalStatus,
    ScheduleProposal,
    TaskAssignment,
    TaskDecision,
)

logger = logging.getLogger(__name__)


class ApprovalWorkflow:
    """Review session for one proposal.

    Every assignment starts approved, with its recommended slot selected.
    A proposal is single-use: once it reaches a terminal state it cannot be
    changed or confirmed again.
    """

    def __init__(self, proposal: ScheduleProposal):
        self._proposal = proposal
        self._assignments: Dict[str, TaskAssignment] = {a.task_id: a for a in proposal.assignments}
        self._approvals: Dict[str, ApprovalState] = {
            a.task_id: ApprovalState(selected_slot_index=a.recommended_slot_index)
            for a in proposal.assignments
        }
        self.displacements_approved = False

    @property
    def proposal(self) -> ScheduleProposal:
        return self._proposal

    @property
    def status(self) -> ProposalStatus:
        return ProposalStatus(self._proposal.status)

    @property
    def approvals(self) -> Dict[str, ApprovalState]:
        return dict(self._approvals)

    @property
    def approved_task_ids(self) -> List[str]:
        return [a.task_id for a in self._proposal.assignments if self._approvals[a.task_id].approved]

    def _set_status(self, status: ProposalStatus) -> None:
        self._proposal = self._proposal.model_copy(update={"status": status})

    def _ensure_open(self) -> None:
        if self.status == ProposalStatus.EXPIRED:
            raise ProposalExpired(
                f"Proposal {self._proposal.id} has expired", proposal_id=self._proposal.id,
            )
        if self.status in TERMINAL_STATUSES:
            raise ProposalAlreadyFinalized(
                f"Proposal {self._proposal.id} is already {self.status.value}",
                proposal_id=self._proposal.id,
            )

    def set_approval(
        self,
        task_id: str,
        approved: Optional[bool] = None,
        selected_slot_index: Optional[int] = None,
    ) -> None:
        """Merge a decision into a task's approval state.

        Unknown task ids are ignored: the reviewer may hold stale references.

        Raises:
            ProposalAlreadyFinalized: If the proposal is in a terminal state
            ValueError: If the slot index does not name one of the task's suggestions
        """
        self._ensure_open()
        assignment = self._assignments.get(task_id)
        if assignment is None:
            logger.warning(f"Ignoring approval for unknown task {task_id} in proposal {self._proposal.id}")
            return

        update = {"modified": True}
        if approved is not None:
            update["approved"] = approved
        if selected_slot_index is not None:
            self._check_slot_index(assignment, selected_slot_index)
            update["selected_slot_index"] = selected_slot_index
        self._approvals[task_id] = self._approvals[task_id].model_copy(update=update)

    @staticmethod
    def _check_slot_index(assignment: TaskAssignment, index: int) -> None:
        if not 0 <= index < len(assignment.suggestions):
            raise ValueError(
                f"Slot index {index} out of range for task {assignment.task_id} "
                f"({len(assignment.suggestions)} suggestions)"
            )

    def approve_all(self) -> None:
        self._set_all(True)

    def reject_all(self) -> None:
        self._set_all(False)

    def _set_all(self, approved: bool) -> None:
        self._ensure_open()
        for task_id, state in self._approvals.items():
            self._approvals[task_id] = state.model_copy(update={"approved": approved})

    def set_displacements_approved(self, approved: bool) -> None:
        """Approve or decline the whole displacement set at once."""
        self._ensure_open()
        self.displacements_approved = approved

    def apply_decisions(
        self,
        decisions: Iterable[TaskDecision],
        displacements_approved: bool = False,
    ) -> None:
        """Apply a submitted confirm payload. Tasks without a decision keep their state.

        Every slot index is checked before any decision is applied, so a bad
        payload leaves the session unchanged.
        """
        self._ensure_open()
        decisions = list(decisions)
        for decision in decisions:
            assignment = self._assignments.get(decision.task_id)
            if assignment is not None and decision.slot_index is not None:
                self._check_slot_index(assignment, decision.slot_index)
        for decision in decisions:
            self.set_approval(
                decision.task_id,
                approved=decision.confirmed,
                selected_slot_index=decision.slot_index,
            )
        self.set_displacements_approved(displacements_approved)

    @property
    def can_confirm(self) -> bool:
        if self.status in TERMINAL_STATUSES:
            return False
        if not self.approved_task_ids:
            return False
        return not self._proposal.displacements or self.displacements_approved

    def expire_if_due(self, now: Optional[datetime] = None) -> bool:
        """Move the proposal to EXPIRED if its expiry time has passed."""
        if self.status in TERMINAL_STATUSES:
            return self.status == ProposalStatus.EXPIRED
        now = ensure_aware(now) if now is not None else datetime.now(timezone.utc)
        if now > self._proposal.expires_at:
            self._set_status(ProposalStatus.EXPIRED)
            logger.info(f"Proposal {self._proposal.id} expired")
            return True
        return False

    def reject(self) -> None:
        self._ensure_open()
        self._set_status(ProposalStatus.REJECTED)
        logger.info(f"Proposal {self._proposal.id} rejected")

    def confirm(self, now: Optional[datetime] = None) -> List[CommitInstruction]:
        """Confirm the proposal and produce the calendar commit instructions.

        Displacements caused by approved tasks come first (in resolver order),
        then one create_event per approved task at its selected slot, in
        proposal order. Rejected tasks produce nothing.

        Args:
            now: Current time (used for the expiry check)

        Returns:
            Ordered list of CommitInstruction

        Raises:
            ProposalExpired: If the proposal has expired
            ProposalAlreadyFinalized: If the proposal was already confirmed or rejected
            NothingApproved: If no task is approved
            DisplacementsNotApproved: If displacements exist and were not approved
            ConflictingSelections: If the selected slots would double-book the calendar
        """
        self._ensure_open()
        if self.expire_if_due(now):
            raise ProposalExpired(
                f"Proposal {self._proposal.id} expired at {self._proposal.expires_at.isoformat()}",
                proposal_id=self._proposal.id,
            )

        approved_ids = self.approved_task_ids
        if not approved_ids:
            raise NothingApproved(
                f"Proposal {self._proposal.id} has no approved tasks", proposal_id=self._proposal.id,
            )
        if self._proposal.displacements and not self.displacements_approved:
            raise DisplacementsNotApproved(
                f"Proposal {self._proposal.id} requires approving {len(self._proposal.displacements)} displacements",
                proposal_id=self._proposal.id,
            )
        self._check_consistency(set(approved_ids))

        instructions = self._build_instructions(set(approved_ids))
        self._set_status(ProposalStatus.CONFIRMED)
        logger.info(
            f"Confirmed proposal {self._proposal.id}: {len(approved_ids)} tasks, "
            f"{len(instructions)} calendar operations"
        )
        return instructions

    def _check_consistency(self, approved_ids: set) -> None:
        """Reject selections that overlap each other or events left in place.

        Moves caused by approved tasks occupy their new slot. Events whose
        displacement is skipped because the causing task was rejected keep
        their original slot.
        """
        occupied: List[Tuple[str, datetime, datetime]] = []
        for displacement in self._proposal.displacements:
            if displacement.caused_by_task_id not in approved_ids:
                slot = displacement.original_slot
                occupied.append((f"event '{displacement.title}'", slot.start, slot.end))
            elif DisplacementAction(displacement.action) == DisplacementAction.MOVE:
                slot = displacement.proposed_slot
                occupied.append((f"moved event '{displacement.title}'", slot.start, slot.end))

        for assignment in self._proposal.assignments:
            if assignment.task_id not in approved_ids:
                continue
            slot = assignment.suggestions[self._approvals[assignment.task_id].selected_slot_index].slot
            start = slot.start - timedelta(minutes=assignment.buffer_before)
            end = slot.end + timedelta(minutes=assignment.buffer_after)
            for label, other_start, other_end in occupied:
                if ranges_overlap(start, end, other_start, other_end):
                    raise ConflictingSelections(
                        f"Task {assignment.task_id} at {slot.start.isoformat()} overlaps {label}",
                        proposal_id=self._proposal.id,
                    )
            occupied.append((f"task '{assignment.task_title or assignment.task_id}'", start, end))

    def _build_instructions(self, approved_ids: set) -> List[CommitInstruction]:
        instructions: List[CommitInstruction] = []

        for displacement in self._proposal.displacements:
            if displacement.caused_by_task_id not in approved_ids:
                continue
            if DisplacementAction(displacement.action) == DisplacementAction.MOVE:
                instructions.append(CommitInstruction(
                    operation=CommitOperation.MOVE_EVENT,
                    calendar_id=displacement.calendar_id,
                    task_id=displacement.task_id,
                    event_id=displacement.event_id,
                    title=displacement.title,
                    start=displacement.proposed_slot.start,
                    end=displacement.proposed_slot.end,
                ))
            else:
                instructions.append(CommitInstruction(
                    operation=CommitOperation.DELETE_EVENT,
                    calendar_id=displacement.calendar_id,
                    task_id=displacement.task_id,
                    event_id=displacement.event_id,
                    title=displacement.title,
                ))

        for assignment in self._proposal.assignments:
            if assignment.task_id not in approved_ids:
                continue
            state = self._approvals[assignment.task_id]
            slot = assignment.suggestions[state.selected_slot_index].slot
            instructions.append(CommitInstruction(
                operation=CommitOperation.CREATE_EVENT,
                calendar_id=self._proposal.calendar_id,
                task_id=assignment.task_id,
                title=assignment.task_title,
                start=slot.start,
                end=slot.end,
                buffer_before=assignment.buffer_before,
                buffer_after=assignment.buffer_after,
            ))

        return instructions
