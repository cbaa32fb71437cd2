"""FastAPI web application for braindumper."""

import os
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from braindumper.engine.approval import ApprovalWorkflow
from braindumper.engine.availability import build_availability
from braindumper.engine.errors import (
    ConflictingSelections,
    DateMismatch,
    DisplacementsNotApproved,
    InvalidTimeFormat,
    NothingApproved,
    ProposalAlreadyFinalized,
    ProposalExpired,
)
from braindumper.engine.proposal import build_proposal
from braindumper.engine.suggestions import generate_suggestions
from braindumper.engine.timeutils import convert_timezone, ensure_aware
from braindumper.models.calendar_event import CalendarEvent
from braindumper.models.constants import (
    DEFAULT_SEARCH_HORIZON_DAYS,
    DEFAULT_SUGGESTION_COUNT,
    DEFAULT_TIMEZONE,
    PROPOSAL_SUGGESTIONS_PER_TASK,
    PROPOSAL_TTL_MINUTES,
)
from braindumper.models.preferences import SchedulingPreferences
from braindumper.models.proposal import (
    ApprovalState,
    CommitInstruction,
    ProposalStatus,
    ScheduleProposal,
    TaskDecision,
)
from braindumper.models.suggestion import SchedulingSuggestion
from braindumper.models.task import Task
from braindumper.models.time_slot import AvailabilityWindow

load_dotenv()

PROPOSAL_TTL = int(os.getenv("BRAINDUMPER_PROPOSAL_TTL_MINUTES", str(PROPOSAL_TTL_MINUTES)))
DEFAULT_TZ = os.getenv("BRAINDUMPER_DEFAULT_TIMEZONE", DEFAULT_TIMEZONE)
SUGGESTION_COUNT = int(os.getenv("BRAINDUMPER_SUGGESTION_COUNT", str(DEFAULT_SUGGESTION_COUNT)))
PROPOSAL_RETENTION = int(os.getenv("BRAINDUMPER_PROPOSAL_RETENTION_MINUTES", "1440"))

# Initialize FastAPI app
app = FastAPI(
    title="braindumper API",
    description="Availability-aware scheduling with explicit approval before calendar writes",
    version="0.1.0"
)

# In-memory storage; proposals are never the source of truth
proposals_store: Dict[str, ApprovalWorkflow] = {}


# Request models
class SuggestionsRequest(BaseModel):
    """Request for single-task suggestions."""
    task: Task
    events: List[CalendarEvent] = Field(default_factory=list)
    preferences: Optional[SchedulingPreferences] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    count: Optional[int] = Field(None, gt=0)
    now: Optional[datetime] = None


class AvailabilityRequest(BaseModel):
    """Request for merged availability."""
    events: List[CalendarEvent] = Field(default_factory=list)
    preferences: Optional[SchedulingPreferences] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ProposalRequest(BaseModel):
    """Request for a batch proposal."""
    tasks: List[Task]
    events: List[CalendarEvent] = Field(default_factory=list)
    preferences: Optional[SchedulingPreferences] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    count: Optional[int] = Field(None, gt=0)
    now: Optional[datetime] = None


class ConfirmRequest(BaseModel):
    """Reviewer decisions submitted with a confirm."""
    per_task_approval: List[TaskDecision] = Field(default_factory=list)
    displacements_approved: bool = False
    now: Optional[datetime] = None


# Response models
class SuggestionsResponse(BaseModel):
    """Response for single-task suggestions."""
    suggestions: List[SchedulingSuggestion]


class AvailabilityResponse(BaseModel):
    """Response for availability."""
    availability: List[AvailabilityWindow]
    total_free_minutes: int


class ProposalResponse(BaseModel):
    """A proposal with its current review state."""
    proposal: ScheduleProposal
    status: ProposalStatus
    approvals: Dict[str, ApprovalState]
    displacements_approved: bool
    can_confirm: bool


class ConfirmResponse(BaseModel):
    """Result of confirming a proposal."""
    proposal_id: str
    status: ProposalStatus
    instructions: List[CommitInstruction]


def _preferences(preferences: Optional[SchedulingPreferences]) -> SchedulingPreferences:
    return preferences or SchedulingPreferences(timezone=DEFAULT_TZ)


def _horizon(preferences: SchedulingPreferences, start_date: Optional[date], end_date: Optional[date]):
    if start_date is None:
        start_date = convert_timezone(datetime.now().astimezone(), preferences.timezone).date()
    if end_date is None:
        end_date = start_date + timedelta(days=DEFAULT_SEARCH_HORIZON_DAYS - 1)
    if end_date < start_date:
        raise HTTPException(status_code=422, detail="end_date must not be before start_date")
    return start_date, end_date


def _prune_proposals(now: datetime) -> None:
    """Drop proposals whose expiry passed more than the retention period ago."""
    cutoff = now - timedelta(minutes=PROPOSAL_RETENTION)
    stale = [pid for pid, w in proposals_store.items() if w.proposal.expires_at < cutoff]
    for pid in stale:
        del proposals_store[pid]


def _get_workflow(proposal_id: str) -> ApprovalWorkflow:
    workflow = proposals_store.get(proposal_id)
    if workflow is None:
        raise HTTPException(status_code=404, detail=f"Proposal {proposal_id} not found")
    return workflow


def _proposal_response(workflow: ApprovalWorkflow) -> ProposalResponse:
    return ProposalResponse(
        proposal=workflow.proposal,
        status=workflow.status,
        approvals=workflow.approvals,
        displacements_approved=workflow.displacements_approved,
        can_confirm=workflow.can_confirm,
    )


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/suggestions", response_model=SuggestionsResponse)
async def suggest(request: SuggestionsRequest):
    """Suggest time slots for a single task."""
    preferences = _preferences(request.preferences)
    start_date, end_date = _horizon(preferences, request.start_date, request.end_date)
    try:
        availability = build_availability(request.events, start_date, end_date, preferences)
        suggestions = generate_suggestions(
            request.task,
            availability,
            count=request.count or SUGGESTION_COUNT,
            preferences=preferences,
            events=request.events,
            now=ensure_aware(request.now) if request.now else None,
        )
    except (InvalidTimeFormat, DateMismatch) as e:
        raise HTTPException(status_code=422, detail=str(e))
    return SuggestionsResponse(suggestions=suggestions)


@app.post("/availability", response_model=AvailabilityResponse)
async def availability(request: AvailabilityRequest):
    """Merged availability across all calendars for each day in the range."""
    preferences = _preferences(request.preferences)
    start_date, end_date = _horizon(preferences, request.start_date, request.end_date)
    try:
        windows = build_availability(request.events, start_date, end_date, preferences)
    except (InvalidTimeFormat, DateMismatch) as e:
        raise HTTPException(status_code=422, detail=str(e))
    return AvailabilityResponse(
        availability=windows,
        total_free_minutes=sum(w.total_free_minutes for w in windows),
    )


@app.post("/proposals", response_model=ProposalResponse)
async def create_proposal(request: ProposalRequest):
    """Build a proposal for a batch of tasks and hold it for review."""
    if not request.tasks:
        raise HTTPException(status_code=400, detail="No tasks to schedule.")

    preferences = _preferences(request.preferences)
    start_date, end_date = _horizon(preferences, request.start_date, request.end_date)
    try:
        proposal = build_proposal(
            request.tasks,
            request.events,
            preferences,
            start_day=start_date,
            end_day=end_date,
            now=request.now,
            ttl_minutes=PROPOSAL_TTL,
            count=request.count or PROPOSAL_SUGGESTIONS_PER_TASK,
        )
    except (InvalidTimeFormat, DateMismatch) as e:
        raise HTTPException(status_code=422, detail=str(e))

    _prune_proposals(datetime.now(timezone.utc))
    workflow = ApprovalWorkflow(proposal)
    proposals_store[proposal.id] = workflow
    return _proposal_response(workflow)


@app.get("/proposals/{proposal_id}", response_model=ProposalResponse)
async def get_proposal(proposal_id: str):
    """Get a proposal and its review state."""
    workflow = _get_workflow(proposal_id)
    workflow.expire_if_due()
    return _proposal_response(workflow)


@app.post("/proposals/{proposal_id}/confirm", response_model=ConfirmResponse)
async def confirm_proposal(proposal_id: str, request: ConfirmRequest):
    """Apply the reviewer's decisions and confirm the proposal."""
    workflow = _get_workflow(proposal_id)
    try:
        workflow.apply_decisions(request.per_task_approval, request.displacements_approved)
        instructions = workflow.confirm(request.now)
    except ProposalExpired as e:
        raise HTTPException(status_code=410, detail=str(e))
    except ProposalAlreadyFinalized as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (NothingApproved, DisplacementsNotApproved, ConflictingSelections, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))

    return ConfirmResponse(
        proposal_id=proposal_id,
        status=workflow.status,
        instructions=instructions,
    )


@app.post("/proposals/{proposal_id}/reject", response_model=ProposalResponse)
async def reject_proposal(proposal_id: str):
    """Reject a proposal; nothing is written."""
    workflow = _get_workflow(proposal_id)
    try:
        workflow.reject()
    except ProposalExpired as e:
        raise HTTPException(status_code=410, detail=str(e))
    except ProposalAlreadyFinalized as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _proposal_response(workflow)
