"""Async boundary between the scheduling engine and calendar collaborators.

The engine itself is synchronous and pure; this service is the only place
that awaits I/O, fetching events before a computation and handing commit
instructions to the calendar writer afterwards.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

from braindumper.engine.approval import ApprovalWorkflow
from braindumper.engine.availability import build_availability
from braindumper.engine.proposal import build_proposal
from braindumper.engine.suggestions import generate_suggestions
from braindumper.engine.timeutils import combine_date_and_time, convert_timezone, ensure_aware
from braindumper.integrations.base import CalendarEventSource, CalendarWriter
from braindumper.models.calendar_event import CalendarEvent
from braindumper.models.constants import (
    DEFAULT_SEARCH_HORIZON_DAYS,
    DEFAULT_SUGGESTION_COUNT,
    PROPOSAL_SUGGESTIONS_PER_TASK,
    PROPOSAL_TTL_MINUTES,
)
from braindumper.models.preferences import SchedulingPreferences
from braindumper.models.proposal import CommitInstruction, ScheduleProposal
from braindumper.models.suggestion import SchedulingSuggestion
from braindumper.models.task import Task
from braindumper.models.time_slot import AvailabilityWindow

logger = logging.getLogger(__name__)


class SchedulingService:
    """Runs engine pipelines against live calendar collaborators."""

    def __init__(
        self,
        event_source: CalendarEventSource,
        calendar_writer: CalendarWriter,
        preferences: Optional[SchedulingPreferences] = None,
        ttl_minutes: int = PROPOSAL_TTL_MINUTES,
    ):
        self.event_source = event_source
        self.calendar_writer = calendar_writer
        self.preferences = preferences or SchedulingPreferences()
        self.ttl_minutes = ttl_minutes

    def _horizon(
        self,
        start_day: Optional[date],
        end_day: Optional[date],
        now: datetime,
    ) -> Tuple[date, date]:
        if start_day is None:
            start_day = convert_timezone(now, self.preferences.timezone).date()
        if end_day is None:
            end_day = start_day + timedelta(days=DEFAULT_SEARCH_HORIZON_DAYS - 1)
        return start_day, end_day

    async def _fetch(self, start_day: date, end_day: date) -> List[CalendarEvent]:
        tz = self.preferences.timezone
        start = combine_date_and_time(start_day, "00:00", tz)
        end = combine_date_and_time(end_day + timedelta(days=1), "00:00", tz)
        events = await self.event_source.fetch_events(start, end)
        logger.debug(f"Fetched {len(events)} events for {start_day.isoformat()}..{end_day.isoformat()}")
        return events

    async def availability(
        self,
        start_day: Optional[date] = None,
        end_day: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> List[AvailabilityWindow]:
        now = ensure_aware(now) if now is not None else datetime.now(timezone.utc)
        start_day, end_day = self._horizon(start_day, end_day, now)
        events = await self._fetch(start_day, end_day)
        return build_availability(events, start_day, end_day, self.preferences)

    async def suggest(
        self,
        task: Task,
        start_day: Optional[date] = None,
        end_day: Optional[date] = None,
        count: int = DEFAULT_SUGGESTION_COUNT,
        now: Optional[datetime] = None,
    ) -> List[SchedulingSuggestion]:
        """Suggest slots for a single task."""
        now = ensure_aware(now) if now is not None else datetime.now(timezone.utc)
        start_day, end_day = self._horizon(start_day, end_day, now)
        events = await self._fetch(start_day, end_day)
        availability = build_availability(events, start_day, end_day, self.preferences)
        return generate_suggestions(
            task, availability, count=count, preferences=self.preferences, events=events, now=now,
        )

    async def propose(
        self,
        tasks: Sequence[Task],
        start_day: Optional[date] = None,
        end_day: Optional[date] = None,
        now: Optional[datetime] = None,
        count: int = PROPOSAL_SUGGESTIONS_PER_TASK,
    ) -> ScheduleProposal:
        """Build a proposal for a batch of tasks."""
        now = ensure_aware(now) if now is not None else datetime.now(timezone.utc)
        start_day, end_day = self._horizon(start_day, end_day, now)
        events = await self._fetch(start_day, end_day)
        return build_proposal(
            tasks,
            events,
            self.preferences,
            start_day=start_day,
            end_day=end_day,
            now=now,
            ttl_minutes=self.ttl_minutes,
            count=count,
        )

    async def commit(
        self,
        workflow: ApprovalWorkflow,
        now: Optional[datetime] = None,
    ) -> List[CommitInstruction]:
        """Confirm a reviewed proposal and hand its instructions to the calendar writer.

        Args:
            workflow: Approval session holding the reviewer's decisions
            now: Current time (used for the expiry check)

        Returns:
            The instructions that were applied

        Raises:
            ProposalError: If the proposal cannot be confirmed
            CalendarWriteError: If the writer rejects the instructions
        """
        instructions = workflow.confirm(now)
        await self.calendar_writer.apply(instructions)
        logger.info(f"Committed proposal {workflow.proposal.id} ({len(instructions)} operations)")
        return instructions
