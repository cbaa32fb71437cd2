"""In-memory calendar used for local runs and tests."""

import logging
import uuid
from datetime import datetime
from typing import Dict, Iterable, List, Sequence

from braindumper.engine.errors import CalendarWriteError, SlotAlreadyTaken
from braindumper.engine.timeutils import ranges_overlap
from braindumper.integrations.base import CalendarEventSource, CalendarWriter
from braindumper.models.calendar_event import CalendarEvent
from braindumper.models.proposal import CommitInstruction, CommitOperation

logger = logging.getLogger(__name__)


class InMemoryCalendar(CalendarEventSource, CalendarWriter):
    """Event store implementing both calendar collaborators.

    Writes are re-validated against the current events, so a second proposal
    committing into an already-booked slot fails instead of double-booking.
    A batch is applied all-or-nothing.
    """

    def __init__(self, events: Iterable[CalendarEvent] = ()):
        self.events: Dict[str, CalendarEvent] = {e.id: e for e in events}

    async def fetch_events(self, start: datetime, end: datetime) -> List[CalendarEvent]:
        return sorted(
            (e for e in self.events.values() if ranges_overlap(e.start, e.end, start, end)),
            key=lambda e: (e.start, e.id),
        )

    async def apply(self, instructions: Sequence[CommitInstruction]) -> List[CalendarEvent]:
        working = dict(self.events)
        written: List[CalendarEvent] = []

        for instruction in instructions:
            operation = CommitOperation(instruction.operation)
            if operation == CommitOperation.CREATE_EVENT:
                event = CalendarEvent(
                    id=str(uuid.uuid4()),
                    calendar_id=instruction.calendar_id,
                    title=instruction.title or "Untitled Event",
                    start=instruction.start,
                    end=instruction.end,
                    task_id=instruction.task_id,
                )
                self._check_free(working, event)
                working[event.id] = event
                written.append(event)
            elif operation == CommitOperation.MOVE_EVENT:
                existing = self._get(working, instruction.event_id)
                event = existing.model_copy(update={"start": instruction.start, "end": instruction.end})
                self._check_free(working, event)
                working[event.id] = event
                written.append(event)
            else:
                self._get(working, instruction.event_id)
                del working[instruction.event_id]

        self.events = working
        logger.info(f"Applied {len(instructions)} calendar operations")
        return written

    @staticmethod
    def _get(events: Dict[str, CalendarEvent], event_id: str) -> CalendarEvent:
        if event_id not in events:
            raise CalendarWriteError(f"Calendar event {event_id} not found")
        return events[event_id]

    @staticmethod
    def _check_free(events: Dict[str, CalendarEvent], event: CalendarEvent) -> None:
        for other in events.values():
            if other.id == event.id or other.is_cancelled:
                continue
            if ranges_overlap(event.start, event.end, other.start, other.end):
                raise SlotAlreadyTaken(
                    f"'{event.title}' at {event.start.isoformat()} overlaps '{other.title}'"
                )
