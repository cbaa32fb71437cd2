"""Abstract calendar collaborators used by the scheduling service.

Provider clients (Google Calendar and others) implement these; the engine
only ever talks to them through this interface.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Sequence

from braindumper.models.calendar_event import CalendarEvent
from braindumper.models.proposal import CommitInstruction


class CalendarEventSource(ABC):
    """Reads events from the user's connected calendars."""

    @abstractmethod
    async def fetch_events(self, start: datetime, end: datetime) -> List[CalendarEvent]:
        """Return events from every connected calendar overlapping [start, end)."""


class CalendarWriter(ABC):
    """Executes commit instructions against a calendar provider.

    Retries and sync status reconciliation are the writer's responsibility.
    """

    @abstractmethod
    async def apply(self, instructions: Sequence[CommitInstruction]) -> List[CalendarEvent]:
        """Apply instructions in order and return the created or moved events."""
