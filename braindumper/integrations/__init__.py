"""Calendar collaborators for braindumper."""

from braindumper.integrations.base import CalendarEventSource, CalendarWriter
from braindumper.integrations.memory import InMemoryCalendar

__all__ = ["CalendarEventSource", "CalendarWriter", "InMemoryCalendar"]
