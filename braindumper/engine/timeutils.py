"""Time and date primitives for the scheduling engine.

All functions are pure. Timestamps are timezone-aware; times of day are
"HH:mm" strings interpreted in an IANA timezone.
"""

import logging
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, List, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from braindumper.engine.errors import InvalidTimeFormat
from braindumper.models.constants import SLOT_GRANULARITY_MINUTES
from braindumper.models.time_slot import TimeSlot, ensure_aware

logger = logging.getLogger(__name__)

__all__ = [
    "ensure_aware",
    "resolve_zone",
    "parse_time_string",
    "combine_date_and_time",
    "convert_timezone",
    "generate_slots",
    "ranges_overlap",
    "has_overlap",
    "minutes_between",
    "round_to_granularity",
    "date_range",
    "time_of_day_label",
]

_TIME_RE = re.compile(r"^(?P<h>\d{1,2}):(?P<m>\d{2})$")


def resolve_zone(tz: str) -> ZoneInfo:
    """Resolve an IANA timezone name, falling back to UTC with a warning."""
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {tz!r}; falling back to UTC")
        return ZoneInfo("UTC")


def parse_time_string(value: str) -> Tuple[int, int]:
    """Parse "HH:mm" into (hours, minutes).
    
    Raises:
        InvalidTimeFormat: If the value is malformed or out of range
    """
    m = _TIME_RE.match(value.strip()) if isinstance(value, str) else None
    if not m:
        raise InvalidTimeFormat(value)
    hours = int(m.group("h"))
    minutes = int(m.group("m"))
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormat(value)
    return hours, minutes


def combine_date_and_time(day: date, time_str: str, tz: str = "UTC") -> datetime:
    """Build the timestamp for a wall-clock time on a given day.
    
    Args:
        day: Calendar date
        time_str: Time of day in "HH:mm" format
        tz: IANA timezone the time is expressed in
        
    Returns:
        Timezone-aware datetime
        
    Raises:
        InvalidTimeFormat: If time_str is not a valid time of day
    """
    hours, minutes = parse_time_string(time_str)
    return datetime.combine(day, time(hours, minutes), tzinfo=resolve_zone(tz))


def convert_timezone(ts: datetime, zone: str) -> datetime:
    """Convert a timestamp to another timezone.

    Timezone misconfiguration must never block scheduling: an unresolvable
    zone returns the input unchanged and logs a warning.
    """
    try:
        target = ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Cannot convert to unknown timezone {zone!r}; keeping original timestamp")
        return ts
    return ensure_aware(ts).astimezone(target)


def generate_slots(
    day: date,
    interval_minutes: int = SLOT_GRANULARITY_MINUTES,
    tz: str = "UTC",
) -> List[TimeSlot]:
    """Split a calendar day into consecutive available slots.
    
    Slots cover local midnight to the next local midnight. Steps are taken in
    absolute time so DST transition days get 23 or 25 hours of slots. A
    trailing slot that would cross midnight is dropped.
    
    Args:
        day: Calendar date
        interval_minutes: Slot length in minutes
        tz: IANA timezone defining the day's boundaries
        
    Returns:
        Chronological, non-overlapping slots
    """
    if interval_minutes <= 0:
        raise ValueError("interval_minutes must be positive")
    
    zone = resolve_zone(tz)
    day_start = datetime.combine(day, time(0, 0), tzinfo=zone).astimezone(timezone.utc)
    day_end = datetime.combine(day + timedelta(days=1), time(0, 0), tzinfo=zone).astimezone(timezone.utc)
    step = timedelta(minutes=interval_minutes)
    
    slots: List[TimeSlot] = []
    current = day_start
    while current + step <= day_end:
        slots.append(
            TimeSlot(start=current.astimezone(zone), end=(current + step).astimezone(zone))
        )
        current += step
    return slots


def ranges_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open interval overlap. Touching ranges do not overlap."""
    return start_a < end_b and start_b < end_a


def has_overlap(slot_a: TimeSlot, slot_b: TimeSlot) -> bool:
    """Check whether two slots overlap (symmetric)."""
    return ranges_overlap(slot_a.start, slot_a.end, slot_b.start, slot_b.end)


def minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


def round_to_granularity(dt: datetime, granularity_minutes: int = SLOT_GRANULARITY_MINUTES) -> datetime:
    """Round datetime down to the slot granularity.
    
    Args:
        dt: Datetime to round
        granularity_minutes: Granularity in minutes
        
    Returns:
        Rounded datetime
    """
    minutes = dt.hour * 60 + dt.minute
    rounded = (minutes // granularity_minutes) * granularity_minutes
    return dt.replace(hour=rounded // 60, minute=rounded % 60, second=0, microsecond=0)


def date_range(start: date, end: date) -> Iterator[date]:
    """Yield every date from start to end, both inclusive."""
    cur = start
    while cur <= end:
        yield cur
        cur = cur + timedelta(days=1)


def time_of_day_label(ts: datetime) -> str:
    """Derived display label for a timestamp: morning, afternoon or evening."""
    if ts.hour < 12:
        return "morning"
    if ts.hour < 17:
        return "afternoon"
    return "evening"
