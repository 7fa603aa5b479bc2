"""Time-slot parsing for schedule items.

Slots arrive from the generation service as free-form strings such as
"9:00 AM - 11:00 AM". Sorting only needs the start time and must never
fail; calendar sync needs both ends and skips what it cannot read.
"""

import re

from pydantic import BaseModel

# "9", "9:30", "12 PM", "9:30am" - hour[:minute] followed by AM/PM
_CLOCK_RE = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*([AP])\.?M\b", re.IGNORECASE)

MINUTES_PER_DAY = 24 * 60


def parse_clock(text: str) -> int | None:
    """Convert the first "H[:MM] AM/PM" token in *text* to minutes since midnight.

    12 AM is midnight, 12 PM is noon, other PM hours add 12.

    Returns:
        Minutes since midnight, or None if no valid token is found.
    """
    match = _CLOCK_RE.search(text)
    if not match:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2) or "0")
    meridiem = match.group(3).upper()
    if hours > 12 or minutes > 59:
        return None

    if meridiem == "P" and hours < 12:
        hours += 12
    if meridiem == "A" and hours == 12:
        hours = 0
    return hours * 60 + minutes


def slot_start_minutes(time_slot: str) -> int:
    """Sort key for a slot: its start time, or 0 when the slot is malformed."""
    head = time_slot.split("-", 1)[0]
    start = parse_clock(head)
    return start if start is not None else 0


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as HH:MM (24-hour)."""
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


class TimeRange(BaseModel):
    """A parsed start-end range in minutes since midnight.

    ``end`` may be lower than ``start`` for sessions that run past midnight
    (e.g. "11:00 PM - 12:30 AM").
    """

    start: int
    end: int

    model_config = {"frozen": True}

    @classmethod
    def parse(cls, time_slot: str) -> "TimeRange | None":
        """Parse "START - END"; None when either end is unreadable."""
        parts = time_slot.split("-")
        if len(parts) != 2:
            return None
        start = parse_clock(parts[0])
        end = parse_clock(parts[1])
        if start is None or end is None:
            return None
        return cls(start=start, end=end)

    @property
    def duration(self) -> int:
        """Length in minutes, wrapping past midnight."""
        return (self.end - self.start) % MINUTES_PER_DAY

    @property
    def crosses_midnight(self) -> bool:
        return self.end <= self.start

    def label(self) -> str:
        """24-hour "HH:MM-HH:MM" label."""
        return f"{format_minutes(self.start)}-{format_minutes(self.end)}"
