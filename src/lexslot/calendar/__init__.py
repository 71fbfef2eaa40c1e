"""Calendar data sources."""

from lexslot.calendar.mock import MockCalendarSource
from lexslot.calendar.sources import (
    CalendarSource,
    StaticCalendarSource,
    intervals_from_events,
)

__all__ = [
    "CalendarSource",
    "MockCalendarSource",
    "StaticCalendarSource",
    "intervals_from_events",
]
