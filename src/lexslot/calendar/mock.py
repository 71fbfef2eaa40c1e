"""Mock calendar for development and demos.

Produces plausible busy intervals without a calendar service: on weekdays
each resource gets a random number of one-hour bookings starting on the
hour or half-hour, inside working hours, clear of lunch, never overlapping
each other and never at a location the resource is unavailable for.

Output is deterministic for a given seed, resource and day, so repeated
fetches over overlapping ranges agree with each other.
"""

import random
from datetime import datetime, time, timedelta
from typing import Optional

from lexslot.calendar.sources import CalendarSource
from lexslot.domain.intervals import is_lunch_overlap, ranges_overlap
from lexslot.domain.models import BusyInterval, Resource
from lexslot.domain.policies import (
    DEFAULT_CALENDAR_CONFIG,
    WEEKDAY_NAMES,
    FacilityCalendarConfig,
    LocationAvailabilityRule,
)
from lexslot.domain.registry import ResourceRegistry

MOCK_LOCATIONS = ("Office", "Phone", "Teams")

# (min, max) bookings per weekday; busy, moderate and light calendars.
DEFAULT_DAILY_LOAD = {
    "MM": (4, 6),
    "DH": (2, 4),
    "TG": (0, 2),
}
FALLBACK_DAILY_LOAD = (0, 2)

EVENT_MINUTES = 60


class MockCalendarSource(CalendarSource):
    """Generates random but reproducible busy intervals."""

    def __init__(
        self,
        registry: ResourceRegistry,
        config: Optional[FacilityCalendarConfig] = None,
        availability: Optional[LocationAvailabilityRule] = None,
        seed: Optional[int] = None,
        daily_load: Optional[dict[str, tuple[int, int]]] = None,
    ):
        self.registry = registry
        self.config = config or DEFAULT_CALENDAR_CONFIG
        self.availability = availability or LocationAvailabilityRule()
        self.seed = seed if seed is not None else random.randrange(2**32)
        self.daily_load = daily_load if daily_load is not None else DEFAULT_DAILY_LOAD

    def fetch_busy_intervals(
        self,
        resource_id: str,
        range_start: datetime,
        range_end: datetime,
    ) -> list[BusyInterval]:
        resource = self.registry.get(resource_id)
        first_day = self.config.local_date(range_start)
        last_day = self.config.local_date(range_end)

        intervals = []
        day = first_day
        while day <= last_day:
            if day.weekday() < 5:
                intervals.extend(
                    interval
                    for interval in self._day_events(resource, day)
                    if ranges_overlap(interval.start, interval.end, range_start, range_end)
                )
            day += timedelta(days=1)
        return intervals

    def _day_events(self, resource: Resource, day) -> list[BusyInterval]:
        rng = random.Random(f"{self.seed}:{resource.id}:{day.isoformat()}")
        low, high = self.daily_load.get(resource.id, FALLBACK_DAILY_LOAD)
        count = rng.randint(low, high)

        hours = resource.working_hours
        work_start = self.config.localize(day, hours.start)
        work_end = self.config.localize(day, hours.end)
        duration = timedelta(minutes=EVENT_MINUTES)
        weekday = WEEKDAY_NAMES[day.weekday()]
        locations = [
            location
            for location in MOCK_LOCATIONS
            if not self.availability.is_unavailable(resource.id, location, weekday)
        ] or list(MOCK_LOCATIONS)

        events: list[BusyInterval] = []
        attempts = 0
        while len(events) < count and attempts < count * 10:
            attempts += 1
            hour = rng.randint(hours.start.hour, max(hours.start.hour, hours.end.hour - 1))
            minute = rng.choice((0, 30))
            start = self.config.localize(day, time(hour, minute))
            end = start + duration

            if start < work_start or end > work_end:
                continue
            if is_lunch_overlap(start, end, self.config):
                continue
            if any(ranges_overlap(start, end, e.start, e.end) for e in events):
                continue

            location = rng.choice(locations)
            events.append(
                BusyInterval(
                    start=start,
                    end=end,
                    location=location,
                    owner_tag=resource.name,
                    subject=f"Mock: {resource.name} {location} {start:%H:%M}",
                )
            )

        events.sort(key=lambda e: e.start)
        return events
