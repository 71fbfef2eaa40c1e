"""Facility-wide calendar policies.

This module contains the static configuration the scheduling core reads
but never mutates: the facility calendar (timezone, lunch window, horizon,
slot granularity), the per-resource location unavailability table, and the
pair of resources sharing virtual-meeting equipment. Keeping these apart
from the rule engine allows them to be loaded from configuration and
swapped in tests.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional

import pytz

from lexslot.errors import InvalidInputError

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


@dataclass(frozen=True)
class FacilityCalendarConfig:
    """Process-wide calendar settings, fixed at startup.

    All time math is done in the facility's local wall-clock time because
    working hours and lunch are defined in local terms.

    Attributes:
        timezone: IANA timezone name of the facility.
        lunch_start: Daily start of the lunch window.
        lunch_end: Daily end of the lunch window (exclusive).
        horizon_days: Rolling look-ahead window for slot generation.
        slot_minutes: Fixed duration of generated slots.
    """

    timezone: str = "America/Toronto"
    lunch_start: time = time(13, 0)
    lunch_end: time = time(14, 0)
    horizon_days: int = 14
    slot_minutes: int = 60

    def __post_init__(self):
        if self.lunch_start >= self.lunch_end:
            raise InvalidInputError(
                f"Lunch window start {self.lunch_start} must precede end {self.lunch_end}"
            )
        if self.horizon_days < 1:
            raise InvalidInputError(f"horizon_days must be positive, got {self.horizon_days}")
        if self.slot_minutes < 1:
            raise InvalidInputError(f"slot_minutes must be positive, got {self.slot_minutes}")
        try:
            pytz.timezone(self.timezone)
        except pytz.UnknownTimeZoneError:
            raise InvalidInputError(f"Unknown timezone: {self.timezone}")

    @property
    def tz(self) -> pytz.BaseTzInfo:
        """The pytz timezone object for the facility."""
        return pytz.timezone(self.timezone)

    def localize(self, day: date, wall_time: time) -> datetime:
        """Build an aware datetime for a local wall-clock time on a day."""
        return self.tz.localize(datetime.combine(day, wall_time))

    def to_local(self, moment: datetime) -> datetime:
        """Express an instant in facility-local time.

        Naive datetimes are taken to already be facility-local.
        """
        if moment.tzinfo is None:
            return self.tz.localize(moment)
        return moment.astimezone(self.tz)

    def local_date(self, moment: datetime) -> date:
        """Calendar date of an instant in facility-local time."""
        return self.to_local(moment).date()

    def weekday_name(self, moment: datetime) -> str:
        """English weekday name of an instant in facility-local time."""
        return WEEKDAY_NAMES[self.to_local(moment).weekday()]

    def lunch_window(self, day: date) -> tuple[datetime, datetime]:
        """Lunch window for a calendar day as aware datetimes."""
        return self.localize(day, self.lunch_start), self.localize(day, self.lunch_end)


@dataclass(frozen=True)
class LocationAvailabilityRule:
    """Locations where resources do not work on given weekdays.

    Maps a resource id to ``{location: weekdays}``, e.g.
    ``{"DH": {"office": ("Monday",)}}``. Locations and weekday names are
    compared case-insensitively.
    """

    unavailability: dict[str, dict[str, tuple[str, ...]]] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, mapping: dict) -> "LocationAvailabilityRule":
        """Normalize a raw configuration mapping."""
        normalized = {}
        for resource_id, locations in mapping.items():
            normalized[resource_id] = {
                location.strip().lower(): tuple(day.strip().title() for day in days)
                for location, days in locations.items()
            }
        return cls(unavailability=normalized)

    def is_unavailable(self, resource_id: str, location: Optional[str], weekday: str) -> bool:
        """Check whether a resource is unavailable at a location on a weekday."""
        if not location:
            return False
        locations = self.unavailability.get(resource_id, {})
        days = locations.get(location.strip().lower(), ())
        return weekday.title() in days


@dataclass(frozen=True)
class VirtualConflictPair:
    """Two resources sharing one set of virtual-meeting equipment.

    While one member is on a phone or Teams call, the other cannot take a
    virtual meeting.
    """

    first: str
    second: str

    def __post_init__(self):
        if self.first == self.second:
            raise InvalidInputError("A virtual conflict pair needs two distinct resources")

    def __contains__(self, resource_id: str) -> bool:
        return resource_id in (self.first, self.second)

    def partner_of(self, resource_id: str) -> Optional[str]:
        """Return the other member of the pair, or None if not a member."""
        if resource_id == self.first:
            return self.second
        if resource_id == self.second:
            return self.first
        return None


DEFAULT_CALENDAR_CONFIG = FacilityCalendarConfig()
