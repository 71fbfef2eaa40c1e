"""Domain models for the scheduling core.

This module contains the core data structures: schedulable resources and
their constraints, busy intervals taken from a calendar snapshot, and the
proposed slots that are checked against them.
"""

from dataclasses import dataclass, field
from datetime import datetime, time
from enum import Enum
from typing import Optional

from lexslot.errors import InvalidInputError

OFFICE_LABEL = "office"

# Substrings marking a location as a remote meeting.
VIRTUAL_KEYWORDS = (
    "phone",
    "tel",
    "telephone",
    "téléphone",
    "teams",
    "ms teams",
    "microsoft teams",
    "microsoft teams meeting",
)


class LocationKind(Enum):
    """Classification of a free-text location."""

    OFFICE = "office"  # The single shared physical office
    VIRTUAL = "virtual"  # Phone or Teams
    OTHER = "other"  # Anywhere else (court, client site, ...)


def classify_location(location: Optional[str]) -> LocationKind:
    """Classify a location string.

    Virtual keywords win over the office label, so "Office phone" is
    virtual. Missing locations classify as OTHER.
    """
    if not location:
        return LocationKind.OTHER
    text = location.strip().lower()
    if any(keyword in text for keyword in VIRTUAL_KEYWORDS):
        return LocationKind.VIRTUAL
    if text == OFFICE_LABEL:
        return LocationKind.OFFICE
    return LocationKind.OTHER


def parse_wall_time(value: str) -> time:
    """Parse an "HH:MM" wall-clock string."""
    try:
        hours, minutes = value.split(":")
        return time(hour=int(hours), minute=int(minutes))
    except (AttributeError, ValueError):
        raise InvalidInputError(f"Invalid wall-clock time: {value!r}")


@dataclass(frozen=True)
class WorkingHours:
    """Daily working window of a resource.

    Attributes:
        start: Local time the working day starts.
        end: Local time the working day ends (exclusive).
    """

    start: time
    end: time

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidInputError(
                f"Working hours start {self.start} must precede end {self.end}"
            )

    @classmethod
    def from_strings(cls, start: str, end: str) -> "WorkingHours":
        """Create working hours from "HH:MM" strings."""
        return cls(start=parse_wall_time(start), end=parse_wall_time(end))

    def __repr__(self) -> str:
        return f"WorkingHours({self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')})"


@dataclass(frozen=True)
class Resource:
    """A schedulable person (a lawyer) and their booking constraints.

    Attributes:
        id: Unique short code, e.g. "DH".
        name: Display name; calendars sometimes tag events with it.
        email: Address used as an attendee on calendar events.
        working_hours: Daily working window.
        break_minutes: Minimum idle gap between consecutive bookings.
        max_daily_appointments: Cap on bookings per calendar day.
        specialties: Case-type tags the resource handles.
    """

    id: str
    name: str
    email: str = ""
    working_hours: WorkingHours = field(
        default_factory=lambda: WorkingHours(time(9, 0), time(17, 0))
    )
    break_minutes: int = 15
    max_daily_appointments: int = 4
    specialties: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if not self.id:
            raise InvalidInputError("Resource id is required")
        if not self.name:
            raise InvalidInputError(f"Resource {self.id} has no name")
        if self.break_minutes < 0:
            raise InvalidInputError(
                f"Resource {self.id}: break_minutes must not be negative"
            )
        if self.max_daily_appointments < 1:
            raise InvalidInputError(
                f"Resource {self.id}: max_daily_appointments must be at least 1"
            )

    @classmethod
    def from_dict(cls, data: dict) -> "Resource":
        """Build a resource from a roster entry (camelCase keys)."""
        try:
            hours = data["workingHours"]
            return cls(
                id=data["id"],
                name=data["name"],
                email=data.get("email", ""),
                working_hours=WorkingHours.from_strings(hours["start"], hours["end"]),
                break_minutes=int(data.get("breakMinutes", 15)),
                max_daily_appointments=int(data.get("maxDailyAppointments", 4)),
                specialties=frozenset(data.get("specialties", ())),
            )
        except KeyError as e:
            raise InvalidInputError(f"Resource entry is missing field {e}")

    def matches_tag(self, tag: Optional[str]) -> bool:
        """Check whether an owner tag refers to this resource.

        Upstream calendars tag events with either the id or the full name.
        """
        if not tag:
            return False
        tag = tag.strip()
        return tag == self.id or tag.lower() == self.name.lower()

    def handles(self, case_type: str) -> bool:
        """Check whether the resource takes a given case type."""
        return case_type in self.specialties


@dataclass(frozen=True)
class BusyInterval:
    """A time range during which a resource is already committed.

    ``location`` and ``owner_tag`` can be missing when upstream data is
    incomplete; rules needing them skip such intervals.

    Attributes:
        start: Aware start instant.
        end: Aware end instant (exclusive).
        location: Free-text location.
        owner_tag: Id or name of the owning resource.
        subject: Event subject, for diagnostics only.
    """

    start: datetime
    end: datetime
    location: Optional[str] = None
    owner_tag: Optional[str] = None
    subject: str = ""

    def __post_init__(self):
        if self.end <= self.start:
            raise InvalidInputError(
                f"Busy interval ends ({self.end}) at or before it starts ({self.start})"
            )

    @property
    def location_kind(self) -> LocationKind:
        return classify_location(self.location)

    def __repr__(self) -> str:
        return (
            f"BusyInterval({self.owner_tag}: {self.start:%Y-%m-%d %H:%M}-"
            f"{self.end:%H:%M} @ {self.location})"
        )


@dataclass(frozen=True)
class ProposedSlot:
    """A candidate appointment being evaluated for admissibility.

    Attributes:
        start: Aware start instant.
        end: Aware end instant (exclusive).
        location: Requested location, e.g. "office", "phone", "teams".
    """

    start: datetime
    end: datetime
    location: str

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    @property
    def location_kind(self) -> LocationKind:
        return classify_location(self.location)

    def __repr__(self) -> str:
        return f"ProposedSlot({self.start:%Y-%m-%d %H:%M}-{self.end:%H:%M} @ {self.location})"
