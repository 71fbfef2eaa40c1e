"""Calendar data sources supplying busy-interval snapshots.

The scheduling core never talks to a calendar service itself. It asks a
CalendarSource for busy intervals and treats every answer as a snapshot;
fetch failures are propagated rather than read as "no conflicts".
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

import pytz
from dateutil import parser as date_parser

from lexslot.domain.intervals import ranges_overlap
from lexslot.domain.models import BusyInterval
from lexslot.domain.policies import DEFAULT_CALENDAR_CONFIG, FacilityCalendarConfig
from lexslot.domain.registry import ResourceRegistry
from lexslot.errors import InvalidInputError

logger = logging.getLogger(__name__)


class CalendarSource(ABC):
    """Abstract base class for busy-interval providers."""

    @abstractmethod
    def fetch_busy_intervals(
        self,
        resource_id: str,
        range_start: datetime,
        range_end: datetime,
    ) -> list[BusyInterval]:
        """Get a resource's busy intervals intersecting a time range.

        Implementations raise on transport failure; they must not return
        an empty list to mask an error.
        """
        pass


class StaticCalendarSource(CalendarSource):
    """Serves busy intervals from an in-memory snapshot."""

    def __init__(
        self,
        intervals: Iterable[BusyInterval],
        registry: ResourceRegistry,
    ):
        self.intervals = list(intervals)
        self.registry = registry

    def fetch_busy_intervals(
        self,
        resource_id: str,
        range_start: datetime,
        range_end: datetime,
    ) -> list[BusyInterval]:
        resource = self.registry.get(resource_id)
        return [
            interval
            for interval in self.intervals
            if resource.matches_tag(interval.owner_tag)
            and ranges_overlap(interval.start, interval.end, range_start, range_end)
        ]


def intervals_from_events(
    events: Sequence[dict[str, Any]],
    registry: ResourceRegistry,
    config: FacilityCalendarConfig = DEFAULT_CALENDAR_CONFIG,
) -> list[BusyInterval]:
    """Convert Microsoft Graph style events into busy intervals.

    The owner tag is resolved once here: the first category naming a
    known resource (by id or name) wins, then the first attendee whose
    email belongs to a resource. Events matching no resource keep their
    first category as tag, or none at all.

    Events with missing or inverted times are skipped with a warning.
    """
    intervals = []
    for event in events:
        try:
            start = _parse_event_time(event.get("start"), config)
            end = _parse_event_time(event.get("end"), config)
            intervals.append(
                BusyInterval(
                    start=start,
                    end=end,
                    location=_event_location(event),
                    owner_tag=_resolve_owner_tag(event, registry),
                    subject=event.get("subject") or "",
                )
            )
        except (InvalidInputError, ValueError, OverflowError) as e:
            logger.warning("Skipping calendar event %r: %s", event.get("subject"), e)
    return intervals


def _parse_event_time(data: Optional[dict[str, Any]], config: FacilityCalendarConfig) -> datetime:
    if not isinstance(data, dict):
        raise InvalidInputError(f"event time must be an object, got {data!r}")
    if not data.get("dateTime"):
        raise InvalidInputError("event has no dateTime")
    value = data["dateTime"]
    moment = value if isinstance(value, datetime) else date_parser.isoparse(value)
    if moment.tzinfo is None and data.get("timeZone"):
        try:
            moment = pytz.timezone(data["timeZone"]).localize(moment)
        except pytz.UnknownTimeZoneError:
            logger.warning(
                "Unknown event timezone %r, assuming %s", data["timeZone"], config.timezone
            )
    return config.to_local(moment)


def _event_location(event: dict[str, Any]) -> Optional[str]:
    location = event.get("location")
    if isinstance(location, dict):
        return location.get("displayName") or None
    return location or None


def _resolve_owner_tag(event: dict[str, Any], registry: ResourceRegistry) -> Optional[str]:
    categories = event.get("categories") or []
    for category in categories:
        resource = registry.resolve_owner(category)
        if resource is not None:
            return resource.id

    for attendee in event.get("attendees") or []:
        if not isinstance(attendee, dict):
            continue
        email = attendee.get("emailAddress")
        address = email.get("address") if isinstance(email, dict) else None
        resource = registry.resolve_owner(address)
        if resource is not None:
            return resource.id

    return categories[0] if categories else None
