"""Pure predicates over time ranges.

Intervals are half-open: a range that ends exactly when another starts
does not overlap it.
"""

from datetime import datetime
from typing import Optional, Protocol

from lexslot.domain.models import LocationKind, classify_location
from lexslot.domain.policies import DEFAULT_CALENDAR_CONFIG, FacilityCalendarConfig


class TimeRange(Protocol):
    start: datetime
    end: datetime


def overlaps(a: TimeRange, b: TimeRange) -> bool:
    """Check whether two time ranges intersect."""
    return a.start < b.end and b.start < a.end


def ranges_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """Same as overlaps() for bare endpoints."""
    return start_a < end_b and start_b < end_a


def is_same_day(
    a: datetime,
    b: datetime,
    config: FacilityCalendarConfig = DEFAULT_CALENDAR_CONFIG,
) -> bool:
    """Check whether two instants fall on the same facility-local date."""
    return config.local_date(a) == config.local_date(b)


def is_lunch_overlap(
    slot_start: datetime,
    slot_end: datetime,
    config: FacilityCalendarConfig = DEFAULT_CALENDAR_CONFIG,
) -> bool:
    """Check whether a slot intersects the lunch window of its start date."""
    slot_start = config.to_local(slot_start)
    slot_end = config.to_local(slot_end)
    lunch_start, lunch_end = config.lunch_window(slot_start.date())
    return ranges_overlap(slot_start, slot_end, lunch_start, lunch_end)


def is_virtual_location(location: Optional[str]) -> bool:
    """Check whether a location denotes a phone or Teams meeting."""
    return classify_location(location) is LocationKind.VIRTUAL


def is_office_location(location: Optional[str]) -> bool:
    """Check whether a location denotes the shared physical office."""
    return classify_location(location) is LocationKind.OFFICE


def minutes_between(earlier: datetime, later: datetime) -> float:
    """Minutes from one instant to another (negative if reversed)."""
    return (later - earlier).total_seconds() / 60
