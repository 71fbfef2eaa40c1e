"""Domain models, policies and interval utilities for scheduling."""

from lexslot.domain.intervals import (
    is_lunch_overlap,
    is_office_location,
    is_same_day,
    is_virtual_location,
    overlaps,
)
from lexslot.domain.models import (
    BusyInterval,
    LocationKind,
    ProposedSlot,
    Resource,
    WorkingHours,
    classify_location,
)
from lexslot.domain.policies import (
    FacilityCalendarConfig,
    LocationAvailabilityRule,
    VirtualConflictPair,
)
from lexslot.domain.registry import ResourceRegistry

__all__ = [
    # Models
    "BusyInterval",
    "LocationKind",
    "ProposedSlot",
    "Resource",
    "WorkingHours",
    "classify_location",
    # Policies
    "FacilityCalendarConfig",
    "LocationAvailabilityRule",
    "VirtualConflictPair",
    # Registry
    "ResourceRegistry",
    # Interval utilities
    "is_lunch_overlap",
    "is_office_location",
    "is_same_day",
    "is_virtual_location",
    "overlaps",
]
