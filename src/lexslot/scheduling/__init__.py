"""Slot generation and search."""

from lexslot.scheduling.scheduler import (
    SearchMode,
    SlotFinder,
    SlotRequest,
    SlotSearchResult,
)
from lexslot.scheduling.slot_generator import SlotGenerator

__all__ = [
    "SearchMode",
    "SlotFinder",
    "SlotGenerator",
    "SlotRequest",
    "SlotSearchResult",
]
