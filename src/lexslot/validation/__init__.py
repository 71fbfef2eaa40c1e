"""Conflict rule engine for proposed slots."""

from lexslot.validation.validator import (
    ConflictReason,
    SlotDecision,
    SlotValidator,
)

__all__ = [
    "ConflictReason",
    "SlotDecision",
    "SlotValidator",
]
