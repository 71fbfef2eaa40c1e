"""Loading of facility settings from JSON.

A settings file looks like::

    {
        "timezone": "America/Toronto",
        "lunchWindow": {"start": "13:00", "end": "14:00"},
        "horizonDays": 14,
        "slotMinutes": 60,
        "unavailability": {"DH": {"office": ["Monday"]}},
        "virtualPair": ["DH", "TG"]
    }

Every key is optional. Settings are read once at startup and never
mutated afterwards.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from lexslot.domain.models import parse_wall_time
from lexslot.domain.policies import (
    FacilityCalendarConfig,
    LocationAvailabilityRule,
    VirtualConflictPair,
)
from lexslot.errors import InvalidInputError

logger = logging.getLogger(__name__)

DEFAULT_UNAVAILABILITY = {
    "DH": {"office": ["Monday"]},
    "TG": {"office": ["Friday"]},
}
DEFAULT_VIRTUAL_PAIR = ("DH", "TG")


@dataclass(frozen=True)
class Settings:
    """Static configuration consumed by the scheduling core."""

    calendar: FacilityCalendarConfig = field(default_factory=FacilityCalendarConfig)
    availability: LocationAvailabilityRule = field(default_factory=LocationAvailabilityRule)
    virtual_pair: Optional[VirtualConflictPair] = None

    @classmethod
    def default(cls) -> "Settings":
        """Default firm settings: DH and TG share a phone line."""
        return cls.from_dict({})

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        defaults = FacilityCalendarConfig()
        lunch = data.get("lunchWindow", {})
        calendar = FacilityCalendarConfig(
            timezone=data.get("timezone", defaults.timezone),
            lunch_start=(
                parse_wall_time(lunch["start"]) if "start" in lunch else defaults.lunch_start
            ),
            lunch_end=parse_wall_time(lunch["end"]) if "end" in lunch else defaults.lunch_end,
            horizon_days=int(data.get("horizonDays", defaults.horizon_days)),
            slot_minutes=int(data.get("slotMinutes", defaults.slot_minutes)),
        )

        availability = LocationAvailabilityRule.from_mapping(
            data.get("unavailability", DEFAULT_UNAVAILABILITY)
        )

        pair = data.get("virtualPair", DEFAULT_VIRTUAL_PAIR)
        if pair is None:
            virtual_pair = None
        elif len(pair) == 2:
            virtual_pair = VirtualConflictPair(pair[0], pair[1])
        else:
            raise InvalidInputError(f"virtualPair needs exactly two resource ids, got {pair!r}")

        return cls(calendar=calendar, availability=availability, virtual_pair=virtual_pair)


def load_settings(path: Union[str, Path, None] = None) -> Settings:
    """Load settings from a JSON file, or the defaults when no path is given."""
    if path is None:
        return Settings.default()
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    settings = Settings.from_dict(data)
    logger.debug("Loaded settings from %s: %s", path, settings.calendar)
    return settings
