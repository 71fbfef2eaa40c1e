"""High-level slot search.

This module provides the SlotFinder, which ties together the calendar
source, slot generation and validation: fetch a fresh busy-interval
snapshot, then either validate one manually chosen slot or generate and
filter candidates over the horizon.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional, Union

from lexslot.calendar.sources import CalendarSource
from lexslot.config import Settings
from lexslot.domain.models import BusyInterval, ProposedSlot
from lexslot.domain.registry import ResourceRegistry
from lexslot.errors import DataUnavailableError, InvalidInputError, SchedulingError
from lexslot.scheduling.slot_generator import SlotGenerator
from lexslot.validation.validator import SlotDecision, SlotValidator

logger = logging.getLogger(__name__)


class SearchMode(Enum):
    """How the caller picks the slot."""

    AUTO = "auto"  # Enumerate every admissible slot in the horizon
    MANUAL = "manual"  # Check one caller-chosen slot


@dataclass(frozen=True)
class SlotRequest:
    """Parameters of one slot search.

    Attributes:
        resource_id: Resource to book.
        location: Requested location.
        mode: AUTO or MANUAL.
        manual_start: Start of the chosen slot (MANUAL only).
        duration_minutes: Length of the chosen slot (MANUAL only);
            defaults to the facility slot duration.
    """

    resource_id: str
    location: str
    mode: SearchMode = SearchMode.AUTO
    manual_start: Optional[datetime] = None
    duration_minutes: Optional[int] = None


@dataclass
class SlotSearchResult:
    """Admissible slots plus the candidates that were turned down."""

    slots: list[ProposedSlot] = field(default_factory=list)
    rejections: list[tuple[ProposedSlot, SlotDecision]] = field(default_factory=list)

    @property
    def no_slots_found(self) -> bool:
        """True when the search ran fine but nothing is admissible."""
        return not self.slots

    @property
    def next_available(self) -> Optional[ProposedSlot]:
        return self.slots[0] if self.slots else None


class SlotFinder:
    """Finds admissible appointment slots for a resource.

    The finder holds no session state; every call fetches its own
    snapshot, so results are only as fresh as that fetch. Committing a
    booking, and any locking that requires, happens elsewhere.

    Example:
        >>> finder = SlotFinder(registry, calendar_source, Settings.default())
        >>> result = finder.find(SlotRequest(resource_id="DH", location="office"))
        >>> result.next_available
    """

    def __init__(
        self,
        registry: ResourceRegistry,
        calendar_source: CalendarSource,
        settings: Optional[Settings] = None,
    ):
        self.registry = registry
        self.calendar_source = calendar_source
        self.settings = settings or Settings.default()
        self.generator = SlotGenerator(self.settings.calendar)
        self.validator = SlotValidator(
            registry,
            config=self.settings.calendar,
            availability=self.settings.availability,
            virtual_pair=self.settings.virtual_pair,
        )

    def find(
        self,
        request: SlotRequest,
        now: Optional[Union[date, datetime]] = None,
    ) -> SlotSearchResult:
        """Run a search.

        Args:
            request: What to look for.
            now: Start of the horizon; defaults to the current time.

        Raises:
            ResourceNotFoundError: If the resource id is unknown.
            InvalidInputError: If a MANUAL request has no start or a
                non-positive duration.
            DataUnavailableError: If busy intervals could not be fetched.
        """
        config = self.settings.calendar
        resource = self.registry.get(request.resource_id)
        if now is None:
            now = datetime.now(config.tz)

        if request.mode is SearchMode.MANUAL:
            slot = self._manual_slot(request)
            intervals = self.fetch_snapshot(slot.start, slot.end)
            decision = self.validator.check(resource.id, slot, intervals)
            if decision:
                return SlotSearchResult(slots=[slot])
            return SlotSearchResult(rejections=[(slot, decision)])

        if isinstance(now, datetime):
            range_start = config.to_local(now)
        else:
            range_start = config.localize(now, datetime.min.time())
        range_end = range_start + timedelta(days=config.horizon_days)
        intervals = self.fetch_snapshot(range_start, range_end)

        result = SlotSearchResult()
        for slot in self.generator.generate(resource, request.location, intervals, now):
            decision = self.validator.check(resource.id, slot, intervals)
            if decision:
                result.slots.append(slot)
            else:
                result.rejections.append((slot, decision))

        if result.no_slots_found:
            logger.info(
                "No %s slots available for %s in the next %d days",
                request.location,
                resource.id,
                config.horizon_days,
            )
        return result

    def fetch_snapshot(self, range_start: datetime, range_end: datetime) -> list[BusyInterval]:
        """Fetch busy intervals of every resource in a range.

        Office and virtual conflicts depend on other resources' bookings,
        so the snapshot always covers the whole roster. The break buffer
        can reach past the range, so it is widened by a day on each side.

        Source failures become DataUnavailableError; SchedulingError
        subclasses raised by the source propagate unchanged.
        """
        range_start -= timedelta(days=1)
        range_end += timedelta(days=1)
        intervals = []
        for resource in self.registry.list_resources():
            try:
                fetched = self.calendar_source.fetch_busy_intervals(
                    resource.id, range_start, range_end
                )
            except SchedulingError:
                raise
            except Exception as e:
                raise DataUnavailableError(
                    f"Could not fetch busy intervals for {resource.id}: {e}"
                ) from e
            if fetched is None:
                raise DataUnavailableError(f"Calendar source returned no data for {resource.id}")
            intervals.extend(fetched)
        return intervals

    def _manual_slot(self, request: SlotRequest) -> ProposedSlot:
        if request.manual_start is None:
            raise InvalidInputError("A manual search needs a start time")
        duration = request.duration_minutes or self.settings.calendar.slot_minutes
        if duration <= 0:
            raise InvalidInputError(f"Slot duration must be positive, got {duration}")
        start = self.settings.calendar.to_local(request.manual_start)
        return ProposedSlot(
            start=start,
            end=start + timedelta(minutes=duration),
            location=request.location,
        )
