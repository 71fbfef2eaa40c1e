"""Slot generator for enumerating open appointment candidates.

This module sweeps a resource's working calendar across a multi-day
horizon and packs fixed-duration slots into the gaps left by the
resource's own busy intervals, lunch, and break buffers.

Generation only looks at the resource's own intervals. Office and virtual
conflicts involve other resources, so every generated slot still has to
go through the SlotValidator before it is offered.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Sequence, Union

from lexslot.domain.intervals import is_lunch_overlap
from lexslot.domain.models import BusyInterval, ProposedSlot, Resource
from lexslot.domain.policies import DEFAULT_CALENDAR_CONFIG, FacilityCalendarConfig

logger = logging.getLogger(__name__)

SATURDAY = 5


class SlotGenerator:
    """Generates open slots for a resource over a rolling horizon.

    Per weekday in the horizon:
    - Build the working window from the resource's working hours
    - Sweep a cursor across the resource's busy intervals in start order
    - Pack contiguous slots into each gap, stopping a break short of the
      next interval and skipping slots that touch the lunch window
    - Resume a break after each interval ends

    Days on which the resource has already reached its daily cap yield
    nothing, so every generated slot passes the daily-limit and
    break-buffer rules against the same snapshot.
    """

    def __init__(self, config: Optional[FacilityCalendarConfig] = None):
        self.config = config or DEFAULT_CALENDAR_CONFIG

    def generate(
        self,
        resource: Resource,
        location: str,
        intervals: Sequence[BusyInterval],
        horizon_start: Union[date, datetime],
        horizon_days: Optional[int] = None,
    ) -> list[ProposedSlot]:
        """Generate candidate slots in ascending start order.

        Args:
            resource: The resource to generate slots for.
            location: Location stamped on every generated slot.
            intervals: Busy-interval snapshot; other resources' intervals
                are ignored.
            horizon_start: First day of the horizon. When a datetime is
                given, slots starting before it are dropped.
            horizon_days: Number of calendar days to cover (defaults to
                the facility configuration).

        Returns:
            List of ProposedSlot objects, earliest first.
        """
        if horizon_days is None:
            horizon_days = self.config.horizon_days

        earliest = None
        if isinstance(horizon_start, datetime):
            earliest = self.config.to_local(horizon_start)
            first_day = earliest.date()
        else:
            first_day = horizon_start

        owned = self._owned_intervals(resource, intervals)

        slots = []
        for offset in range(horizon_days):
            day = first_day + timedelta(days=offset)
            if day.weekday() >= SATURDAY:
                continue
            for slot in self._generate_day(resource, location, owned, day):
                if earliest is None or slot.start >= earliest:
                    slots.append(slot)

        logger.debug(
            "Generated %d %s slots for %s over %d days from %s",
            len(slots),
            location,
            resource.id,
            horizon_days,
            first_day,
        )
        return slots

    def next_available(
        self,
        resource: Resource,
        location: str,
        intervals: Sequence[BusyInterval],
        horizon_start: Union[date, datetime],
        horizon_days: Optional[int] = None,
    ) -> Optional[ProposedSlot]:
        """Return the earliest candidate slot, or None."""
        slots = self.generate(resource, location, intervals, horizon_start, horizon_days)
        return slots[0] if slots else None

    def _owned_intervals(
        self,
        resource: Resource,
        intervals: Sequence[BusyInterval],
    ) -> list[BusyInterval]:
        """The resource's own intervals in local time, sorted by start."""
        owned = []
        for interval in intervals:
            if interval.owner_tag is None:
                logger.warning("Slot generation ignoring untagged interval: %r", interval)
                continue
            if resource.matches_tag(interval.owner_tag):
                owned.append(
                    BusyInterval(
                        start=self.config.to_local(interval.start),
                        end=self.config.to_local(interval.end),
                        location=interval.location,
                        owner_tag=interval.owner_tag,
                        subject=interval.subject,
                    )
                )
        owned.sort(key=lambda interval: interval.start)
        return owned

    def _generate_day(
        self,
        resource: Resource,
        location: str,
        owned: list[BusyInterval],
        day: date,
    ) -> list[ProposedSlot]:
        booked_today = sum(1 for interval in owned if interval.start.date() == day)
        if booked_today >= resource.max_daily_appointments:
            logger.debug("%s is fully booked on %s", resource.id, day)
            return []

        work_start = self.config.localize(day, resource.working_hours.start)
        work_end = self.config.localize(day, resource.working_hours.end)
        buffer = timedelta(minutes=resource.break_minutes)

        # Anything within a break of the window constrains it, even if it
        # lies outside working hours or on another day.
        blocks = [
            interval
            for interval in owned
            if interval.end + buffer > work_start and interval.start - buffer < work_end
        ]

        slots = []
        cursor = work_start
        for block in blocks:
            slots.extend(self._pack(cursor, min(block.start - buffer, work_end), location))
            cursor = max(cursor, block.end + buffer)

        slots.extend(self._pack(cursor, work_end, location))
        return slots

    def _pack(self, start: datetime, limit: datetime, location: str) -> list[ProposedSlot]:
        """Pack contiguous slots into [start, limit), skipping lunch."""
        duration = timedelta(minutes=self.config.slot_minutes)
        slots = []
        cursor = start
        while cursor + duration <= limit:
            end = cursor + duration
            if not is_lunch_overlap(cursor, end, self.config):
                slots.append(ProposedSlot(start=cursor, end=end, location=location))
            cursor = end
        return slots
