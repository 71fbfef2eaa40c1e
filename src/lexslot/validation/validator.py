"""Conflict rule engine for proposed appointment slots.

This module is the single source of truth for slot admissibility. A slot
is valid iff every rule in an ordered pipeline reports no conflict. Each
rule is a plain function over a RuleContext, so rules can be tested on
their own and new ones appended to the pipeline.

DEFAULT_RULES appends a sixth rule, double_booking_rule, after the five
firm rules. It rejects any slot overlapping one of the resource's own
bookings, whatever its location, so it is stricter than the five rules
alone. Pass a custom rule sequence to SlotValidator to drop it.

Rules fail open on malformed busy-interval data (missing owner tag or
location): the interval is skipped by that rule and a warning is logged.
The entry points fail closed on an unknown resource or a malformed slot.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Sequence

from lexslot.domain.intervals import is_same_day, minutes_between, overlaps
from lexslot.domain.models import BusyInterval, LocationKind, ProposedSlot, Resource
from lexslot.domain.policies import (
    DEFAULT_CALENDAR_CONFIG,
    FacilityCalendarConfig,
    LocationAvailabilityRule,
    VirtualConflictPair,
)
from lexslot.domain.registry import ResourceRegistry
from lexslot.errors import InvalidInputError

logger = logging.getLogger(__name__)


class ConflictReason(Enum):
    """Why a proposed slot was rejected."""

    LOCATION_UNAVAILABLE = "location_unavailable"
    DAILY_LIMIT_REACHED = "daily_limit_reached"
    OFFICE_CONFLICT = "office_conflict"
    VIRTUAL_CONFLICT = "virtual_conflict"
    BREAK_TOO_SHORT = "break_too_short"
    RESOURCE_DOUBLE_BOOKED = "resource_double_booked"


@dataclass(frozen=True)
class Conflict:
    """A single rule violation."""

    reason: ConflictReason
    message: str
    interval: Optional[BusyInterval] = None


@dataclass(frozen=True)
class SlotDecision:
    """Outcome of validating one slot: valid, or rejected with a reason."""

    is_valid: bool
    reason: Optional[ConflictReason] = None
    message: str = ""
    conflicting_interval: Optional[BusyInterval] = None

    @classmethod
    def valid(cls) -> "SlotDecision":
        return cls(is_valid=True)

    @classmethod
    def rejected(cls, conflict: Conflict) -> "SlotDecision":
        return cls(
            is_valid=False,
            reason=conflict.reason,
            message=conflict.message,
            conflicting_interval=conflict.interval,
        )

    def __bool__(self) -> bool:
        return self.is_valid

    def __str__(self) -> str:
        if self.is_valid:
            return "valid"
        return f"[{self.reason.value}] {self.message}"


@dataclass(frozen=True)
class RuleContext:
    """Everything a rule may look at for one validation pass."""

    resource: Resource
    slot: ProposedSlot
    intervals: Sequence[BusyInterval]
    config: FacilityCalendarConfig
    availability: LocationAvailabilityRule
    virtual_pair: Optional[VirtualConflictPair]
    registry: ResourceRegistry

    def owned_by(self, resource: Resource, rule: str) -> list[BusyInterval]:
        """Intervals tagged to a resource, skipping untagged ones."""
        owned = []
        for interval in self.intervals:
            if interval.owner_tag is None:
                _warn_skipped(rule, interval, "no owner tag")
                continue
            if resource.matches_tag(interval.owner_tag):
                owned.append(interval)
        return owned


Rule = Callable[[RuleContext], Optional[Conflict]]


def _warn_skipped(rule: str, interval: BusyInterval, problem: str) -> None:
    logger.warning("%s rule ignoring interval with %s: %r", rule, problem, interval)


def _span(ctx: RuleContext, interval: BusyInterval) -> str:
    start = ctx.config.to_local(interval.start)
    end = ctx.config.to_local(interval.end)
    return f"{start:%H:%M}-{end:%H:%M}"


def availability_rule(ctx: RuleContext) -> Optional[Conflict]:
    """Reject a location the resource does not work at on this weekday."""
    weekday = ctx.config.weekday_name(ctx.slot.start)
    if ctx.availability.is_unavailable(ctx.resource.id, ctx.slot.location, weekday):
        return Conflict(
            ConflictReason.LOCATION_UNAVAILABLE,
            f"{ctx.resource.id} is not available for {ctx.slot.location} on {weekday}",
        )
    return None


def daily_limit_rule(ctx: RuleContext) -> Optional[Conflict]:
    """Reject when the resource already has its daily cap of bookings."""
    same_day = [
        interval
        for interval in ctx.owned_by(ctx.resource, "daily-limit")
        if is_same_day(interval.start, ctx.slot.start, ctx.config)
    ]
    cap = ctx.resource.max_daily_appointments
    if len(same_day) >= cap:
        day = ctx.config.local_date(ctx.slot.start)
        return Conflict(
            ConflictReason.DAILY_LIMIT_REACHED,
            f"{ctx.resource.id} already has {len(same_day)} appointments on {day} (cap {cap})",
        )
    return None


def office_conflict_rule(ctx: RuleContext) -> Optional[Conflict]:
    """Reject an office slot when anyone else is in the office."""
    if ctx.slot.location_kind is not LocationKind.OFFICE:
        return None
    for interval in ctx.intervals:
        if interval.location is None:
            _warn_skipped("office", interval, "no location")
            continue
        if interval.location_kind is LocationKind.OFFICE and overlaps(ctx.slot, interval):
            return Conflict(
                ConflictReason.OFFICE_CONFLICT,
                f"Office already booked by {interval.owner_tag} "
                f"{_span(ctx, interval)}",
                interval,
            )
    return None


def virtual_conflict_rule(ctx: RuleContext) -> Optional[Conflict]:
    """Reject a virtual slot when the paired resource is on a virtual call."""
    if ctx.virtual_pair is None or ctx.slot.location_kind is not LocationKind.VIRTUAL:
        return None
    partner_id = ctx.virtual_pair.partner_of(ctx.resource.id)
    if partner_id is None:
        return None

    for interval in ctx.intervals:
        if interval.owner_tag is None:
            _warn_skipped("virtual", interval, "no owner tag")
            continue
        if interval.location is None:
            _warn_skipped("virtual", interval, "no location")
            continue
        if not _tag_refers_to(interval.owner_tag, partner_id, ctx):
            continue
        if interval.location_kind is LocationKind.VIRTUAL and overlaps(ctx.slot, interval):
            return Conflict(
                ConflictReason.VIRTUAL_CONFLICT,
                f"{partner_id} is on a virtual meeting "
                f"{_span(ctx, interval)}",
                interval,
            )
    return None


def break_buffer_rule(ctx: RuleContext) -> Optional[Conflict]:
    """Reject when the gap to the previous or next booking is too short."""
    required = ctx.resource.break_minutes
    previous = None
    following = None
    for interval in ctx.owned_by(ctx.resource, "break-buffer"):
        if interval.end <= ctx.slot.start:
            if previous is None or interval.end > previous.end:
                previous = interval
        elif interval.start >= ctx.slot.end:
            if following is None or interval.start < following.start:
                following = interval

    if previous is not None:
        gap = minutes_between(previous.end, ctx.slot.start)
        if gap < required:
            return Conflict(
                ConflictReason.BREAK_TOO_SHORT,
                f"Only {gap:g} min after previous appointment ({required} required)",
                previous,
            )
    if following is not None:
        gap = minutes_between(ctx.slot.end, following.start)
        if gap < required:
            return Conflict(
                ConflictReason.BREAK_TOO_SHORT,
                f"Only {gap:g} min before next appointment ({required} required)",
                following,
            )
    return None


def double_booking_rule(ctx: RuleContext) -> Optional[Conflict]:
    """Reject a slot overlapping one of the resource's own bookings."""
    for interval in ctx.owned_by(ctx.resource, "double-booking"):
        if overlaps(ctx.slot, interval):
            return Conflict(
                ConflictReason.RESOURCE_DOUBLE_BOOKED,
                f"{ctx.resource.id} is already booked "
                f"{_span(ctx, interval)}",
                interval,
            )
    return None


def _tag_refers_to(tag: str, resource_id: str, ctx: RuleContext) -> bool:
    partner = ctx.registry.find(resource_id)
    if partner is None:
        return tag.strip() == resource_id
    return partner.matches_tag(tag)


DEFAULT_RULES: tuple[Rule, ...] = (
    availability_rule,
    daily_limit_rule,
    office_conflict_rule,
    virtual_conflict_rule,
    break_buffer_rule,
    double_booking_rule,
)


class SlotValidator:
    """Validates proposed slots against the conflict rule pipeline.

    Example:
        >>> validator = SlotValidator(registry)
        >>> decision = validator.check("DH", slot, busy_intervals)
        >>> if not decision:
        ...     print(decision.reason)
    """

    def __init__(
        self,
        registry: ResourceRegistry,
        config: Optional[FacilityCalendarConfig] = None,
        availability: Optional[LocationAvailabilityRule] = None,
        virtual_pair: Optional[VirtualConflictPair] = None,
        rules: Sequence[Rule] = DEFAULT_RULES,
    ):
        self.registry = registry
        self.config = config or DEFAULT_CALENDAR_CONFIG
        self.availability = availability or LocationAvailabilityRule()
        self.virtual_pair = virtual_pair
        self.rules = tuple(rules)

    def check(
        self,
        resource_id: str,
        slot: ProposedSlot,
        intervals: Sequence[BusyInterval],
    ) -> SlotDecision:
        """Run the rules in order and report the first conflict.

        Raises:
            ResourceNotFoundError: If the resource id is unknown.
            InvalidInputError: If the slot ends at or before its start.
        """
        ctx = self._context(resource_id, slot, intervals)
        for rule in self.rules:
            conflict = rule(ctx)
            if conflict is not None:
                logger.info(
                    "Slot %r for %s rejected: [%s] %s",
                    ctx.slot,
                    resource_id,
                    conflict.reason.value,
                    conflict.message,
                )
                return SlotDecision.rejected(conflict)
        return SlotDecision.valid()

    def check_all(
        self,
        resource_id: str,
        slot: ProposedSlot,
        intervals: Sequence[BusyInterval],
    ) -> list[SlotDecision]:
        """Run every rule and return all rejections (empty if valid)."""
        ctx = self._context(resource_id, slot, intervals)
        decisions = []
        for rule in self.rules:
            conflict = rule(ctx)
            if conflict is not None:
                decisions.append(SlotDecision.rejected(conflict))
        return decisions

    def is_valid_slot(
        self,
        resource_id: str,
        slot: ProposedSlot,
        intervals: Sequence[BusyInterval],
    ) -> bool:
        """Check a slot and return only the verdict."""
        return self.check(resource_id, slot, intervals).is_valid

    def _context(
        self,
        resource_id: str,
        slot: ProposedSlot,
        intervals: Sequence[BusyInterval],
    ) -> RuleContext:
        resource = self.registry.get(resource_id)
        slot = replace(
            slot,
            start=self.config.to_local(slot.start),
            end=self.config.to_local(slot.end),
        )
        if slot.end <= slot.start:
            raise InvalidInputError(f"Slot {slot!r} ends at or before it starts")
        return RuleContext(
            resource=resource,
            slot=slot,
            intervals=[self._localized(interval) for interval in intervals],
            config=self.config,
            availability=self.availability,
            virtual_pair=self.virtual_pair,
            registry=self.registry,
        )

    def _localized(self, interval: BusyInterval) -> BusyInterval:
        if interval.start.tzinfo is not None and interval.end.tzinfo is not None:
            return interval
        return replace(
            interval,
            start=self.config.to_local(interval.start),
            end=self.config.to_local(interval.end),
        )
