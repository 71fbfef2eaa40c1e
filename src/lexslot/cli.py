"""Command-line interface for the lexslot scheduling engine."""

import argparse
import json
import logging
import sys
from typing import Optional

from dateutil import parser as date_parser

from lexslot.calendar.mock import MockCalendarSource
from lexslot.calendar.sources import CalendarSource, StaticCalendarSource, intervals_from_events
from lexslot.config import Settings, load_settings
from lexslot.domain.registry import ResourceRegistry
from lexslot.errors import SchedulingError
from lexslot.scheduling.scheduler import SearchMode, SlotFinder, SlotRequest

SAMPLE_ROSTER = {
    "lawyers": [
        {
            "id": "MM",
            "name": "Martine Morin",
            "email": "mm@example.com",
            "workingHours": {"start": "09:00", "end": "17:00"},
            "breakMinutes": 30,
            "maxDailyAppointments": 6,
            "specialties": ["divorce", "estate", "real_estate"],
        },
        {
            "id": "DH",
            "name": "Denis Hamel",
            "email": "dh@example.com",
            "workingHours": {"start": "09:00", "end": "17:00"},
            "breakMinutes": 15,
            "maxDailyAppointments": 4,
            "specialties": ["employment", "contract", "business"],
        },
        {
            "id": "TG",
            "name": "Thomas Girard",
            "email": "tg@example.com",
            "workingHours": {"start": "10:00", "end": "16:00"},
            "breakMinutes": 15,
            "maxDailyAppointments": 3,
            "specialties": ["defamations", "name_change", "mandates"],
        },
    ]
}


def create_sample_registry() -> ResourceRegistry:
    """Roster used when no roster file is given."""
    return ResourceRegistry.from_dict(SAMPLE_ROSTER)


def build_calendar_source(
    registry: ResourceRegistry,
    settings: Settings,
    events_path: Optional[str],
    seed: Optional[int],
) -> CalendarSource:
    """Serve events from a JSON export, or mock data if none is given."""
    if events_path is None:
        return MockCalendarSource(
            registry, settings.calendar, settings.availability, seed=seed
        )
    with open(events_path, encoding="utf-8") as f:
        data = json.load(f)
    # Graph wraps result lists in {"value": [...]}.
    events = data.get("value", []) if isinstance(data, dict) else data
    return StaticCalendarSource(
        intervals_from_events(events, registry, settings.calendar), registry
    )


def run_slots(args: argparse.Namespace) -> int:
    """Print every admissible slot in the horizon."""
    finder = _build_finder(args)
    result = finder.find(SlotRequest(resource_id=args.resource, location=args.location))

    print(f"Available {args.location} slots for {args.resource}:")
    if result.no_slots_found:
        print(f"  None in the next {finder.settings.calendar.horizon_days} days")
        return 1

    for slot in result.slots[: args.limit]:
        print(f"  {slot.start:%a %Y-%m-%d %H:%M} - {slot.end:%H:%M}")
    if len(result.slots) > args.limit:
        print(f"  ... and {len(result.slots) - args.limit} more")

    if args.show_rejected:
        print(f"\nRejected candidates ({len(result.rejections)}):")
        for slot, decision in result.rejections:
            print(f"  {slot.start:%a %Y-%m-%d %H:%M}: {decision}")
    return 0


def run_check(args: argparse.Namespace) -> int:
    """Check one manually chosen slot."""
    finder = _build_finder(args)
    start = date_parser.parse(args.start)
    request = SlotRequest(
        resource_id=args.resource,
        location=args.location,
        mode=SearchMode.MANUAL,
        manual_start=start,
        duration_minutes=args.duration,
    )
    result = finder.find(request)

    if result.slots:
        slot = result.slots[0]
        print(f"Slot {slot.start:%Y-%m-%d %H:%M}-{slot.end:%H:%M} is available")
        return 0

    slot, decision = result.rejections[0]
    print(f"Slot {slot.start:%Y-%m-%d %H:%M}-{slot.end:%H:%M} rejected: {decision}")
    return 1


def _build_finder(args: argparse.Namespace) -> SlotFinder:
    settings = load_settings(args.settings)
    if args.roster:
        registry = ResourceRegistry.from_json_file(args.roster)
    else:
        registry = create_sample_registry()
    source = build_calendar_source(registry, settings, args.events, args.seed)
    return SlotFinder(registry, source, settings)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Appointment slot finder with conflict checking",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Log rule decisions (-v) or everything (-vv)",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--resource", "-r", required=True, help="Resource id, e.g. DH")
    common.add_argument(
        "--location", "-l",
        default="office",
        help="Appointment location: office, phone, teams, ... (default: office)",
    )
    common.add_argument("--roster", help="Roster JSON file (default: built-in sample)")
    common.add_argument("--settings", help="Facility settings JSON file")
    common.add_argument(
        "--events", "-e",
        help="Calendar events JSON export (default: mock calendar)",
    )
    common.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the mock calendar",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    slots_parser = subparsers.add_parser(
        "slots",
        parents=[common],
        help="List admissible slots over the horizon",
    )
    slots_parser.add_argument(
        "--limit", "-n",
        type=int,
        default=20,
        help="Maximum number of slots to print (default: 20)",
    )
    slots_parser.add_argument(
        "--show-rejected",
        action="store_true",
        help="Also list generated candidates that failed validation",
    )

    check_parser = subparsers.add_parser(
        "check",
        parents=[common],
        help="Check a manually chosen slot",
    )
    check_parser.add_argument(
        "--start", "-s",
        required=True,
        help="Slot start, e.g. '2024-06-10 11:15' (facility-local)",
    )
    check_parser.add_argument(
        "--duration", "-d",
        type=int,
        default=None,
        help="Slot length in minutes (default: facility slot length)",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose > 1 else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    try:
        if args.command == "slots":
            return run_slots(args)
        elif args.command == "check":
            return run_check(args)
        else:
            parser.print_help()
            return 1
    except (SchedulingError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
