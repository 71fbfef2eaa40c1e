"""Tests for calendar data sources."""

import logging
from datetime import datetime, timedelta

import pytest
import pytz

from lexslot.calendar.mock import MockCalendarSource
from lexslot.calendar.sources import StaticCalendarSource, intervals_from_events
from lexslot.domain.intervals import is_lunch_overlap, overlaps
from lexslot.domain.models import BusyInterval, Resource
from lexslot.domain.policies import LocationAvailabilityRule
from lexslot.domain.registry import ResourceRegistry
from lexslot.errors import ResourceNotFoundError

TZ = pytz.timezone("America/Toronto")


def at(hour: int, minute: int = 0, day: int = 11) -> datetime:
    return TZ.localize(datetime(2024, 6, day, hour, minute))


@pytest.fixture
def registry():
    return ResourceRegistry(
        [
            Resource(id="MM", name="Martine Morin", email="mm@example.com"),
            Resource(id="DH", name="Denis Hamel", email="dh@example.com"),
            Resource(id="TG", name="Thomas Girard", email="tg@example.com"),
        ]
    )


def graph_event(start, end, location="Office", categories=None, attendees=None, **extra):
    event = {
        "subject": "Consultation",
        "start": {"dateTime": start, "timeZone": "America/Toronto"},
        "end": {"dateTime": end, "timeZone": "America/Toronto"},
        "location": {"displayName": location},
        "categories": categories or [],
        "attendees": attendees or [],
    }
    event.update(extra)
    return event


class TestIntervalsFromEvents:
    """Tests for Graph event ingestion."""

    def test_basic_event(self, registry):
        events = [
            graph_event(
                "2024-06-11T10:00:00.0000000",
                "2024-06-11T11:00:00.0000000",
                categories=["DH"],
            )
        ]
        [interval] = intervals_from_events(events, registry)
        assert interval.start == at(10)
        assert interval.end == at(11)
        assert interval.location == "Office"
        assert interval.owner_tag == "DH"
        assert interval.subject == "Consultation"

    def test_owner_resolved_from_category_name(self, registry):
        events = [
            graph_event("2024-06-11T10:00:00", "2024-06-11T11:00:00", categories=["Red", "Thomas Girard"])
        ]
        assert intervals_from_events(events, registry)[0].owner_tag == "TG"

    def test_owner_resolved_from_attendee_email(self, registry):
        events = [
            graph_event(
                "2024-06-11T10:00:00",
                "2024-06-11T11:00:00",
                attendees=[{"emailAddress": {"name": "Martine", "address": "MM@example.com"}}],
            )
        ]
        assert intervals_from_events(events, registry)[0].owner_tag == "MM"

    def test_unknown_owner_keeps_first_category(self, registry):
        events = [graph_event("2024-06-11T10:00:00", "2024-06-11T11:00:00", categories=["Blue"])]
        assert intervals_from_events(events, registry)[0].owner_tag == "Blue"

    def test_no_owner_information(self, registry):
        events = [graph_event("2024-06-11T10:00:00", "2024-06-11T11:00:00")]
        assert intervals_from_events(events, registry)[0].owner_tag is None

    def test_utc_event_converted_to_local(self, registry):
        event = graph_event("2024-06-11T14:00:00Z", "2024-06-11T15:00:00Z", categories=["DH"])
        [interval] = intervals_from_events([event], registry)
        assert interval.start == at(10)
        assert interval.start.tzinfo.zone == "America/Toronto"

    def test_event_timezone_respected(self, registry):
        event = graph_event("2024-06-11T14:00:00", "2024-06-11T15:00:00", categories=["DH"])
        event["start"]["timeZone"] = "UTC"
        event["end"]["timeZone"] = "UTC"
        assert intervals_from_events([event], registry)[0].start == at(10)

    def test_missing_location(self, registry):
        event = graph_event("2024-06-11T10:00:00", "2024-06-11T11:00:00", categories=["DH"])
        event["location"] = {"displayName": ""}
        assert intervals_from_events([event], registry)[0].location is None

    def test_malformed_events_skipped(self, registry, caplog):
        events = [
            graph_event("2024-06-11T11:00:00", "2024-06-11T10:00:00", categories=["DH"]),
            graph_event("not a date", "2024-06-11T10:00:00", categories=["DH"]),
            {"subject": "No times"},
            graph_event("2024-06-11T12:00:00", "2024-06-11T12:30:00", categories=["DH"]),
        ]
        with caplog.at_level(logging.WARNING, logger="lexslot.calendar.sources"):
            intervals = intervals_from_events(events, registry)
        assert len(intervals) == 1
        assert caplog.text.count("Skipping calendar event") == 3

    def test_non_object_times_skipped(self, registry, caplog):
        bare_start = graph_event("2024-06-11T10:00:00", "2024-06-11T11:00:00", categories=["DH"])
        bare_start["start"] = "2024-06-11T10:00:00"
        list_end = graph_event("2024-06-11T10:00:00", "2024-06-11T11:00:00", categories=["DH"])
        list_end["end"] = ["2024-06-11T11:00:00"]
        good = graph_event("2024-06-11T12:00:00", "2024-06-11T12:30:00", categories=["DH"])

        with caplog.at_level(logging.WARNING, logger="lexslot.calendar.sources"):
            intervals = intervals_from_events([bare_start, list_end, good], registry)
        assert [i.start for i in intervals] == [at(12)]
        assert caplog.text.count("Skipping calendar event") == 2

    def test_malformed_attendees_ignored(self, registry):
        event = graph_event(
            "2024-06-11T10:00:00",
            "2024-06-11T11:00:00",
            attendees=[
                "dh@example.com",
                {"emailAddress": "dh@example.com"},
                {"emailAddress": {"address": "tg@example.com"}},
            ],
        )
        assert intervals_from_events([event], registry)[0].owner_tag == "TG"


class TestStaticCalendarSource:
    """Tests for StaticCalendarSource."""

    def test_filters_by_owner_and_range(self, registry):
        intervals = [
            BusyInterval(at(10), at(11), "office", "DH"),
            BusyInterval(at(10), at(11), "office", "Denis Hamel", subject="by name"),
            BusyInterval(at(10), at(11), "office", "MM"),
            BusyInterval(at(10, day=20), at(11, day=20), "office", "DH"),
        ]
        source = StaticCalendarSource(intervals, registry)
        fetched = source.fetch_busy_intervals("DH", at(0), at(23))
        assert fetched == intervals[:2]


class TestMockCalendarSource:
    """Tests for the mock calendar."""

    @pytest.fixture
    def availability(self):
        return LocationAvailabilityRule.from_mapping(
            {"DH": {"office": ["Monday"]}, "TG": {"office": ["Friday"]}}
        )

    def _fetch(self, source, resource_id):
        start = at(0, day=10)
        return source.fetch_busy_intervals(resource_id, start, start + timedelta(days=14))

    def test_deterministic_for_seed(self, registry):
        first = self._fetch(MockCalendarSource(registry, seed=42), "MM")
        second = self._fetch(MockCalendarSource(registry, seed=42), "MM")
        assert first == second
        assert first

    @pytest.mark.parametrize("resource_id", ["MM", "DH", "TG"])
    def test_events_are_plausible(self, registry, availability, resource_id):
        resource = registry.get(resource_id)
        source = MockCalendarSource(registry, availability=availability, seed=7)
        events = self._fetch(source, resource_id)

        for event in events:
            assert event.start.weekday() < 5
            assert event.start.time() >= resource.working_hours.start
            assert event.end.time() <= resource.working_hours.end
            assert not is_lunch_overlap(event.start, event.end)
            assert resource.matches_tag(event.owner_tag)
            assert event.location in ("Office", "Phone", "Teams")

        for a, b in zip(events, events[1:]):
            if a.start.date() == b.start.date():
                assert not overlaps(a, b)

    def test_daily_load_respected(self, registry):
        source = MockCalendarSource(registry, seed=3, daily_load={"DH": (2, 2)})
        events = self._fetch(source, "DH")
        per_day = {}
        for event in events:
            per_day[event.start.date()] = per_day.get(event.start.date(), 0) + 1
        assert per_day
        assert all(count <= 2 for count in per_day.values())

    def test_location_unavailability_honoured(self, registry, availability):
        source = MockCalendarSource(
            registry, availability=availability, seed=11, daily_load={"DH": (4, 4)}
        )
        for event in self._fetch(source, "DH"):
            if event.start.weekday() == 0:
                assert event.location != "Office"

    def test_unknown_resource(self, registry):
        with pytest.raises(ResourceNotFoundError):
            self._fetch(MockCalendarSource(registry, seed=1), "ZZ")
