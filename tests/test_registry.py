"""Tests for resource models and the registry."""

import json
from datetime import time

import pytest

from lexslot.domain.models import Resource, WorkingHours
from lexslot.domain.registry import ResourceRegistry
from lexslot.errors import InvalidInputError, ResourceNotFoundError

ROSTER = {
    "lawyers": [
        {
            "id": "DH",
            "name": "Denis Hamel",
            "email": "dh@example.com",
            "workingHours": {"start": "09:00", "end": "17:00"},
            "breakMinutes": 15,
            "maxDailyAppointments": 4,
            "specialties": ["employment", "contract"],
        },
        {
            "id": "TG",
            "name": "Thomas Girard",
            "email": "tg@example.com",
            "workingHours": {"start": "10:00", "end": "16:00"},
            "breakMinutes": 30,
            "maxDailyAppointments": 3,
            "specialties": ["mandates"],
        },
    ]
}


class TestResource:
    """Tests for Resource and WorkingHours."""

    def test_from_dict(self):
        resource = Resource.from_dict(ROSTER["lawyers"][0])
        assert resource.id == "DH"
        assert resource.working_hours == WorkingHours(time(9, 0), time(17, 0))
        assert resource.break_minutes == 15
        assert resource.max_daily_appointments == 4
        assert resource.handles("employment")
        assert not resource.handles("divorce")

    def test_missing_field_is_invalid_input(self):
        entry = dict(ROSTER["lawyers"][0])
        del entry["workingHours"]
        with pytest.raises(InvalidInputError):
            Resource.from_dict(entry)

    def test_working_hours_must_be_ordered(self):
        with pytest.raises(InvalidInputError):
            WorkingHours.from_strings("17:00", "09:00")

    def test_bad_time_string(self):
        with pytest.raises(InvalidInputError):
            WorkingHours.from_strings("nine", "17:00")

    def test_daily_cap_must_be_positive(self):
        with pytest.raises(InvalidInputError):
            Resource(id="X", name="X", max_daily_appointments=0)

    def test_matches_id_or_name(self):
        resource = Resource.from_dict(ROSTER["lawyers"][0])
        assert resource.matches_tag("DH")
        assert resource.matches_tag("Denis Hamel")
        assert resource.matches_tag("denis hamel")
        assert not resource.matches_tag("dh")  # ids are exact
        assert not resource.matches_tag("TG")
        assert not resource.matches_tag(None)


class TestResourceRegistry:
    """Tests for ResourceRegistry."""

    @pytest.fixture
    def registry(self):
        return ResourceRegistry.from_dict(ROSTER)

    def test_get(self, registry):
        assert registry.get("TG").name == "Thomas Girard"

    def test_get_unknown_raises_not_found(self, registry):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            registry.get("ZZ")
        assert exc_info.value.resource_id == "ZZ"

    def test_not_found_is_a_lookup_error(self, registry):
        with pytest.raises(LookupError):
            registry.get("ZZ")

    def test_find_unknown_returns_none(self, registry):
        assert registry.find("ZZ") is None

    def test_list_resources_keeps_roster_order(self, registry):
        assert [r.id for r in registry.list_resources()] == ["DH", "TG"]
        assert len(registry) == 2
        assert "DH" in registry

    def test_duplicate_ids_rejected(self):
        resource = Resource(id="DH", name="Denis Hamel")
        with pytest.raises(InvalidInputError):
            ResourceRegistry([resource, Resource(id="DH", name="Other")])

    def test_resources_key_accepted(self):
        registry = ResourceRegistry.from_dict({"resources": ROSTER["lawyers"]})
        assert len(registry) == 2

    def test_roster_without_list_rejected(self):
        with pytest.raises(InvalidInputError):
            ResourceRegistry.from_dict({})

    @pytest.mark.parametrize("tag", ["DH", "Denis Hamel", "DH@example.com"])
    def test_resolve_owner(self, registry, tag):
        assert registry.resolve_owner(tag).id == "DH"

    def test_resolve_unknown_owner(self, registry):
        assert registry.resolve_owner("Someone Else") is None
        assert registry.resolve_owner(None) is None

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "lawyerData.json"
        path.write_text(json.dumps(ROSTER), encoding="utf-8")
        registry = ResourceRegistry.from_json_file(path)
        assert registry.get("DH").email == "dh@example.com"
