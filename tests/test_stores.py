"""
Tests for the JSON-backed preference and property repositories.

Covers:
- One active profile per investor
- Persistence round trip
- Legacy preference records, including location narrowing
- Generated profile ids
- Unreadable files make reads fail loudly
- Active / recent property listing
"""

import json
from datetime import timedelta

import pytest

from core.errors import StoreUnavailable
from core.matching.evaluators import score_location
from core.models import PreferenceCriteria, PropertyStatus
from core.stores import (
    PreferenceRepository,
    PropertyRepository,
    get_preference_repository,
    get_property_repository,
    reset_repositories,
)


# =============================================================================
# Preferences
# =============================================================================


class TestPreferenceRepository:

    def test_save_deactivates_previous_active_profile(
        self, preference_repo, make_profile, flat_criteria
    ):
        old = make_profile("inv-1", flat_criteria, profile_id="pref-old")
        new = make_profile("inv-1", flat_criteria, profile_id="pref-new")
        preference_repo.save(old)
        preference_repo.save(new)

        assert preference_repo.get_active_profile("inv-1").profile_id == "pref-new"
        assert preference_repo.get("pref-old").is_active is False
        assert len(preference_repo.list_active_profiles()) == 1

    def test_list_for_investor_newest_first(self, preference_repo, make_profile, flat_criteria):
        preference_repo.save(make_profile("inv-1", flat_criteria, profile_id="p1"))
        preference_repo.save(make_profile("inv-1", flat_criteria, profile_id="p2"))

        history = preference_repo.list_for_investor("inv-1")
        assert [p.profile_id for p in history] == ["p1", "p2"]

    def test_profiles_without_ids_keep_history(self, preference_repo, make_profile,
                                               flat_criteria):
        first = preference_repo.save(make_profile("inv-1", flat_criteria))
        second = preference_repo.save(
            make_profile("inv-1", PreferenceCriteria(property_types={"house"}))
        )

        assert first.profile_id != second.profile_id
        assert first.profile_id.startswith("PREF-")
        assert len(preference_repo.list_for_investor("inv-1")) == 2
        assert preference_repo.get_active_profile("inv-1").profile_id == second.profile_id
        assert preference_repo.get(first.profile_id).is_active is False
        assert preference_repo.get(first.profile_id).criteria == flat_criteria

    def test_delete(self, preference_repo, make_profile, flat_criteria):
        profile = preference_repo.save(make_profile("inv-1", flat_criteria))
        assert preference_repo.delete(profile.profile_id) is True
        assert preference_repo.delete(profile.profile_id) is False
        assert preference_repo.get_active_profile("inv-1") is None

    def test_persistence_round_trip(self, tmp_path, make_profile, flat_criteria):
        path = tmp_path / "preferences.json"
        PreferenceRepository(str(path)).save(make_profile("inv-1", flat_criteria))

        reloaded = PreferenceRepository(str(path)).get_active_profile("inv-1")
        assert reloaded is not None
        assert reloaded.criteria == flat_criteria

    def test_loads_legacy_record(self, tmp_path):
        path = tmp_path / "preferences.json"
        path.write_text(json.dumps({"profiles": [{
            "id": "legacy-1",
            "investor_id": "inv-9",
            "is_active": True,
            "created_at": "2024-05-01T09:00:00Z",
            "preference_data": {
                "budget": {"min": 1000, "max": 1500},
                "bedrooms": {"min": 2},
                "property_types": ["Flat"],
                "locations": [{"city": "Leeds", "localAuthorities": ["Kirklees"]}],
            },
        }]}))

        profile = PreferenceRepository(str(path)).get_active_profile("inv-9")
        assert profile.profile_id == "legacy-1"
        assert profile.criteria.price_range.min == 100000
        assert profile.criteria.price_range.max == 150000
        assert profile.criteria.bedrooms_range.max is None
        assert profile.criteria.property_types == {"flat"}
        assert profile.criteria.locations == {"kirklees"}

    @pytest.mark.parametrize("entry,city,authority,postcode,expected", [
        ({"city": "Greater Manchester", "localAuthorities": ["Salford"]},
         "Bolton", "Bolton", "BL1 1AA", 0),
        ({"city": "Greater Manchester", "localAuthorities": ["Salford"]},
         "Salford", "Salford", "M5 4WT", 100),
        ({"city": "London", "localAuthorities": ["Hackney"]},
         "London", "Ealing", "W5 2NU", 0),
        ({"city": "London", "localAuthorities": ["Hackney"]},
         "London", "Hackney", "E8 1DY", 100),
        ({"city": "South East London", "localAuthorities": []},
         "London", "Greenwich", "SE10 9NN", 100),
    ])
    def test_legacy_authorities_narrow_the_city(self, entry, city, authority, postcode,
                                                expected):
        criteria = PreferenceCriteria.from_dict({"locations": [entry]})
        assert score_location(criteria.locations, city, postcode, authority) == expected

    def test_malformed_record_is_skipped(self, tmp_path):
        path = tmp_path / "preferences.json"
        path.write_text(json.dumps({"profiles": [{"criteria": {}}]}))
        assert PreferenceRepository(str(path)).list_active_profiles() == []

    def test_unreadable_file_fails_reads(self, tmp_path):
        path = tmp_path / "preferences.json"
        path.write_text("{not json")
        repo = PreferenceRepository(str(path))

        with pytest.raises(StoreUnavailable):
            repo.get_active_profile("inv-1")
        with pytest.raises(StoreUnavailable):
            repo.list_active_profiles()

    def test_unreadable_file_stays_failed_until_rebuilt(self, tmp_path, make_profile,
                                                        flat_criteria):
        path = tmp_path / "preferences.json"
        path.write_text("{not json")
        repo = PreferenceRepository(str(path))
        path.write_text(json.dumps({"profiles": []}))

        with pytest.raises(StoreUnavailable):
            repo.list_active_profiles()
        with pytest.raises(StoreUnavailable):
            repo.save(make_profile("inv-1", flat_criteria))
        assert json.loads(path.read_text()) == {"profiles": []}

        assert PreferenceRepository(str(path)).list_active_profiles() == []


# =============================================================================
# Properties
# =============================================================================


class TestPropertyRepository:

    def test_only_active_properties_listed(self, property_repo, make_property):
        property_repo.save(make_property(id="a"))
        property_repo.save(make_property(id="b", status=PropertyStatus.PENDING))
        property_repo.save(make_property(id="c", status="archived"))

        assert [p.id for p in property_repo.list_active_properties()] == ["a"]

    def test_get_property_in_any_status(self, property_repo, make_property):
        property_repo.save(make_property(id="b", status=PropertyStatus.DRAFT))
        assert property_repo.get_property("b").status == PropertyStatus.DRAFT
        assert property_repo.get_property("missing") is None

    def test_list_active_since(self, property_repo, make_property, now):
        property_repo.save(make_property(id="new", created_at=now - timedelta(hours=2)))
        property_repo.save(make_property(id="old", created_at=now - timedelta(days=3)))

        recent = property_repo.list_active_since(now - timedelta(hours=24))
        assert [p.id for p in recent] == ["new"]

    def test_persistence_round_trip(self, tmp_path, make_property):
        path = tmp_path / "properties.json"
        prop = make_property(id="p1", amenities={"Garden", "parking"})
        PropertyRepository(str(path)).save(prop)

        assert PropertyRepository(str(path)).get_property("p1") == prop

    def test_unreadable_file_fails_reads(self, tmp_path):
        path = tmp_path / "properties.json"
        path.write_text("[]")
        repo = PropertyRepository(str(path))

        with pytest.raises(StoreUnavailable):
            repo.list_active_properties()


# =============================================================================
# Singletons
# =============================================================================


class TestSingletons:

    def test_same_instance_until_reset(self, tmp_path):
        first = get_property_repository(str(tmp_path / "p.json"))
        assert get_property_repository() is first
        reset_repositories()
        assert get_property_repository(str(tmp_path / "p.json")) is not first

    def test_preference_singleton(self, tmp_path):
        repo = get_preference_repository(str(tmp_path / "prefs.json"))
        assert get_preference_repository() is repo
