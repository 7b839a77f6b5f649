"""Tests for reconcile/changes.py."""

from trip_amend.api.models import Waypoint
from trip_amend.api.reconcile.changes import changed_fields, compute_changes, is_same_waypoint

from conftest import make_location


class TestIsSameWaypoint:
    def test_name_case_insensitive(self):
        assert is_same_waypoint(Waypoint(label="The Savoy"), Waypoint(label="the savoy"))

    def test_address(self):
        assert is_same_waypoint(
            Waypoint(label="Hotel", full_address="Strand, London"),
            Waypoint(label="The Savoy", full_address="strand, london"),
        )

    def test_coordinates(self):
        assert is_same_waypoint(
            Waypoint(label="Savoy", lat=51.5104, lng=-0.1207),
            Waypoint(label="The Savoy Hotel", lat=51.5104, lng=-0.1207),
        )

    def test_empty_fields_never_match(self):
        assert not is_same_waypoint(Waypoint(label=""), Waypoint(label=""))


class TestComputeChanges:
    def test_no_changes(self, london_trip):
        changes = compute_changes(london_trip, london_trip)
        assert not changes.has_changes
        assert changes.summary == {"removed": 0, "modified": 0, "added": 0}

    def test_time_change_is_modification(self, london_trip):
        updated = [dict(loc) for loc in london_trip]
        updated[1]["time"] = "13:30"
        changes = compute_changes(london_trip, updated)
        assert changes.modified_indices == [1]
        assert changes.changed_fields[1] == ["time"]
        assert changes.original_of[1].time == "12:00"

    def test_insert_shifts_indices(self, london_trip):
        updated = list(london_trip)
        updated.insert(2, make_location("Soho House", "14:00", 51.5137, -0.1318))
        changes = compute_changes(london_trip, updated)
        assert changes.added_indices == [2]
        assert changes.modified_indices == []
        assert changes.original_of[3].label == "The Savoy"

    def test_removal_reports_original_index(self, london_trip):
        updated = [london_trip[0], london_trip[2]]
        changes = compute_changes(london_trip, updated)
        assert len(changes.removed) == 1
        assert changes.removed[0].original_index == 1
        assert changes.removed[0].waypoint.label == "Stop1"

    def test_renamed_with_same_coordinates(self, london_trip):
        updated = [dict(loc) for loc in london_trip]
        updated[2]["name"] = "Savoy Hotel"
        updated[2]["fullAddress"] = ""
        changes = compute_changes(london_trip, updated)
        assert changes.modified_indices == [2]
        assert changes.changed_fields[2] == ["label", "full_address"]

    def test_duplicate_names_claimed_once(self):
        original = [make_location("Soho House"), make_location("Soho House")]
        changes = compute_changes(original, original[:1])
        assert [r.original_index for r in changes.removed] == [1]

    def test_to_dict_shape(self, london_trip):
        updated = [london_trip[0], london_trip[2]]
        data = compute_changes(london_trip, updated).to_dict()
        assert data["removed"][0]["index"] == 1
        assert data["removed"][0]["location"]["name"] == "Stop1"
        assert set(data["originalLocationMap"]) == {"0", "1"}
        assert data["summary"]["removed"] == 1

    def test_string_input(self, london_trip):
        import json

        changes = compute_changes(json.dumps(london_trip), london_trip)
        assert not changes.has_changes


def test_changed_fields_ignores_purpose():
    assert changed_fields(Waypoint(label="A", purpose="x"), Waypoint(label="A", purpose="y")) == []
