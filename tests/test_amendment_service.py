"""Tests for the amendment service layer."""

import logging
from datetime import date

import pytest

from trip_amend.api.models import ExtractedData, Waypoint
from trip_amend.api.reconcile import compute_changes, load_waypoints
from trip_amend.api.services.amendment_service import AmendmentService, is_acceptable_waypoint

from conftest import make_location

TODAY = date(2026, 1, 15)


class TestIsAcceptableWaypoint:
    def test_with_coordinates(self):
        assert is_acceptable_waypoint(Waypoint(label="The Savoy", lat=51.5104, lng=-0.1207))

    def test_airport_without_coordinates(self):
        assert is_acceptable_waypoint(Waypoint(label="Heathrow Airport, UK"))

    def test_no_coordinates(self):
        assert not is_acceptable_waypoint(Waypoint(label="Soho House"))

    def test_no_name(self):
        assert not is_acceptable_waypoint(Waypoint(label="", lat=51.5, lng=-0.1))


class TestValidateForApply:
    def test_keeps_valid_and_renumbers(self, london_trip):
        preview = [make_location("Soho House")] + london_trip
        result = AmendmentService.validate_for_apply(preview)
        assert [wp.label for wp in result] == ["Heathrow Terminal 5", "Stop1", "The Savoy"]
        assert [wp.sequence_index for wp in result] == [0, 1, 2]

    def test_falls_back_to_current(self, london_trip):
        result = AmendmentService.validate_for_apply([make_location("Soho House")], london_trip)
        assert len(result) == 3

    def test_rejected_stop_is_logged(self, london_trip, caplog):
        preview = [london_trip[0], make_location("Soho House"), london_trip[2]]
        with caplog.at_level(logging.WARNING, logger="trip_amend.api.services.amendment_service"):
            result = AmendmentService.validate_for_apply(preview)
        assert len(result) == 2
        assert "Rejecting location 2 'Soho House'" in caplog.text

    def test_nothing_valid(self):
        with pytest.raises(ValueError):
            AmendmentService.validate_for_apply([make_location("Soho House")], [])


class TestTripFields:
    def test_past_date_dropped(self):
        data = ExtractedData(fields={"date": "2025-12-31"})
        assert AmendmentService.validate_trip_date(data, TODAY).fields["date"] is None

    def test_future_date_kept(self):
        data = ExtractedData(fields={"date": "2026-02-01"})
        assert AmendmentService.validate_trip_date(data, TODAY).fields["date"] == "2026-02-01"

    def test_invalid_date_dropped(self):
        data = ExtractedData(fields={"date": "next tuesday"})
        assert AmendmentService.validate_trip_date(data, TODAY).fields["date"] is None

    def test_rest_same_blanks_unmentioned(self):
        data = ExtractedData(fields={"vehicleInfo": "Mercedes S-Class", "date": "2026-03-01"})
        AmendmentService.apply_unchanged_overrides(data, "Pickup at 10:00, rest same")
        assert data.fields["vehicleInfo"] is None
        assert data.fields["date"] is None

    def test_diff_trip_fields(self):
        data = ExtractedData(fields={"vehicleInfo": "Mercedes S-Class", "passengerCount": 2, "driverNotes": None})
        changes = AmendmentService.diff_trip_fields(data, {"vehicleInfo": "Mercedes S-Class", "passengerCount": 1})
        assert changes == {"passengerCount": 2}


class TestPreview:
    def test_removal(self, london_trip):
        preview = AmendmentService.preview(london_trip, {"removedLocations": ["Stop1"]}, today=TODAY)
        assert [wp.label for wp in preview.waypoints] == ["Heathrow Terminal 5", "The Savoy"]
        assert preview.changes.removed[0].original_index == 1

    def test_insertion_and_fields(self, london_trip):
        extracted = {
            "locations": [{"location": "Soho House", "insertAfter": "Stop1"}],
            "vehicleInfo": "Range Rover",
        }
        preview = AmendmentService.preview(london_trip, extracted, current_fields={"vehicleInfo": "Mercedes"},
                                           today=TODAY)
        assert preview.changes.added_indices == [2]
        assert preview.field_changes == {"vehicleInfo": "Range Rover"}

    def test_dropped_blank_proposal(self, london_trip):
        preview = AmendmentService.preview(london_trip, {"locations": [{"time": "10:00", "insertAfter": "Stop1"}]},
                                           today=TODAY)
        assert preview.dropped == 1
        assert not preview.changes.has_changes

    def test_to_dict(self, london_trip):
        data = AmendmentService.preview(london_trip, {}, today=TODAY).to_dict()
        assert set(data) == {"locations", "changes", "fieldChanges", "dropped", "hasLocations"}
        assert data["hasLocations"] is True
        assert data["locations"][1]["name"] == "Stop1"


class TestFormatChangeSummary:
    def test_no_changes(self, london_trip):
        waypoints = load_waypoints(london_trip)
        changes = compute_changes(london_trip, london_trip)
        assert AmendmentService.format_change_summary(changes, waypoints) == ["No changes to the route."]

    def test_lines(self, london_trip):
        updated = load_waypoints([london_trip[0], make_location("Soho House", "14:00", 51.51, -0.13), london_trip[1]])
        updated[2].time = "13:00"
        changes = compute_changes(london_trip, updated)

        lines = AmendmentService.format_change_summary(changes, updated)

        assert "Added stop 2: Soho House at 14:00" in lines
        assert "Changed stop 3: Stop1 -> Stop1 (time)" in lines
        assert "Removed stop 3: The Savoy" in lines
