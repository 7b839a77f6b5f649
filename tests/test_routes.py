"""Tests for the amendment blueprint."""

from unittest.mock import patch

import pytest
from flask import Flask

from trip_amend.api.llm import ExtractionError
from trip_amend.api.models import ExtractedData
from trip_amend.routes import create_amend_blueprint

from conftest import make_location


@pytest.fixture
def client():
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.register_blueprint(create_amend_blueprint())
    return app.test_client()


class TestExtractRoute:
    def test_missing_text(self, client):
        resp = client.post("/amend/api/extract", json={})
        assert resp.status_code == 400

    @patch("trip_amend.routes.amend.extract_trip_updates")
    def test_success(self, mock_extract, client):
        mock_extract.return_value = ExtractedData.from_dict({"locations": [{"location": "Soho House"}]})

        resp = client.post("/amend/api/extract", json={
            "text": "Subject: change\nAdd Soho House EXTRACT TRIP",
            "tripDestination": "London",
        })

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        assert body["locations"] == [{"location": "Soho House"}]
        mock_extract.assert_called_once_with("Add Soho House", "London")

    @patch("trip_amend.routes.amend.extract_trip_updates")
    def test_unusable_response(self, mock_extract, client):
        mock_extract.side_effect = ExtractionError("not JSON")
        resp = client.post("/amend/api/extract", json={"text": "Add Soho House"})
        assert resp.status_code == 422
        assert resp.get_json()["success"] is False


class TestPreviewRoute:
    def test_with_extracted_data(self, client, london_trip):
        resp = client.post("/amend/api/preview", json={
            "currentLocations": london_trip,
            "extractedData": {"locations": [{"location": "Soho House", "insertAfter": "Stop1"}]},
        })

        assert resp.status_code == 200
        body = resp.get_json()
        assert [loc["name"] for loc in body["locations"]] == [
            "Heathrow Terminal 5", "Stop1", "Soho House", "The Savoy",
        ]
        assert body["changes"]["added"] == [2]
        assert body["summary"] == ["Added stop 3: Soho House at 12:00"]

    @patch("trip_amend.routes.amend.extract_trip_updates")
    def test_extracts_from_update_text(self, mock_extract, client, london_trip):
        mock_extract.return_value = ExtractedData.from_dict({"removedLocations": ["Stop1"]})

        resp = client.post("/amend/api/preview", json={
            "currentLocations": london_trip,
            "updateText": "Skip Stop1",
        })

        assert resp.status_code == 200
        assert resp.get_json()["changes"]["removed"][0]["index"] == 1

    def test_missing_input(self, client, london_trip):
        resp = client.post("/amend/api/preview", json={"currentLocations": london_trip})
        assert resp.status_code == 400


class TestChangesRoute:
    def test_diff(self, client, london_trip):
        resp = client.post("/amend/api/changes", json={
            "originalLocations": london_trip,
            "newLocations": london_trip[:2],
        })
        assert resp.get_json()["summary"] == {"removed": 1, "modified": 0, "added": 0}


class TestApplyRoute:
    def test_falls_back_to_current(self, client, london_trip):
        resp = client.post("/amend/api/apply", json={
            "previewLocations": [make_location("Soho House")],
            "currentLocations": london_trip,
            "geocode": False,
        })
        assert resp.status_code == 200
        assert len(resp.get_json()["locations"]) == 3

    def test_nothing_valid(self, client):
        resp = client.post("/amend/api/apply", json={"previewLocations": [make_location("Soho House")]})
        assert resp.status_code == 400

    @patch("trip_amend.routes.amend.geocode_missing_coordinates")
    def test_geocodes_when_requested(self, mock_geocode, client, london_trip):
        mock_geocode.side_effect = lambda waypoints, city: waypoints
        client.post("/amend/api/apply", json={
            "previewLocations": london_trip,
            "geocode": True,
            "city": "London",
        })
        assert mock_geocode.call_args.args[1] == "London"

    @patch("trip_amend.api.geocoding.get_coordinates_for_place")
    def test_new_stop_is_geocoded_before_validation(self, mock_coords, client, london_trip):
        mock_coords.return_value = (51.5137, -0.1318)
        preview = [london_trip[0], make_location("Soho House"), london_trip[2]]

        resp = client.post("/amend/api/apply", json={
            "previewLocations": preview,
            "geocode": True,
            "city": "London",
        })

        assert resp.status_code == 200
        locations = resp.get_json()["locations"]
        assert [loc["name"] for loc in locations] == ["Heathrow Terminal 5", "Soho House", "The Savoy"]
        assert (locations[1]["lat"], locations[1]["lng"]) == (51.5137, -0.1318)
        mock_coords.assert_called_once_with("Soho House, London")

    def test_ungeocoded_stop_is_rejected_without_geocoding(self, client, london_trip):
        preview = [london_trip[0], make_location("Soho House"), london_trip[2]]
        resp = client.post("/amend/api/apply", json={"previewLocations": preview, "geocode": False})
        assert [loc["name"] for loc in resp.get_json()["locations"]] == ["Heathrow Terminal 5", "The Savoy"]


def test_health(client):
    assert client.get("/amend/health").get_json()["status"] == "ok"
