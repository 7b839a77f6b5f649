"""Shared test fixtures and utilities."""

from unittest.mock import MagicMock

import pytest


def make_location(name, time="", lat=0.0, lng=0.0, address="", id=None):
    """Build a stored trip location row."""
    return {
        "id": id or f"loc-{name.lower().replace(' ', '-')}",
        "name": name,
        "fullAddress": address,
        "lat": lat,
        "lng": lng,
        "time": time,
    }


def make_openai_response(text="{}", prompt_tokens=10, completion_tokens=5):
    """Build a mock OpenAI ChatCompletion response."""
    msg = MagicMock()
    msg.content = text
    choice = MagicMock()
    choice.message = msg
    usage = MagicMock()
    usage.prompt_tokens = prompt_tokens
    usage.completion_tokens = completion_tokens
    resp = MagicMock()
    resp.choices = [choice]
    resp.usage = usage
    return resp


@pytest.fixture
def london_trip():
    """Pickup, one intermediate stop and a dropoff, all geocoded."""
    return [
        make_location("Heathrow Terminal 5", "09:00", 51.4700, -0.4543, "Heathrow Airport, Hounslow TW6 2GA"),
        make_location("Stop1", "12:00", 51.5136, -0.1365, "76 Dean Street, London W1D 3SQ"),
        make_location("The Savoy", "17:00", 51.5104, -0.1207, "Strand, London WC2R 0EZ"),
    ]
