"""Tests for reconcile/references.py."""

from trip_amend.api.models import Waypoint
from trip_amend.api.reconcile.references import parse_reference_from_purpose, resolve_reference


def _trip():
    return [
        Waypoint(label="Heathrow Terminal 5", purpose="Pickup", full_address="Heathrow Airport, Hounslow"),
        Waypoint(label="Soho House", purpose="Lunch meeting", full_address="76 Dean Street, London"),
        Waypoint(label="The Savoy", purpose="Dropoff", full_address="Strand, London WC2R 0EZ"),
    ]


class TestResolveReference:
    def test_exact_label(self):
        assert resolve_reference("Soho House", _trip()) == 1

    def test_exact_address(self):
        assert resolve_reference("strand, london wc2r 0ez", _trip()) == 2

    def test_reference_inside_label(self):
        assert resolve_reference("savoy", _trip()) == 2

    def test_label_inside_reference(self):
        assert resolve_reference("the lunch at Soho House", _trip()) == 1

    def test_word_overlap(self):
        assert resolve_reference("Dean Street meeting", _trip()) == 1

    def test_short_words_ignored_in_overlap(self):
        assert resolve_reference("at Dean St", _trip()) == 1
        assert resolve_reference("to st", _trip()) == -1

    def test_exact_wins_over_earlier_partial(self):
        trip = [Waypoint(label="Soho House Members Club"), Waypoint(label="Soho House")]
        assert resolve_reference("soho house", trip) == 1

    def test_not_found(self):
        assert resolve_reference("Mori Tower", _trip()) == -1
        assert resolve_reference("", _trip()) == -1
        assert resolve_reference(None, _trip()) == -1


class TestParseReferenceFromPurpose:
    def test_after(self):
        assert parse_reference_from_purpose("Coffee after Soho House") == ("soho house", None)

    def test_before(self):
        assert parse_reference_from_purpose("Quick stop before The Savoy") == (None, "the savoy")

    def test_prior_to(self):
        assert parse_reference_from_purpose("Flowers prior to dinner") == (None, "dinner")

    def test_none(self):
        assert parse_reference_from_purpose("Lunch") == (None, None)
        assert parse_reference_from_purpose(None) == (None, None)
