"""Map an extracted edit onto an existing waypoint.

The extraction service never returns stable identifiers, so an edit is
matched by content every time.  Each strategy below is a pure
``(edit, waypoints) -> MatchResult`` function; :func:`match_edit` tries
them in priority order and the first match wins.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, List, Sequence, Tuple

from trip_amend.api.models import (
    HIGH,
    MEDIUM,
    NO_MATCH,
    ExtractedEdit,
    MatchResult,
    Waypoint,
)

logger = logging.getLogger(__name__)

PICKUP_WORDS = ("pickup", "pick up", "collection")
DROPOFF_WORDS = ("dropoff", "drop off", "destination")
ARRIVAL_WORDS = ("arrival", "arrive", "arriving", "arrived", "landing", "landed")
DEPARTURE_WORDS = ("departure", "depart", "departing", "departed", "leaving", "left")


def _word_pattern(words: Sequence[str]) -> "re.Pattern[str]":
    # plural forms count: "arrivals hall", "departures"
    return re.compile(r"\b(?:%s)s?\b" % "|".join(re.escape(w) for w in words))


_ARRIVAL_RE = _word_pattern(ARRIVAL_WORDS)
_DEPARTURE_RE = _word_pattern(DEPARTURE_WORDS)

Strategy = Callable[[ExtractedEdit, Sequence[Waypoint]], MatchResult]


def _edit_text(edit: ExtractedEdit) -> str:
    return f"{edit.label} {edit.purpose}"


def _contains_either_way(a: str, b: str) -> bool:
    return bool(a) and bool(b) and (a in b or b in a)


def match_by_position(edit: ExtractedEdit, waypoints: Sequence[Waypoint]) -> MatchResult:
    hint = edit.position_hint
    if hint is not None and 0 <= hint < len(waypoints):
        logger.debug(f"Index match: position hint {hint}")
        return MatchResult(True, hint, HIGH)
    return NO_MATCH


def _boundary_match(is_start: bool, is_end: bool, waypoints: Sequence[Waypoint],
                     kind: str) -> MatchResult:
    if not waypoints:
        return NO_MATCH
    if is_start:
        logger.debug(f"{kind} match: index 0")
        return MatchResult(True, 0, HIGH)
    if is_end:
        last = len(waypoints) - 1
        logger.debug(f"{kind} match: index {last}")
        return MatchResult(True, last, HIGH)
    return NO_MATCH


def match_by_pickup_dropoff(edit: ExtractedEdit, waypoints: Sequence[Waypoint]) -> MatchResult:
    text = _edit_text(edit)
    return _boundary_match(
        any(w in text for w in PICKUP_WORDS),
        any(w in text for w in DROPOFF_WORDS),
        waypoints,
        "Pickup/dropoff",
    )


def match_by_arrival_departure(edit: ExtractedEdit, waypoints: Sequence[Waypoint]) -> MatchResult:
    """Flights are phrased as arrival/departure: arrival is the pickup, departure the dropoff."""
    text = _edit_text(edit)
    return _boundary_match(
        bool(_ARRIVAL_RE.search(text)),
        bool(_DEPARTURE_RE.search(text)),
        waypoints,
        "Arrival/departure",
    )


def match_by_exact_name(edit: ExtractedEdit, waypoints: Sequence[Waypoint]) -> MatchResult:
    proposed = [t for t in (edit.label, edit.purpose) if t]
    if not proposed:
        return NO_MATCH
    for idx, wp in enumerate(waypoints):
        existing = {t for t in (wp.label.lower(), wp.purpose.lower()) if t}
        if any(t in existing for t in proposed):
            logger.debug(f"Exact name match: index {idx}")
            return MatchResult(True, idx, HIGH)
    return NO_MATCH


def match_by_containment(edit: ExtractedEdit, waypoints: Sequence[Waypoint]) -> MatchResult:
    name = edit.label
    if not name:
        return NO_MATCH
    for idx, wp in enumerate(waypoints):
        if (_contains_either_way(name, wp.label.lower())
                or _contains_either_way(name, wp.purpose.lower())):
            logger.debug(f"Partial name match: index {idx}")
            return MatchResult(True, idx, MEDIUM)
    return NO_MATCH


def match_by_purpose(edit: ExtractedEdit, waypoints: Sequence[Waypoint]) -> MatchResult:
    purpose = edit.purpose
    if not purpose:
        return NO_MATCH
    for idx, wp in enumerate(waypoints):
        if _contains_either_way(purpose, wp.purpose.lower()):
            logger.debug(f"Purpose match: index {idx}")
            return MatchResult(True, idx, MEDIUM)
    return NO_MATCH


EDIT_STRATEGIES: Tuple[Strategy, ...] = (
    match_by_position,
    match_by_pickup_dropoff,
    match_by_arrival_departure,
    match_by_exact_name,
    match_by_containment,
    match_by_purpose,
)


def match_edit(edit: ExtractedEdit, waypoints: Sequence[Waypoint],
               strategies: Sequence[Strategy] = EDIT_STRATEGIES) -> MatchResult:
    """Return the first successful match, or an unmatched low-confidence result."""
    for strategy in strategies:
        result = strategy(edit, waypoints)
        if result.matched:
            return result
    return NO_MATCH


def is_boundary_match(result: MatchResult, waypoints: List[Waypoint]) -> bool:
    """True when ``result`` points at the pickup or the dropoff."""
    return (
        result.matched
        and result.target_index is not None
        and result.target_index in (0, len(waypoints) - 1)
    )
