"""Resolve "after Soho House" style references to a list position."""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional, Sequence, Tuple

from trip_amend.api.models import Waypoint

logger = logging.getLogger(__name__)

NOT_FOUND = -1
MIN_TOKEN_LENGTH = 3

_AFTER_RE = re.compile(r"\b(?:after|following)\s+(.+)$")
_BEFORE_RE = re.compile(r"\b(?:before|prior to)\s+(.+)$")

ReferenceStrategy = Callable[[str, Waypoint], bool]


def _fields(wp: Waypoint) -> Tuple[str, str, str]:
    return wp.label.lower(), wp.purpose.lower(), wp.full_address.lower()


def _exact(ref: str, wp: Waypoint) -> bool:
    return ref in _fields(wp)


def _reference_inside(ref: str, wp: Waypoint) -> bool:
    label, purpose, _ = _fields(wp)
    return ref in label or ref in purpose


def _waypoint_inside(ref: str, wp: Waypoint) -> bool:
    label, purpose, _ = _fields(wp)
    return (bool(label) and label in ref) or (bool(purpose) and purpose in ref)


def _word_overlap(ref: str, wp: Waypoint) -> bool:
    tokens = [t for t in ref.split() if len(t) >= MIN_TOKEN_LENGTH]
    combined = " ".join(_fields(wp))
    return bool(tokens) and all(t in combined for t in tokens)


REFERENCE_STRATEGIES: Tuple[ReferenceStrategy, ...] = (
    _exact,
    _reference_inside,
    _waypoint_inside,
    _word_overlap,
)


def resolve_reference(reference: Optional[str], waypoints: Sequence[Waypoint]) -> int:
    """Return the index of the waypoint ``reference`` names, or ``-1``.

    Strategies run most-specific first; each one scans the whole list before
    the next, looser one is tried.
    """
    ref = (reference or "").strip().lower()
    if not ref:
        return NOT_FOUND

    for strategy in REFERENCE_STRATEGIES:
        for idx, wp in enumerate(waypoints):
            if strategy(ref, wp):
                logger.debug(f"Reference {reference!r} resolved to index {idx} via {strategy.__name__}")
                return idx
    return NOT_FOUND


def parse_reference_from_purpose(purpose: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Pull ``(insert_after, insert_before)`` out of a free-text purpose.

    "Coffee after Soho House" yields ``("soho house", None)``.
    """
    text = (purpose or "").strip().lower()
    if not text:
        return None, None
    after = _AFTER_RE.search(text)
    before = _BEFORE_RE.search(text)
    return (
        after.group(1).strip() if after else None,
        before.group(1).strip() if before else None,
    )
