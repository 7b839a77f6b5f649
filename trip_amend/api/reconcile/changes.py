"""Compute the before/after change set shown in the amendment preview.

The diff is rebuilt from the two lists alone, never from the reconciler's
bookkeeping, so the preview always describes what was actually produced.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from trip_amend.api.models import ChangeSet, RemovedWaypoint, Waypoint
from trip_amend.api.reconcile.normalizer import load_waypoints

logger = logging.getLogger(__name__)

DISPLAYED_FIELDS = ("label", "full_address", "time", "lat", "lng")


def _same_text(a: str, b: str) -> bool:
    return bool(a) and a.lower() == b.lower()


def is_same_waypoint(original: Waypoint, candidate: Waypoint) -> bool:
    """Name-or-address equality, or identical (non-zero) coordinates."""
    name_match = (_same_text(original.label, candidate.label)
                  or _same_text(original.full_address, candidate.full_address))
    coord_match = (original.has_coordinates
                   and original.lat == candidate.lat
                   and original.lng == candidate.lng)
    return name_match or coord_match


def changed_fields(original: Waypoint, candidate: Waypoint) -> List[str]:
    return [f for f in DISPLAYED_FIELDS if getattr(original, f) != getattr(candidate, f)]


def _claim(candidate: Waypoint, originals: Sequence[Waypoint], claimed: set) -> Optional[int]:
    for idx, original in enumerate(originals):
        if idx not in claimed and is_same_waypoint(original, candidate):
            return idx
    return None


def compute_changes(original: Any, updated: Any) -> ChangeSet:
    """Diff ``original`` against ``updated``.

    Both arguments go through the normaliser, so stored rows, form rows and
    :class:`Waypoint` lists are all accepted.
    """
    before = load_waypoints(original)
    after = load_waypoints(updated)
    changes = ChangeSet()
    claimed = set()

    for new_idx, candidate in enumerate(after):
        orig_idx = _claim(candidate, before, claimed)
        if orig_idx is None:
            changes.added_indices.append(new_idx)
            continue
        claimed.add(orig_idx)
        changes.original_of[new_idx] = before[orig_idx]
        diff = changed_fields(before[orig_idx], candidate)
        if diff:
            changes.modified_indices.append(new_idx)
            changes.changed_fields[new_idx] = diff

    for orig_idx, wp in enumerate(before):
        if orig_idx not in claimed:
            changes.removed.append(RemovedWaypoint(orig_idx, wp))

    logger.info(f"Changes: {changes.summary}")
    return changes
