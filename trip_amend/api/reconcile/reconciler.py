"""Merge an extraction proposal into the canonical waypoint list.

One pass moves through a fixed sequence of phases::

    START -> REMOVALS_APPLIED -> MODIFICATIONS_APPLIED -> INSERTIONS_APPLIED -> DONE

Removals run first so indices computed afterwards are not stale.
Modifications run before insertions so an edit that matches an existing
stop is never also added as a new one.  Each phase works on a fresh copy
of the list; the caller's waypoints are never mutated.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, List, Optional, Tuple

from trip_amend.api.models import (
    DEFAULT_FILLER_TIME,
    MEDIUM,
    ExtractedData,
    ExtractedEdit,
    Waypoint,
    renumber,
)
from trip_amend.api.reconcile.airport import is_airport_location
from trip_amend.api.reconcile.matching import is_boundary_match, match_edit
from trip_amend.api.reconcile.normalizer import load_waypoints
from trip_amend.api.reconcile.references import (
    NOT_FOUND,
    parse_reference_from_purpose,
    resolve_reference,
)
from trip_amend.api.reconcile.removals import match_removals
from trip_amend.api.reconcile.times import should_update_time

logger = logging.getLogger(__name__)


class ReconcilePhase(Enum):
    START = "start"
    REMOVALS_APPLIED = "removals_applied"
    MODIFICATIONS_APPLIED = "modifications_applied"
    INSERTIONS_APPLIED = "insertions_applied"
    DONE = "done"


class ReconcileStateError(ValueError):
    """A phase was invoked out of order."""


@dataclass
class InsertedWaypoint:
    index: int  # position at insertion time
    waypoint: Waypoint
    anchor: Optional[str] = None
    anchored: bool = False


@dataclass
class ReconcileResult:
    """Reconciled list plus the bookkeeping of how it was produced."""

    waypoints: List[Waypoint]
    removed_indices: List[int] = field(default_factory=list)
    modified_indices: List[int] = field(default_factory=list)
    inserted: List[InsertedWaypoint] = field(default_factory=list)
    dropped: List[ExtractedEdit] = field(default_factory=list)


def is_blank_proposal(waypoint: Waypoint) -> bool:
    """No label, no address, no coordinates and no airport exemption."""
    if waypoint.label.strip() or waypoint.full_address.strip():
        return False
    if waypoint.has_coordinates:
        return False
    return not is_airport_location(waypoint.purpose)


def _new_waypoint_id(edit: ExtractedEdit) -> str:
    seed = "|".join(
        str(v) for v in (edit.location_text, edit.formatted_address, edit.time,
                         edit.lat, edit.lng, edit.purpose_text)
    )
    return "new-location-" + hashlib.sha1(seed.encode("utf-8")).hexdigest()[:12]


def merge_edit(current: Waypoint, edit: ExtractedEdit, confidence: str,
               default_time: str = DEFAULT_FILLER_TIME) -> Waypoint:
    """Apply ``edit`` to ``current``; absent edit fields keep current values."""
    update_time = should_update_time(edit.time, current.time, default_time)
    if not update_time and edit.time and edit.time != current.time:
        logger.info(
            f"Time preserved for {current.label!r}: extracted {edit.time!r} "
            f"looks like a default, keeping {current.time!r}"
        )

    return replace(
        current,
        label=edit.location_text or current.label,
        full_address=edit.formatted_address or current.full_address,
        lat=edit.lat if edit.lat else current.lat,
        lng=edit.lng if edit.lng else current.lng,
        time=edit.time if update_time else current.time,
        purpose=edit.purpose_text or current.purpose,
        verified=current.verified if edit.verified is None else edit.verified,
        external_id=edit.external_id or current.external_id,
        confidence=confidence,
    )


def build_waypoint(edit: ExtractedEdit, default_time: str = DEFAULT_FILLER_TIME) -> Waypoint:
    """Create the waypoint for an edit that matched nothing."""
    label = edit.location_text or ""
    return Waypoint(
        label=label,
        purpose=edit.purpose_text or label,
        full_address=edit.formatted_address or label,
        lat=edit.lat or 0.0,
        lng=edit.lng or 0.0,
        time=edit.time or default_time,
        verified=bool(edit.verified),
        external_id=edit.external_id or _new_waypoint_id(edit),
        confidence=edit.confidence_hint or MEDIUM,
    )


class Reconciler:
    """Single reconciliation pass as an explicit state machine.

    Call :meth:`run`, or the phase methods in order; calling a phase out of
    order raises :class:`ReconcileStateError`.
    """

    def __init__(self, current: Any, extracted: Any,
                 default_time: str = DEFAULT_FILLER_TIME):
        self.original: List[Waypoint] = load_waypoints(current)
        self.extracted: ExtractedData = ExtractedData.from_dict(extracted)
        self.default_time = default_time
        self.state = ReconcilePhase.START

        self._waypoints: List[Waypoint] = renumber(list(self.original))
        self._pending: List[ExtractedEdit] = []
        self.result = ReconcileResult(waypoints=self._waypoints)

    def _advance(self, expected: ReconcilePhase, target: ReconcilePhase) -> None:
        if self.state is not expected:
            raise ReconcileStateError(
                f"Cannot move to {target.value}: reconciler is in {self.state.value}, "
                f"expected {expected.value}"
            )
        self.state = target

    def _commit(self, waypoints: List[Waypoint]) -> None:
        self._waypoints = renumber(waypoints)
        self.result.waypoints = self._waypoints

    @property
    def waypoints(self) -> List[Waypoint]:
        return list(self._waypoints)

    def apply_removals(self) -> List[Waypoint]:
        self._advance(ReconcilePhase.START, ReconcilePhase.REMOVALS_APPLIED)

        doomed = set(match_removals(self.extracted.removed_locations, self._waypoints))
        kept = [wp for idx, wp in enumerate(self._waypoints) if idx not in doomed]
        self.result.removed_indices = sorted(doomed)
        if doomed:
            logger.info(f"Removed {len(doomed)} location(s)")
        self._commit(kept)
        return self.waypoints

    def apply_modifications(self) -> List[Waypoint]:
        self._advance(ReconcilePhase.REMOVALS_APPLIED, ReconcilePhase.MODIFICATIONS_APPLIED)

        working = list(self._waypoints)
        modified = set()
        pending = []
        for edit in self.extracted.locations:
            match = match_edit(edit, working)
            if not match.matched:
                pending.append(edit)
                continue
            idx = match.target_index
            logger.info(
                f"Modifying location {idx + 1}: {working[idx].label!r} -> "
                f"{edit.location_text or working[idx].label!r} ({match.confidence})"
            )
            working[idx] = merge_edit(working[idx], edit, match.confidence, self.default_time)
            modified.add(idx)

        self._pending = pending
        self.result.modified_indices = sorted(modified)
        self._commit(working)
        return self.waypoints

    def _anchor_for(self, edit: ExtractedEdit) -> Tuple[Optional[str], Optional[str]]:
        after, before = edit.insert_after_text, edit.insert_before_text
        if not after and not before:
            after, before = parse_reference_from_purpose(edit.purpose_text)
            if after or before:
                logger.debug(f"Parsed insertion reference from purpose: after={after!r} before={before!r}")
        return after, before

    def apply_insertions(self) -> List[Waypoint]:
        self._advance(ReconcilePhase.MODIFICATIONS_APPLIED, ReconcilePhase.INSERTIONS_APPLIED)

        settled = list(self._waypoints)
        # Matches are re-checked against the list as it stood after modifications.
        additions = []
        for edit in self._pending:
            recheck = match_edit(edit, settled)
            if recheck.matched:
                where = "pickup/dropoff" if is_boundary_match(recheck, settled) else f"index {recheck.target_index}"
                logger.debug(f"Skipping insertion of {edit.location_text!r}: already resolved as {where}")
                continue
            additions.append(edit)

        working = list(settled)
        for edit in additions:
            new_wp = build_waypoint(edit, self.default_time)
            if is_blank_proposal(new_wp):
                logger.warning(
                    f"Skipping empty location: location={new_wp.label!r}, "
                    f"formattedAddress={new_wp.full_address!r}"
                )
                self.result.dropped.append(edit)
                continue
            if not new_wp.has_coordinates and not new_wp.verified:
                logger.info(f"Location {new_wp.label!r} has no coordinates yet; it will need geocoding")

            after, before = self._anchor_for(edit)
            anchor = after or before
            position = len(working)
            anchored = False
            if anchor:
                ref_idx = resolve_reference(anchor, working)
                if ref_idx != NOT_FOUND:
                    position = ref_idx + 1 if after else ref_idx
                    anchored = True
                else:
                    logger.warning(f"Could not find reference {anchor!r}, appending {new_wp.label!r} at end")

            logger.info(f"Inserting {new_wp.label!r} at position {position + 1}")
            working.insert(position, new_wp)
            self.result.inserted.append(InsertedWaypoint(position, new_wp, anchor, anchored))

        self._commit(working)
        return self.waypoints

    def finish(self) -> ReconcileResult:
        self._advance(ReconcilePhase.INSERTIONS_APPLIED, ReconcilePhase.DONE)
        logger.info(
            f"Reconciled {len(self.original)} -> {len(self._waypoints)} location(s): "
            f"{len(self.result.removed_indices)} removed, "
            f"{len(self.result.modified_indices)} modified, "
            f"{len(self.result.inserted)} inserted"
        )
        return self.result

    def run(self) -> ReconcileResult:
        self.apply_removals()
        self.apply_modifications()
        self.apply_insertions()
        return self.finish()


def reconcile(current: Any, extracted: Any,
              default_time: str = DEFAULT_FILLER_TIME) -> List[Waypoint]:
    """Run a full pass and return the reconciled waypoints."""
    return Reconciler(current, extracted, default_time).run().waypoints
