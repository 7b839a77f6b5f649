# trip_amend/api/services/amendment_service.py
"""Service layer for previewing and applying trip amendments."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from trip_amend.api.config import get_reconcile_config
from trip_amend.api.models import ChangeSet, ExtractedData, Waypoint
from trip_amend.api.preprocess import detect_unchanged_fields
from trip_amend.api.reconcile import compute_changes, is_airport_location, load_waypoints
from trip_amend.api.reconcile.reconciler import Reconciler

logger = logging.getLogger(__name__)

TRIP_FIELDS = ("leadPassengerName", "vehicleInfo", "passengerCount", "tripDestination", "driverNotes", "date")

# "rest same" categories -> extracted keys they silence
UNCHANGED_FIELD_KEYS = {
    "vehicle": ("vehicleInfo",),
    "passengers": ("leadPassengerName", "passengerNames"),
    "date": ("date",),
}


@dataclass
class AmendmentPreview:
    """Everything a reviewer needs before accepting an amendment."""

    waypoints: List[Waypoint]
    changes: ChangeSet
    field_changes: Dict[str, Any] = field(default_factory=dict)
    dropped: int = 0

    @property
    def has_locations(self) -> bool:
        return bool(self.waypoints)

    def to_dict(self) -> dict:
        return {
            "locations": [wp.to_dict() for wp in self.waypoints],
            "changes": self.changes.to_dict(),
            "fieldChanges": dict(self.field_changes),
            "dropped": self.dropped,
            "hasLocations": self.has_locations,
        }


def is_acceptable_waypoint(wp: Waypoint) -> bool:
    """A waypoint can be saved once it has a name and coordinates.

    Airport references ("Heathrow Airport, UK") are exempt from the
    coordinate requirement.
    """
    texts = (wp.label, wp.full_address, wp.purpose)
    has_name = any(t.strip() for t in texts)
    is_airport = any(is_airport_location(t) for t in texts)
    return has_name and (wp.has_coordinates or is_airport)


def _acceptable(waypoints: List[Waypoint]) -> List[Waypoint]:
    kept = []
    for wp in waypoints:
        if is_acceptable_waypoint(wp):
            kept.append(wp)
        else:
            logger.warning(
                f"Rejecting location {wp.sequence_index + 1} {wp.label!r}: "
                f"missing name or coordinates"
            )
    return kept


class AmendmentService:
    """Handles amendment previews and their application."""

    @staticmethod
    def apply_unchanged_overrides(extracted: ExtractedData, update_text: str) -> ExtractedData:
        """Blank out fields the sender said to keep ("rest same")."""
        unchanged = detect_unchanged_fields(update_text)
        for category in unchanged:
            for key in UNCHANGED_FIELD_KEYS.get(category, ()):
                if extracted.fields.get(key):
                    logger.info(f"Ignoring extracted {key}: {extracted.fields[key]!r}")
                    extracted.fields[key] = None
        return extracted

    @staticmethod
    def validate_trip_date(extracted: ExtractedData, today: Optional[date] = None) -> ExtractedData:
        """Drop an extracted trip date that is unparseable or in the past."""
        raw = extracted.fields.get("date")
        if not raw:
            return extracted
        today = today or date.today()
        try:
            parsed = date.fromisoformat(str(raw)[:10])
        except ValueError:
            logger.error(f"Invalid date format: {raw!r}")
            extracted.fields["date"] = None
            return extracted
        if parsed < today:
            logger.warning(f"Extracted date {raw} is in the past; ignoring it")
            extracted.fields["date"] = None
        return extracted

    @staticmethod
    def diff_trip_fields(extracted: ExtractedData, current_fields: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Non-location fields whose extracted value differs from the trip's."""
        current_fields = current_fields or {}
        changes = {}
        for key in TRIP_FIELDS:
            value = extracted.fields.get(key)
            if value and value != current_fields.get(key):
                changes[key] = value
        return changes

    @staticmethod
    def preview(current: Any, extracted: Any, update_text: str = "",
                current_fields: Optional[Dict[str, Any]] = None,
                today: Optional[date] = None) -> AmendmentPreview:
        """Reconcile an extraction against the current trip for review.

        Args:
            current: Current waypoints (list, JSON string or loose string)
            extracted: Extraction payload or ExtractedData
            update_text: Original amendment text, used for "rest same" overrides
            current_fields: Current non-location trip fields
            today: Reference date for the past-date check

        Returns:
            AmendmentPreview with reconciled waypoints and the change set
        """
        original = load_waypoints(current)
        data = ExtractedData.from_dict(extracted)
        if update_text:
            AmendmentService.apply_unchanged_overrides(data, update_text)
        AmendmentService.validate_trip_date(data, today)

        default_time = get_reconcile_config()["default_time"]
        result = Reconciler(original, data, default_time).run()
        changes = compute_changes(original, result.waypoints)

        if not result.waypoints:
            logger.warning("Reconciled trip has no locations; nothing to apply")

        return AmendmentPreview(
            waypoints=result.waypoints,
            changes=changes,
            field_changes=AmendmentService.diff_trip_fields(data, current_fields),
            dropped=len(result.dropped),
        )

    @staticmethod
    def validate_for_apply(preview_locations: Any, fallback_locations: Any = None) -> List[Waypoint]:
        """Keep only saveable waypoints, falling back to the current trip.

        Raises:
            ValueError: If no waypoint can be saved
        """
        valid = _acceptable(load_waypoints(preview_locations))
        if not valid and fallback_locations:
            logger.warning("No valid preview locations, falling back to current trip locations")
            valid = _acceptable(load_waypoints(fallback_locations))

        if not valid:
            raise ValueError(
                "Please ensure all locations have valid addresses and coordinates."
            )
        return load_waypoints(valid)

    @staticmethod
    def format_change_summary(changes: ChangeSet, waypoints: List[Waypoint]) -> List[str]:
        """Human-readable lines describing a change set.

        Args:
            changes: Computed change set
            waypoints: The reconciled list the change set indexes into

        Returns:
            One line per added, modified and removed stop
        """
        lines = []
        for idx in changes.added_indices:
            wp = waypoints[idx]
            lines.append(f"Added stop {idx + 1}: {wp.label} at {wp.time or 'N/A'}")
        for idx in changes.modified_indices:
            wp = waypoints[idx]
            before = changes.original_of[idx]
            fields = ", ".join(changes.changed_fields.get(idx, []))
            lines.append(f"Changed stop {idx + 1}: {before.label} -> {wp.label} ({fields})")
        for removed in changes.removed:
            lines.append(f"Removed stop {removed.original_index + 1}: {removed.waypoint.label}")
        if not lines:
            lines.append("No changes to the route.")
        return lines


# Export for use in other modules
__all__ = ['AmendmentService', 'AmendmentPreview', 'is_acceptable_waypoint']
