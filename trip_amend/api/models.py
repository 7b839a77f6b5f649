"""Shared data structures for trip amendments.

Waypoints are the canonical stops of a trip; extracted edits are the
untrusted proposals coming back from the extraction service.  Both live
here so the reconcile engine, the service layer and the routes share a
single source-of-truth definition.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

HIGH = "high"
MEDIUM = "medium"
LOW = "low"
CONFIDENCE_LEVELS = (HIGH, MEDIUM, LOW)

# The extraction service fills an unmentioned time with this value.
DEFAULT_FILLER_TIME = "12:00"


def clean_text(value: Any) -> str:
    """Return a stripped string; ``None`` and non-scalars become ``""``."""
    if value is None or isinstance(value, (dict, list, tuple, bool)):
        return ""
    return str(value).strip()


def to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:  # NaN
        return None
    return number


def to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def to_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1"):
            return True
        if lowered in ("false", "no", "0"):
            return False
        return None
    if isinstance(value, (int, float)):
        return bool(value)
    return None


def _first(data: Dict[str, Any], *keys: str) -> Any:
    """Return the first non-empty value among ``keys``."""
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return None


@dataclass
class Waypoint:
    """A single scheduled stop of a trip."""

    label: str  # display name, e.g. "Pickup - Heathrow Terminal 5"
    purpose: str = ""
    full_address: str = ""
    lat: float = 0.0
    lng: float = 0.0
    time: str = ""  # "HH:MM", empty when not scheduled yet
    verified: bool = False
    external_id: str = ""
    confidence: str = HIGH
    sequence_index: int = 0

    @property
    def has_coordinates(self) -> bool:
        return self.lat != 0 and self.lng != 0

    @property
    def search_text(self) -> str:
        """Lower-cased label and purpose, as used by the text matchers."""
        return f"{self.label} {self.purpose}".lower()

    @classmethod
    def from_dict(cls, data: Any, index: int = 0) -> "Waypoint":
        """Build a waypoint from a stored trip location or a form row.

        Storage rows carry ``name``/``fullAddress``/``id``; form rows carry
        ``location``/``formattedAddress``/``placeId``.  Bare strings are
        treated as a label.
        """
        if isinstance(data, Waypoint):
            return replace(data, sequence_index=index)
        if not isinstance(data, dict):
            label = clean_text(data)
            return cls(label=label, purpose=label, sequence_index=index)

        name = clean_text(_first(data, "name", "label", "displayLabel"))
        location = clean_text(data.get("location"))
        address = clean_text(_first(data, "fullAddress", "formattedAddress", "address"))
        label = name or location or address
        purpose = clean_text(data.get("purpose")) or name or location
        confidence = clean_text(data.get("confidence")).lower()
        verified = to_bool(data.get("verified"))

        return cls(
            label=label,
            purpose=purpose,
            full_address=address,
            lat=to_float(data.get("lat")) or 0.0,
            lng=to_float(data.get("lng")) or 0.0,
            time=clean_text(data.get("time")),
            verified=True if verified is None else verified,
            external_id=clean_text(_first(data, "id", "placeId", "externalId")),
            confidence=confidence if confidence in CONFIDENCE_LEVELS else HIGH,
            sequence_index=index,
        )

    def to_dict(self) -> dict:
        return {
            "name": self.label,
            "purpose": self.purpose,
            "fullAddress": self.full_address,
            "lat": self.lat,
            "lng": self.lng,
            "time": self.time,
            "verified": self.verified,
            "id": self.external_id,
            "confidence": self.confidence,
            "sequenceIndex": self.sequence_index,
        }


def renumber(waypoints: List[Waypoint]) -> List[Waypoint]:
    """Return copies whose ``sequence_index`` matches their list position."""
    return [
        wp if wp.sequence_index == idx else replace(wp, sequence_index=idx)
        for idx, wp in enumerate(waypoints)
    ]


@dataclass
class ExtractedEdit:
    """One proposed change or new stop, as emitted by the extraction service.

    Every field is optional.  Absent values and empty strings are both
    stored as ``None`` so the matchers never have to tell them apart.
    """

    location_text: Optional[str] = None
    formatted_address: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    time: Optional[str] = None
    purpose_text: Optional[str] = None
    position_hint: Optional[int] = None
    insert_after_text: Optional[str] = None
    insert_before_text: Optional[str] = None
    verified: Optional[bool] = None
    external_id: Optional[str] = None
    confidence_hint: Optional[str] = None

    @property
    def label(self) -> str:
        return (self.location_text or "").lower()

    @property
    def purpose(self) -> str:
        return (self.purpose_text or "").lower()

    @property
    def has_coordinates(self) -> bool:
        return bool(self.lat) and bool(self.lng)

    @classmethod
    def from_dict(cls, data: Any) -> "ExtractedEdit":
        # Imported here: times.py depends on this module.
        from trip_amend.api.reconcile.times import normalize_time

        if isinstance(data, ExtractedEdit):
            return data
        if not isinstance(data, dict):
            text = clean_text(data)
            return cls(location_text=text or None)

        def opt(*keys: str) -> Optional[str]:
            return clean_text(_first(data, *keys)) or None

        confidence = (opt("confidence") or "").lower()
        raw_time = data.get("time")
        time = normalize_time(raw_time) if raw_time not in (None, "") else ""

        return cls(
            location_text=opt("location", "name", "label"),
            formatted_address=opt("formattedAddress", "fullAddress", "address"),
            lat=to_float(data.get("lat")),
            lng=to_float(data.get("lng")),
            time=time or None,
            purpose_text=opt("purpose"),
            position_hint=to_int(_first(data, "locationIndex", "positionHint")),
            insert_after_text=opt("insertAfter"),
            insert_before_text=opt("insertBefore"),
            verified=to_bool(data.get("verified")),
            external_id=opt("placeId", "id"),
            confidence_hint=confidence if confidence in CONFIDENCE_LEVELS else None,
        )

    def to_dict(self) -> dict:
        data = {
            "location": self.location_text,
            "formattedAddress": self.formatted_address,
            "lat": self.lat,
            "lng": self.lng,
            "time": self.time,
            "purpose": self.purpose_text,
            "locationIndex": self.position_hint,
            "insertAfter": self.insert_after_text,
            "insertBefore": self.insert_before_text,
            "verified": self.verified,
            "placeId": self.external_id,
            "confidence": self.confidence_hint,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class ExtractedData:
    """The full extraction response: edits, removals and trip-level fields."""

    locations: List[ExtractedEdit] = field(default_factory=list)
    removed_locations: List[str] = field(default_factory=list)
    fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.locations and not self.removed_locations

    @classmethod
    def from_dict(cls, data: Any) -> "ExtractedData":
        """Decode an extraction payload, tolerating missing or wrong-typed keys."""
        if isinstance(data, ExtractedData):
            return data
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                return cls()
        if not isinstance(data, dict):
            return cls()

        raw_locations = data.get("locations")
        if not isinstance(raw_locations, list):
            raw_locations = []
        raw_removed = data.get("removedLocations")
        if isinstance(raw_removed, str):
            raw_removed = [raw_removed]
        if not isinstance(raw_removed, list):
            raw_removed = []

        locations = [ExtractedEdit.from_dict(loc) for loc in raw_locations if loc]
        removed = [clean_text(r) for r in raw_removed if clean_text(r)]
        extra = {
            key: value
            for key, value in data.items()
            if key not in ("locations", "removedLocations", "success")
        }
        return cls(locations=locations, removed_locations=removed, fields=extra)

    def to_dict(self) -> dict:
        data = dict(self.fields)
        data["locations"] = [loc.to_dict() for loc in self.locations]
        data["removedLocations"] = list(self.removed_locations)
        return data


@dataclass(frozen=True)
class MatchResult:
    """Outcome of a matching strategy; callers branch on ``matched``."""

    matched: bool
    target_index: Optional[int] = None
    confidence: str = LOW


NO_MATCH = MatchResult(matched=False, confidence=LOW)


@dataclass
class RemovedWaypoint:
    original_index: int
    waypoint: Waypoint

    def to_dict(self) -> dict:
        return {"index": self.original_index, "location": self.waypoint.to_dict()}


@dataclass
class ChangeSet:
    """Diff between a trip's waypoints before and after an amendment.

    ``modified_indices`` and ``added_indices`` point into the *new* list;
    ``original_of`` maps every claimed new index to its original waypoint.
    """

    removed: List[RemovedWaypoint] = field(default_factory=list)
    modified_indices: List[int] = field(default_factory=list)
    added_indices: List[int] = field(default_factory=list)
    original_of: Dict[int, Waypoint] = field(default_factory=dict)
    changed_fields: Dict[int, List[str]] = field(default_factory=dict)

    @property
    def has_changes(self) -> bool:
        return bool(self.removed or self.modified_indices or self.added_indices)

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "removed": len(self.removed),
            "modified": len(self.modified_indices),
            "added": len(self.added_indices),
        }

    def to_dict(self) -> dict:
        return {
            "removed": [r.to_dict() for r in self.removed],
            "modified": list(self.modified_indices),
            "added": list(self.added_indices),
            "originalLocationMap": {
                str(idx): wp.to_dict() for idx, wp in self.original_of.items()
            },
            "changedFields": {str(idx): f for idx, f in self.changed_fields.items()},
            "summary": self.summary,
        }
