"""Coerce a stored waypoint collection into an ordered list.

Trip locations arrive as a native list, a JSON string, or a loosely quoted
string written by older clients (single quotes, trailing commas).  The
normaliser tries each interpretation in turn and never raises: anything it
cannot read becomes an empty list.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Optional

from trip_amend.api.models import Waypoint

logger = logging.getLogger(__name__)

_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def _try_parse(value: str) -> Optional[list]:
    try:
        parsed = json.loads(value)
    except ValueError:
        return None
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        return [parsed]
    return None


def _relax(value: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", value.replace("'", '"'))


def _split_top_level(value: str) -> List[str]:
    """Split on commas/semicolons that are outside brackets and quotes."""
    parts: List[str] = []
    depth = 0
    quote = ""
    current: List[str] = []

    for char in value:
        if quote:
            current.append(char)
            if char == quote:
                quote = ""
            continue
        if char in "\"'":
            quote = char
        elif char in "{[":
            depth += 1
        elif char in "}]":
            depth = max(0, depth - 1)
        elif char in ",;" and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)

    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def _decode_fragment(fragment: str) -> Any:
    """Decode one fragment; only JSON objects and quoted strings survive."""
    for candidate in (fragment, _relax(fragment)):
        try:
            decoded = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(decoded, str):
            decoded = decoded.strip()
        if isinstance(decoded, (dict, str)):
            return decoded
        return None
    logger.debug(f"Dropping undecodable fragment: {fragment[:40]!r}")
    return None


def _reconstruct(value: str) -> list:
    body = value.strip()
    if body.startswith("[") and body.endswith("]"):
        body = body[1:-1]
    items = []
    for fragment in _split_top_level(body):
        decoded = _decode_fragment(fragment)
        if decoded in ("", None, [], {}):
            continue
        items.append(decoded)
    return items


def normalize_locations(raw: Any) -> list:
    """Return ``raw`` as an ordered list of location records.

    Order of attempts: structural pass-through, strict JSON, relaxed JSON,
    then a fragment-by-fragment reconstruction.
    """
    if not raw:
        return []
    if isinstance(raw, list):
        return raw
    if isinstance(raw, tuple):
        return list(raw)
    if not isinstance(raw, str):
        logger.warning(f"Cannot normalise locations of type {type(raw).__name__}")
        return []

    direct = _try_parse(raw)
    if direct is not None:
        return direct

    relaxed = _try_parse(_relax(raw))
    if relaxed is not None:
        logger.debug("Locations parsed after relaxing quotes and trailing commas")
        return relaxed

    rebuilt = _reconstruct(raw)
    if rebuilt:
        logger.info(f"Reconstructed {len(rebuilt)} location(s) from malformed input")
    else:
        logger.warning("Could not parse any locations from input")
    return rebuilt


def load_waypoints(raw: Any) -> List[Waypoint]:
    """Normalise ``raw`` and coerce every record into a :class:`Waypoint`."""
    return [Waypoint.from_dict(item, idx) for idx, item in enumerate(normalize_locations(raw))]
