# trip_amend/api/geocoding.py
from __future__ import annotations

import logging
import time
from dataclasses import replace
from functools import lru_cache
from typing import List, Optional

import googlemaps

from trip_amend.api.config import get_google_maps_config
from trip_amend.api.models import Waypoint

logger = logging.getLogger(__name__)

_gmaps: googlemaps.Client | None = None


def _get_client() -> Optional[googlemaps.Client]:
    """Return a cached googlemaps.Client instance."""
    global _gmaps
    if _gmaps is None:
        try:
            cfg = get_google_maps_config()
            api_key = cfg.get("api_key", "")
            if not api_key:
                logger.error("No Google Maps API key found in config")
                return None
            logger.info(f"Initializing Google Maps client with key: {api_key[:10]}...")
            _gmaps = googlemaps.Client(key=api_key)
        except ValueError as e:
            logger.error(f"Failed to initialize Google Maps client: {e}")
            return None
    return _gmaps


@lru_cache(maxsize=1000)
def get_coordinates_for_place(place: str) -> tuple[float, float] | None:
    """Resolve a free-text place name to (lat, lng) or None if not found."""
    client = _get_client()
    if client is None:
        return None
    try:
        logger.debug(f"Geocoding place: {place}")
        results = client.geocode(place, language="en")
    except googlemaps.exceptions.ApiError as e:
        logger.error(f"Geocoding error for '{place}': {e}")
        return None
    except (googlemaps.exceptions.TransportError, googlemaps.exceptions.Timeout) as e:
        logger.error(f"Geocoding transport error for '{place}': {e}")
        return None

    if not results:
        logger.warning(f"No results found for place: {place}")
        return None

    loc = results[0]["geometry"]["location"]
    logger.debug(f"Geocoded {place} to {loc['lat']}, {loc['lng']}")
    return loc["lat"], loc["lng"]


def geocode_missing_coordinates(waypoints: List[Waypoint], city: str = "") -> List[Waypoint]:
    """Back-fill coordinates for waypoints that have none.

    Failed look-ups are logged and the waypoint is returned unchanged, so the
    caller can still show the rest of the trip.  Returns new waypoint
    objects; the input list is not modified.
    """
    start_time = time.time()
    result = []
    resolved = 0
    missing = 0

    for wp in waypoints:
        if wp.has_coordinates:
            result.append(wp)
            continue
        place = wp.full_address or wp.label
        if not place:
            result.append(wp)
            continue

        missing += 1
        query = f"{place}, {city}" if city and city.lower() not in place.lower() else place
        coords = get_coordinates_for_place(query)
        if coords:
            resolved += 1
            result.append(replace(wp, lat=coords[0], lng=coords[1]))
        else:
            logger.warning(f"Failed to geocode '{place}'")
            result.append(wp)

    if missing:
        duration = time.time() - start_time
        logger.info(f"Geocoded {resolved}/{missing} waypoints in {duration:.2f}s")
    return result


# Re-export for clean imports elsewhere
__all__ = [
    "get_coordinates_for_place",
    "geocode_missing_coordinates",
]
