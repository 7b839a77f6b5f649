"""Airport-pattern classifier.

"Zurich Airport, Switzerland" names a place precisely enough to keep
without coordinates; "12 Airport Road" is a street address and still needs
a geocode.
"""

from __future__ import annotations

import re
from typing import Optional

_STREET_ADDRESS = re.compile(
    r"\d+\s+(?:\w+\s+)*?"
    r"(?:street|st|avenue|ave|road|rd|boulevard|blvd|drive|dr|lane|ln|way|circle|court|ct)\b",
    re.IGNORECASE,
)
_AIRPORT_SHAPE = re.compile(r"^[a-z\s'.-]*\bairport\b\s*,?\s*[a-z\s'.-]*$", re.IGNORECASE)


def is_airport_location(text: Optional[str]) -> bool:
    """True for ``"<words> airport[, <words>]"`` strings with no street address."""
    if not text:
        return False
    normalized = text.strip().lower()
    if "airport" not in normalized:
        return False
    if _STREET_ADDRESS.search(normalized):
        return False
    return bool(_AIRPORT_SHAPE.match(normalized))
