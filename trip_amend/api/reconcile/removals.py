"""Turn free-text removal phrases into waypoint indices to delete."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence

from trip_amend.api.models import Waypoint

logger = logging.getLogger(__name__)


def _whole_word(token: str, text: str) -> bool:
    return re.search(r"(?<!\w)%s(?!\w)" % re.escape(token), text) is not None


def phrase_matches(phrase: str, text: str) -> bool:
    """Whether removal ``phrase`` denotes the waypoint described by ``text``.

    Multi-word phrases match as a literal substring, or when every word is
    present somewhere in the text.  A single word only matches on word
    boundaries, so "tower" does not delete "Towering Oaks".
    """
    phrase = (phrase or "").strip().lower()
    text = (text or "").lower()
    words = phrase.split()
    if not words:
        return False

    if len(words) > 1:
        if phrase in text:
            return True
        return all(w in text for w in words)

    return _whole_word(words[0], text)


def matching_phrase(phrases: Sequence[str], waypoint: Waypoint) -> Optional[str]:
    """Return the first phrase that denotes ``waypoint``, if any."""
    text = waypoint.search_text
    for phrase in phrases:
        if phrase_matches(phrase, text):
            return phrase
    return None


def match_removals(phrases: Sequence[str], waypoints: Sequence[Waypoint]) -> List[int]:
    """Return the sorted indices of every waypoint any phrase denotes."""
    phrases = [p for p in (phrases or []) if isinstance(p, str) and p.strip()]
    if not phrases:
        return []

    indices = []
    for idx, wp in enumerate(waypoints):
        phrase = matching_phrase(phrases, wp)
        if phrase is not None:
            logger.info(f"Removing location {idx + 1}: {wp.label} (matched: {phrase!r})")
            indices.append(idx)
    return indices
