"""Time helpers: ``HH:MM`` normalisation and the filler-time filter."""

from __future__ import annotations

import logging
import re
from typing import Any

from trip_amend.api.models import DEFAULT_FILLER_TIME

logger = logging.getLogger(__name__)


_CLOCK = re.compile(
    r"^(\d{1,2})(?::(\d{1,2})(?::\d{2})?)?\s*(?:([ap])\.?\s?m\.?)?$",
    re.IGNORECASE,
)


def _format(hours: int, minutes: int) -> str:
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return ""
    return f"{hours:02d}:{minutes:02d}"


def _from_hours(number: float) -> str:
    if not 0 <= number < 24:  # also rejects NaN
        return ""
    hours = int(number)
    minutes = int(round((number - hours) * 60))
    if minutes == 60:
        hours, minutes = hours + 1, 0
    return _format(hours, minutes)


def normalize_time(value: Any) -> str:
    """Coerce a loose time value to ``HH:MM``.

    Accepts ``"9:5"``, ``"09:30"``, ``"14"``, 12-hour forms such as
    ``"9:30 PM"`` or ``"3pm"``, and decimal hours such as ``14.5`` (14:30).
    Out-of-range values are rejected rather than clamped.  Returns ``""``
    when nothing usable is found.
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        return _from_hours(float(value))
    if not isinstance(value, str):
        return ""

    text = value.strip()
    if not text:
        return ""

    match = _CLOCK.match(text)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2) or 0)
        meridiem = (match.group(3) or "").lower()
        if meridiem:
            if not 1 <= hours <= 12:
                logger.debug(f"Unusable time string: {value!r}")
                return ""
            hours = hours % 12 + (12 if meridiem == "p" else 0)
        result = _format(hours, minutes)
    else:
        try:
            result = _from_hours(float(text))
        except ValueError:
            result = ""

    if not result:
        logger.debug(f"Unusable time string: {value!r}")
    return result


def should_update_time(proposed: Any, current: Any,
                       default_time: str = DEFAULT_FILLER_TIME) -> bool:
    """Decide whether a proposed time is an intentional change.

    A waypoint without a time always takes the proposal.  Otherwise the
    proposal must differ from the current time, and the filler value never
    overwrites a real (non-filler) scheduled time.
    """
    proposed = (proposed or "").strip() if isinstance(proposed, str) else ""
    current = (current or "").strip() if isinstance(current, str) else ""

    if not proposed:
        return False
    if not current:
        return True
    if proposed == current:
        return False
    if proposed == default_time and current != default_time:
        return False
    return True
