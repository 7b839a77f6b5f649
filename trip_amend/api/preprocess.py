"""Clean amendment text before it is sent for extraction."""

from __future__ import annotations

import logging
import re
from typing import Set

logger = logging.getLogger(__name__)

_HEADER_PATTERNS = [
    re.compile(r"^From:\s*[^\n]+@[^\n]+$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^To:\s*[^\n]+@[^\n]+$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^Subject:\s*[^\n]+$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^Date:\s*\d{1,2}\s+[a-z]{3}\s+\d{4}\s+\d{2}:\d{2}\s*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^Cc:\s*[^\n]+$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^Bcc:\s*[^\n]+$", re.IGNORECASE | re.MULTILINE),
]
_BLANK_LINES = re.compile(r"^\s*[\r\n]+", re.MULTILINE)
_INLINE_DATE = re.compile(r"^Date:\s*\d{1,2}\s+[a-z]{3}\s+\d{4}\s+\d{2}:\d{2}\s+", re.IGNORECASE | re.MULTILINE)
_COMMAND_MARKERS = [
    re.compile(r"\s+EXTRAER\s+VIAJE\s*$", re.IGNORECASE),
    re.compile(r"\s+EXTRACT\s+TRIP\s*$", re.IGNORECASE),
]

_SAME_PHRASES = ("rest same", "same same", "everything else same", "rest unchanged")
_VEHICLE_WORDS = ("vehicle", "car", "mercedes", "bmw", "audi")
_TITLE_RE = re.compile(r"\b(?:mr|ms|mrs|dr)\.")
_DAY_MONTH_RE = re.compile(r"\d{1,2}\s*(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)", re.IGNORECASE)
_MONTH_DAY_RE = re.compile(
    r"(?:january|february|march|april|may|june|july|august|september|october|november|december)\s*\d{1,2}",
    re.IGNORECASE,
)


def strip_email_metadata(text: str) -> str:
    """Remove standalone e-mail headers and trailing command markers.

    A ``Date:`` header followed by message content on the same line only
    loses the date prefix.
    """
    if not text:
        return ""
    cleaned = text
    for pattern in _HEADER_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    cleaned = _BLANK_LINES.sub("", cleaned).strip()
    cleaned = _INLINE_DATE.sub("", cleaned)
    for pattern in _COMMAND_MARKERS:
        cleaned = pattern.sub("", cleaned)

    removed = len(text) - len(cleaned)
    if removed > 0:
        logger.debug(f"Removed {removed} characters of email metadata")
    return cleaned.strip()


def detect_unchanged_fields(update_text: str) -> Set[str]:
    """Fields the sender asked to keep ("rest same") and did not mention."""
    text = (update_text or "").lower()
    unchanged: Set[str] = set()
    if not any(phrase in text for phrase in _SAME_PHRASES):
        return unchanged

    if not any(word in text for word in _VEHICLE_WORDS):
        unchanged.add("vehicle")
    if "passenger" not in text and not _TITLE_RE.search(text):
        unchanged.add("passengers")
    if not _DAY_MONTH_RE.search(text) and not _MONTH_DAY_RE.search(text):
        unchanged.add("date")

    logger.info(f"Detected 'same' language; unchanged fields: {sorted(unchanged)}")
    return unchanged
