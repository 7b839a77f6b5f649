"""LLM extraction of trip amendments.

Turns free amendment text into an :class:`ExtractedData` proposal via the
OpenAI Chat Completions API.  The result is untrusted: the reconcile
engine decides what it actually means for the current trip.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from openai import APIConnectionError, APITimeoutError, OpenAI, RateLimitError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from trip_amend.api.config import get_extraction_config, get_openai_api_key
from trip_amend.api.models import ExtractedData

logger = logging.getLogger(__name__)

_client: Optional[OpenAI] = None

EXTRACTION_CONFIG = get_extraction_config()


class ExtractionError(ValueError):
    """The extraction model returned something that is not a usable proposal."""


def _get_client() -> OpenAI:
    """Return a cached OpenAI client."""
    global _client
    if _client is None:
        _client = OpenAI(api_key=get_openai_api_key())
    return _client


# ---------------------------------------------------------------------------
# Prompt construction helpers
# ---------------------------------------------------------------------------

def _build_prompt(text: str, trip_destination: Optional[str] = None) -> str:
    destination = f"The trip takes place in {trip_destination}. " if trip_destination else ""
    return (
        "You extract changes to a chauffeured ground-transportation itinerary. "
        f"{destination}"
        "Reply in strict JSON with the schema: "
        "{\n  \"locations\": [\n    {\n      \"location\": <str>, \"formattedAddress\": <str|null>, "
        "\"lat\": <num|null>, \"lng\": <num|null>, \"time\": \"HH:MM\"|null, \"purpose\": <str|null>, "
        "\"locationIndex\": <int|null>, \"insertAfter\": <str|null>, \"insertBefore\": <str|null>, "
        "\"confidence\": \"high\"|\"medium\"|\"low\"\n    }\n  ],\n"
        "  \"removedLocations\": [<str>],\n"
        "  \"leadPassengerName\": <str|null>, \"vehicleInfo\": <str|null>, "
        "\"passengerCount\": <int|null>, \"tripDestination\": <str|null>, "
        "\"driverNotes\": <str|null>, \"date\": \"YYYY-MM-DD\"|null\n}\n"
        "Only include locations the text mentions. Use insertAfter/insertBefore "
        "for new stops placed relative to an existing one.\n\n"
        f"Text:\n{text}"
    )


def _parse_response(content: Optional[str]) -> ExtractedData:
    """Decode the model's raw JSON string into an :class:`ExtractedData`."""
    try:
        payload = json.loads(content or "")
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse extraction response: %s", exc)
        raise ExtractionError(f"Extraction response is not JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ExtractionError("Extraction response is not a JSON object")
    if payload.get("success") is False:
        raise ExtractionError(payload.get("error") or "Could not understand the update text")
    return ExtractedData.from_dict(payload)


@retry(
    stop=stop_after_attempt(EXTRACTION_CONFIG["max_attempts"]),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((APIConnectionError, APITimeoutError, RateLimitError)),
    reraise=True,
)
def _complete(messages: list) -> str:
    response = _get_client().chat.completions.create(
        model=EXTRACTION_CONFIG["model"],
        messages=messages,
        temperature=EXTRACTION_CONFIG["temperature"],
        max_tokens=EXTRACTION_CONFIG["max_tokens"],
        response_format={"type": "json_object"},
    )
    return response.choices[0].message.content


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_trip_updates(text: str, trip_destination: Optional[str] = None) -> ExtractedData:
    """Return the structured proposal for an amendment text."""
    messages = [
        {"role": "system", "content": "You are a precise travel-operations assistant."},
        {"role": "user", "content": _build_prompt(text, trip_destination)},
    ]

    logger.debug(
        "Calling OpenAI ChatCompletion: model=%s destination=%s chars=%d",
        EXTRACTION_CONFIG["model"],
        trip_destination,
        len(text),
    )

    extracted = _parse_response(_complete(messages))
    logger.info(
        "Extracted %d location(s) and %d removal(s)",
        len(extracted.locations),
        len(extracted.removed_locations),
    )
    return extracted
