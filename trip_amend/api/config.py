# api/config.py
"""Configuration management for the trip amendment API."""
import os
from dotenv import load_dotenv

from trip_amend.api.models import DEFAULT_FILLER_TIME

load_dotenv()


def get_openai_api_key():
    """Get OpenAI API key from environment."""
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise ValueError("OPENAI_API_KEY not set")
    return api_key


def get_extraction_config():
    """Get configuration for the trip-update extraction model."""
    return {
        "model": os.getenv("OPENAI_CHAT_MODEL", "gpt-4.1"),
        "temperature": float(os.getenv("EXTRACTION_TEMPERATURE", "0.1")),
        "max_tokens": int(os.getenv("EXTRACTION_MAX_TOKENS", "2048")),
        "max_attempts": int(os.getenv("EXTRACTION_MAX_ATTEMPTS", "3")),
    }


def get_google_maps_config():
    """Get Google Maps configuration."""
    return {
        "api_key": os.getenv("GOOGLE_MAPS_API_KEY", ""),
    }


def get_reconcile_config():
    """Get reconciliation tuning.

    ``default_time`` is the value the extraction model writes when an
    amendment never mentioned a time.
    """
    return {
        "default_time": os.getenv("RECONCILE_DEFAULT_TIME", DEFAULT_FILLER_TIME),
        "geocode_on_apply": os.getenv("GEOCODE_ON_APPLY", "false").lower() == "true",
    }


def get_port():
    """Get port configuration."""
    return int(os.getenv("PORT", 5000))


def get_cors_origins():
    """Get allowed CORS origins."""
    return os.getenv("CORS_ORIGINS", "*").split(",")
