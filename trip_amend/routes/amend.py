# trip_amend/routes/amend.py
"""Amendment routes and blueprint configuration."""

import logging

from flask import Blueprint, jsonify, request
from openai import OpenAIError

from trip_amend.api.config import get_reconcile_config
from trip_amend.api.geocoding import geocode_missing_coordinates
from trip_amend.api.llm import ExtractionError, extract_trip_updates
from trip_amend.api.preprocess import strip_email_metadata
from trip_amend.api.reconcile import compute_changes, load_waypoints
from trip_amend.api.services.amendment_service import AmendmentService

logger = logging.getLogger(__name__)


def _extract(text, trip_destination):
    cleaned = strip_email_metadata(text)
    return extract_trip_updates(cleaned, trip_destination or None)


def create_amend_blueprint():
    """Create and configure the amendment blueprint.

    Returns:
        Configured Flask Blueprint
    """
    amend_bp = Blueprint("amend", __name__, url_prefix="/amend")

    @amend_bp.route("/api/extract", methods=["POST"])
    def api_extract():
        """Extract a structured proposal from amendment text."""
        data = request.get_json(silent=True) or {}
        text = (data.get("text") or "").strip()
        if not text:
            return jsonify({"success": False, "error": "Missing text"}), 400

        try:
            extracted = _extract(text, data.get("tripDestination"))
        except ExtractionError as e:
            return jsonify({"success": False, "error": str(e)}), 422
        except (OpenAIError, ValueError) as e:
            logger.error(f"Extraction failed: {e}")
            return jsonify({"success": False, "error": str(e)}), 500

        return jsonify({"success": True, **extracted.to_dict()})

    @amend_bp.route("/api/preview", methods=["POST"])
    def api_preview():
        """Reconcile an amendment against the current trip for review."""
        data = request.get_json(silent=True) or {}
        current = data.get("currentLocations")
        extracted = data.get("extractedData")
        update_text = data.get("updateText") or ""

        if extracted is None:
            if not update_text.strip():
                return jsonify({"error": "Missing extractedData or updateText"}), 400
            try:
                extracted = _extract(update_text, data.get("tripDestination"))
            except ExtractionError as e:
                return jsonify({"error": str(e)}), 422
            except (OpenAIError, ValueError) as e:
                logger.error(f"Extraction failed: {e}")
                return jsonify({"error": str(e)}), 500

        preview = AmendmentService.preview(
            current,
            extracted,
            update_text=update_text,
            current_fields=data.get("currentFields"),
        )
        payload = preview.to_dict()
        payload["summary"] = AmendmentService.format_change_summary(preview.changes, preview.waypoints)
        return jsonify(payload)

    @amend_bp.route("/api/changes", methods=["POST"])
    def api_changes():
        """Diff two waypoint lists."""
        data = request.get_json(silent=True) or {}
        changes = compute_changes(data.get("originalLocations"), data.get("newLocations"))
        return jsonify(changes.to_dict())

    @amend_bp.route("/api/apply", methods=["POST"])
    def api_apply():
        """Validate an accepted preview; the caller persists the result."""
        data = request.get_json(silent=True) or {}
        preview = data.get("previewLocations")

        geocode = data.get("geocode")
        if geocode is None:
            geocode = get_reconcile_config()["geocode_on_apply"]
        if geocode:
            # New stops arrive without coordinates; resolve them before validation.
            preview = geocode_missing_coordinates(load_waypoints(preview), data.get("city") or "")

        try:
            waypoints = AmendmentService.validate_for_apply(preview, data.get("currentLocations"))
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        return jsonify({"locations": [wp.to_dict() for wp in waypoints]})

    @amend_bp.route("/health")
    def health():
        """Health check endpoint."""
        return jsonify({"status": "ok", "service": "amend"})

    return amend_bp


__all__ = ['create_amend_blueprint']
