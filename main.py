"""
Trip Amend – main application entry point

* Flask app exposing the amendment preview/apply API under `/amend`.
* The reconcile engine itself is pure; this module only wires HTTP,
  CORS and logging around it.
"""

import os
import logging

from flask import Flask
from flask_cors import CORS
from dotenv import load_dotenv

# --------------------------------------------------------------------------- #
# Environment & logging
# --------------------------------------------------------------------------- #
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------- #
# Flask initialisation
# --------------------------------------------------------------------------- #
from trip_amend.api.config import get_cors_origins, get_port  # noqa: E402
from trip_amend.routes.amend import create_amend_blueprint  # noqa: E402

app = Flask(__name__)

# CORS for local dev / cross‑origin front‑end requests
CORS(app, origins=get_cors_origins(), supports_credentials=True)

app.register_blueprint(create_amend_blueprint())


@app.route("/debug")
def debug():
    """Simple JSON health endpoint."""
    return {
        "status": "ok",
        "endpoints": {
            "extract": "/amend/api/extract",
            "preview": "/amend/api/preview",
            "changes": "/amend/api/changes",
            "apply": "/amend/api/apply",
        },
    }

# --------------------------------------------------------------------------- #
# Local development runner ( `python main.py` )
# --------------------------------------------------------------------------- #
if __name__ == "__main__":
    port = get_port()
    logger.info("Starting amendment service on http://localhost:%d", port)
    app.run(host="0.0.0.0", port=port, debug=os.getenv("FLASK_DEBUG") == "1")

__all__ = ["app"]
