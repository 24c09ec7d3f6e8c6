#!/usr/bin/env python3
"""
EcoContract: application entry point
Creates the Flask app and registers the checklist Blueprint.
"""

import os
import time
import logging
from flask import Flask, request

from logging_config import setup_logging

log = logging.getLogger("ecocontract")


def create_app():
    """Application factory."""
    app = Flask(__name__)
    app.secret_key = os.environ.get("SECRET_KEY", "ecocontract-dev")

    from ecocontract.api.routes_checklist import bp
    app.register_blueprint(bp)

    # ── Request-level structured logging ────────────────────────────────────
    @app.before_request
    def _log_request_start():
        request._start_time = time.time()

    @app.after_request
    def _log_request_end(response):
        if hasattr(request, "_start_time"):
            duration_ms = round((time.time() - request._start_time) * 1000, 1)
            if request.path != "/api/health":
                log.info("%s %s → %d (%.0fms)",
                         request.method, request.path, response.status_code, duration_ms,
                         extra={"route": request.path, "method": request.method,
                                "status": response.status_code, "duration_ms": duration_ms})
        return response

    return app


# For gunicorn: gunicorn "app:create_app()"
if __name__ == "__main__":
    setup_logging()
    app = create_app()
    port = int(os.environ.get("PORT", 5000))
    app.run(host="0.0.0.0", port=port, debug=False)
