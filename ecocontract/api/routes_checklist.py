"""
Checklist routes: JSON contract request in, merged PDF out.

    GET  /api/health              liveness (no auth)
    POST /api/checklist           merged PDF as a download
    POST /api/checklist/summary   page counts + per-attachment outcomes
"""
import os
import logging
import functools
from io import BytesIO

from flask import Blueprint, request, jsonify, send_file, Response

from ..forms.checklist_generator import ChecklistGenerationError
from ..forms.attachment_merger import STATUS_MERGED
from ..forms.composer import compose_checklist, parse_checklist_payload

log = logging.getLogger("ecocontract.api")

bp = Blueprint("checklist", __name__)


# ═══════════════════════════════════════════════════════════════════════
# Password Protection
# ═══════════════════════════════════════════════════════════════════════
def check_auth(username, password):
    return (username == os.environ.get("DASH_USER", "ecocontract")
            and password == os.environ.get("DASH_PASS", "changeme"))


def auth_required(f):
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        auth = request.authorization
        if not auth or not check_auth(auth.username, auth.password):
            return Response(
                "EcoContract: login required",
                401, {"WWW-Authenticate": 'Basic realm="EcoContract"'})
        return f(*args, **kwargs)
    return decorated


# ═══════════════════════════════════════════════════════════════════════
# Shared pipeline
# ═══════════════════════════════════════════════════════════════════════
def _compose_from_request():
    """Shared body of both POST routes: (result, None) or (None, error response)."""
    try:
        req, supplier, unit, settings = parse_checklist_payload(request.get_json(silent=True))
    except ValueError as e:
        log.info("Rejected checklist payload: %s", e)
        return None, (jsonify({"ok": False, "error": str(e)}), 400)
    try:
        return compose_checklist(req, supplier=supplier, settings=settings, unit=unit), None
    except ChecklistGenerationError as e:
        return None, (jsonify({"ok": False, "error": f"checklist generation failed: {e}"}), 500)


# ═══════════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════════
@bp.route("/api/health")
def api_health():
    return jsonify({"ok": True})


@bp.route("/api/checklist", methods=["POST"])
@auth_required
def api_checklist():
    """Generate the merged checklist and send it as a download."""
    result, error = _compose_from_request()
    if error:
        return error
    skipped = sum(1 for o in result["outcomes"] if o["status"] != STATUS_MERGED)
    resp = send_file(BytesIO(result["pdf"]), mimetype="application/pdf",
                     as_attachment=True, download_name=result["filename"])
    resp.headers["X-Report-Pages"] = str(result["report_pages"])
    resp.headers["X-Total-Pages"] = str(result["total_pages"])
    resp.headers["X-Attachments-Skipped"] = str(skipped)
    return resp


@bp.route("/api/checklist/summary", methods=["POST"])
@auth_required
def api_checklist_summary():
    """Same pipeline as /api/checklist, JSON summary instead of the PDF."""
    result, error = _compose_from_request()
    if error:
        return error
    return jsonify({
        "ok": True,
        "filename": result["filename"],
        "report_pages": result["report_pages"],
        "total_pages": result["total_pages"],
        "outcomes": result["outcomes"],
        "duration_ms": result["duration_ms"],
    })
