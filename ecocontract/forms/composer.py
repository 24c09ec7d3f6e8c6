"""
Checklist composer: report + attachments → one PDF.

Pipeline per call: rendering → validating-attachments → merging → done.
Only the rendering step can fail the call; attachment problems are reported
in the outcomes list. Nothing is shared between calls.
"""

import os
import re
import time
import logging
import unicodedata
from typing import Optional

from ..core import paths
from ..core.models import ContractRequest, Supplier, Unit, CompanySettings
from ..core.settings import load_company_settings
from .checklist_generator import render_checklist, safe_text
from .attachment_merger import merge_attachments, STATUS_MERGED

log = logging.getLogger("ecocontract.composer")

FILENAME_PREFIX = "Checklist_Contrato_"
FILENAME_PLACEHOLDER = "Fornecedor"


def parse_checklist_payload(data):
    """
    {"request", "supplier"?, "unit"?, "settings"?} → (request, supplier, unit, settings).

    Settings fall back to the stored company settings. Raises ValueError.
    """
    if not isinstance(data, dict) or not isinstance(data.get("request"), dict):
        raise ValueError("body must be a JSON object with a 'request' object")
    req = ContractRequest.from_dict(data["request"])
    supplier = Supplier.from_dict(data["supplier"]) if data.get("supplier") else None
    unit = Unit.from_dict(data["unit"]) if data.get("unit") else None
    if data.get("settings"):
        settings = CompanySettings.from_dict(data["settings"])
    else:
        settings = load_company_settings()
    return req, supplier, unit, settings


def checklist_filename(supplier=None) -> str:
    """Checklist_Contrato_<Supplier_Name>.pdf, ASCII only."""
    name = supplier.name if supplier is not None else ""
    folded = unicodedata.normalize("NFKD", name or "").encode("ascii", "ignore").decode("ascii")
    cleaned = re.sub(r"[^A-Za-z0-9 ]", "", folded).strip()
    cleaned = re.sub(r"\s+", "_", cleaned)
    return f"{FILENAME_PREFIX}{cleaned or FILENAME_PLACEHOLDER}.pdf"


def compose_checklist(request, supplier=None, settings=None, unit=None) -> dict:
    """
    Render the checklist and merge the request's attachments after it.

    Returns {"ok": True, "pdf", "filename", "report_pages", "total_pages",
             "outcomes", "duration_ms"}.
    Raises ChecklistGenerationError when the report itself cannot be built.
    """
    t0 = time.time()
    order = safe_text(request.order_number)
    log.info("Composing checklist for order %s (%d attachments)",
             order, len(request.attachments), extra={"order_number": order})

    report = render_checklist(request, supplier=supplier, settings=settings, unit=unit)
    merged = merge_attachments(report["pdf"], request.attachments)

    result = {
        "ok": True,
        "pdf": merged["pdf"],
        "filename": checklist_filename(supplier),
        "report_pages": merged["report_pages"],
        "total_pages": merged["total_pages"],
        "outcomes": merged["outcomes"],
        "duration_ms": round((time.time() - t0) * 1000, 1),
    }
    log.info("Checklist %s: %d report pages, %d total, %d/%d attachments merged (%.0fms)",
             result["filename"], result["report_pages"], result["total_pages"],
             sum(1 for o in result["outcomes"] if o["status"] == STATUS_MERGED),
             len(result["outcomes"]), result["duration_ms"],
             extra={"order_number": order, "pages": result["total_pages"],
                    "duration_ms": result["duration_ms"]})
    return result


def merge_and_save(request, supplier=None, settings=None, unit=None,
                   output_dir: Optional[str] = None) -> bool:
    """
    Compose the checklist and write it to output_dir under checklist_filename().

    Never raises: returns False and logs on any failure so the caller can
    decide whether to roll back its own record.
    """
    if output_dir is None:
        output_dir = paths.OUTPUT_DIR
    try:
        result = compose_checklist(request, supplier=supplier, settings=settings, unit=unit)
        os.makedirs(output_dir, exist_ok=True)
        path = os.path.join(output_dir, result["filename"])
        with open(path, "wb") as f:
            f.write(result["pdf"])
        log.info("Checklist saved → %s", path,
                 extra={"supplier": supplier.name if supplier else ""})
        return True
    except Exception as e:
        log.error("Checklist generation failed for order %s: %s",
                  safe_text(getattr(request, "order_number", None)), e, exc_info=True)
        return False
