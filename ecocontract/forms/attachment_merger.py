"""
Attachment merging for the checklist PDF.

Appends caller-supplied attachments (base64 data URLs) after the report
pages, in list order. Each attachment is classified before it can touch the
output:

    merged                      valid PDF, all pages appended
    skipped_invalid_signature   empty/undecodable payload or no %PDF- prefix
    skipped_parse_error         has the signature but pypdf cannot read it

One bad attachment never aborts the merge.
"""

import base64
import binascii
import logging
from io import BytesIO

from pypdf import PdfReader, PdfWriter

log = logging.getLogger("ecocontract.merge")

PDF_MAGIC = b"%PDF-"

STATUS_MERGED = "merged"
STATUS_INVALID_SIGNATURE = "skipped_invalid_signature"
STATUS_PARSE_ERROR = "skipped_parse_error"
VALID_STATUSES = (STATUS_MERGED, STATUS_INVALID_SIGNATURE, STATUS_PARSE_ERROR)


def decode_data_url(text) -> bytes:
    """Strip an optional 'data:<mime>;base64,' prefix and decode. Failure → b''."""
    if not text:
        return b""
    try:
        payload = str(text).strip()
        if payload.startswith("data:") and "," in payload:
            payload = payload.split(",", 1)[1]
        payload = "".join(payload.split())
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        log.debug("Base64 decode failed: %s", e)
        return b""


def is_pdf(data: bytes) -> bool:
    return len(data) >= 5 and data[:5] == PDF_MAGIC


def _open_permissive(raw: bytes) -> PdfReader:
    """Open a PDF tolerating owner-password protection and minor corruption."""
    reader = PdfReader(BytesIO(raw), strict=False)
    if reader.is_encrypted:
        if not reader.decrypt(""):
            raise ValueError("encrypted with a user password")
    return reader


def load_attachment(attachment) -> dict:
    """
    Validate one attachment and, when valid, re-serialize it on its own.

    Returns {name, type, status, pages, error, pdf}; `pdf` is the clean
    single-attachment document (None when skipped).
    """
    outcome = {
        "name": attachment.name,
        "type": attachment.type,
        "status": STATUS_INVALID_SIGNATURE,
        "pages": 0,
        "error": "",
        "pdf": None,
    }
    raw = decode_data_url(attachment.file_data)
    if not is_pdf(raw):
        outcome["error"] = "empty payload" if not raw else "missing %PDF- signature"
        return outcome

    try:
        reader = _open_permissive(raw)
        trial = PdfWriter()
        for page in reader.pages:
            trial.add_page(page)
        buf = BytesIO()
        trial.write(buf)
        outcome["pdf"] = buf.getvalue()
        outcome["pages"] = len(trial.pages)
        outcome["status"] = STATUS_MERGED
    except Exception as e:
        outcome["status"] = STATUS_PARSE_ERROR
        outcome["error"] = str(e) or e.__class__.__name__
    return outcome


def merge_attachments(report_pdf: bytes, attachments) -> dict:
    """
    Report pages followed by every valid attachment's pages, in list order.

    Returns {"ok": True, "pdf": bytes, "report_pages": int,
             "total_pages": int, "outcomes": [outcome, ...]}.
    Outcomes carry no PDF bytes.
    """
    writer = PdfWriter()
    writer.append(PdfReader(BytesIO(report_pdf)))
    report_pages = len(writer.pages)

    outcomes = []
    for attachment in attachments or []:
        outcome = load_attachment(attachment)
        doc = outcome.pop("pdf")
        if outcome["status"] == STATUS_MERGED:
            writer.append(PdfReader(BytesIO(doc)))
        else:
            log.warning("Attachment %r (%s) skipped: %s (%s)",
                        outcome["name"], outcome["type"], outcome["status"], outcome["error"],
                        extra={"attachment": outcome["name"]})
        outcomes.append(outcome)

    out = BytesIO()
    writer.write(out)
    total_pages = len(writer.pages)
    log.info("Merged %d/%d attachments → %d pages",
             sum(1 for o in outcomes if o["status"] == STATUS_MERGED),
             len(outcomes), total_pages, extra={"pages": total_pages})
    return {
        "ok": True,
        "pdf": out.getvalue(),
        "report_pages": report_pages,
        "total_pages": total_pages,
        "outcomes": outcomes,
    }
