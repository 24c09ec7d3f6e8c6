"""
Structured logging configuration for EcoContract.
Import and call setup_logging() once at app startup.

Checklist modules attach context with ``extra=`` (order number, attachment,
page counts). JSON lines carry those keys as fields; the console format
appends them as ``key=value`` pairs after the message.
"""
import logging
import logging.handlers
import os
import json
from datetime import datetime, timezone

from ecocontract.core.paths import LOG_DIR

LOG_FILE = "ecocontract.log"

# Context keys the composer, merger and request hooks attach to records
CONTEXT_KEYS = ("route", "method", "status", "duration_ms", "order_number",
                "supplier", "attachment", "pages")

# Library logger levels applied by setup_logging()
QUIET_LOGGERS = {
    "werkzeug": logging.WARNING,
    "PIL": logging.WARNING,
    "reportlab": logging.WARNING,
    "pypdf": logging.ERROR,
}


def record_context(record) -> dict:
    """Context keys present on a record, in CONTEXT_KEYS order."""
    return {k: getattr(record, k) for k in CONTEXT_KEYS if hasattr(record, k)}


class JSONFormatter(logging.Formatter):
    """One JSON object per line; context keys become top-level fields."""
    def format(self, record):
        entry = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "func": record.funcName,
            "line": record.lineno,
        }
        entry.update(record_context(record))
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


class HumanFormatter(logging.Formatter):
    """Console format: time, level letter, logger, message, then context."""
    COLORS = {
        "DEBUG": "\033[36m", "INFO": "\033[32m",
        "WARNING": "\033[33m", "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color=True):
        super().__init__()
        self.color = color

    def format(self, record):
        ts = datetime.now().strftime("%H:%M:%S")
        line = f"{ts} [{record.levelname[0]}] {record.name}: {record.getMessage()}"
        ctx = record_context(record)
        if ctx:
            line += "  " + " ".join(f"{k}={v}" for k, v in ctx.items())
        if self.color:
            line = f"{self.COLORS.get(record.levelname, '')}{line}{self.RESET}"
        if record.exc_info and record.exc_info[0]:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _want_json(json_logs):
    if json_logs is not None:
        return json_logs
    fmt = os.environ.get("LOG_FORMAT", "").lower()
    if fmt in ("json", "human"):
        return fmt == "json"
    return os.environ.get("RAILWAY_ENVIRONMENT") is not None


def setup_logging(level=None, json_logs=None, log_dir=None):
    """
    Configure logging for the full application.

    Args:
        level: Override log level (default: from LOG_LEVEL env or INFO)
        json_logs: Force JSON console format (default: LOG_FORMAT env, else
                   JSON when RAILWAY_ENVIRONMENT is set)
        log_dir: Directory for the rotating log file (default: <data>/logs)

    Returns the log file path, or None when the directory is not writable.
    """
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO").upper()
    log_dir = log_dir or LOG_DIR

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(JSONFormatter() if _want_json(json_logs) else HumanFormatter())
    root.addHandler(console)

    # File is always JSON, 5MB x 5 backups
    log_path = os.path.join(log_dir, LOG_FILE)
    try:
        os.makedirs(log_dir, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(log_path, maxBytes=5_000_000,
                                                  backupCount=5, encoding="utf-8")
        fh.setFormatter(JSONFormatter())
        root.addHandler(fh)
    except OSError as e:
        log_path = None
        logging.getLogger("ecocontract").warning("File logging disabled (%s): %s", log_dir, e)

    for name, lib_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(lib_level)

    logging.getLogger("ecocontract").info("Logging initialized (level %s, file %s)",
                                          level, log_path or "off")
    return log_path
