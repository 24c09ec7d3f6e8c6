"""
ecocontract/core/paths.py: centralized path configuration

Single source of truth for the data and output directories. Every module
imports from here instead of computing its own DATA_DIR.

Priority: env override → project-local folder.
"""

import os
import logging

log = logging.getLogger("ecocontract.paths")

# ── Project Root ──────────────────────────────────────────────────────────────
_THIS_FILE = os.path.abspath(__file__)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(_THIS_FILE)))


def _resolve_dir(env_key: str, default_name: str) -> str:
    env_dir = os.environ.get(env_key, "")
    if env_dir:
        return env_dir
    return os.path.join(PROJECT_ROOT, default_name)


DATA_DIR = _resolve_dir("ECOCONTRACT_DATA_DIR", "data")
OUTPUT_DIR = _resolve_dir("ECOCONTRACT_OUTPUT_DIR", "output")
LOG_DIR = os.path.join(DATA_DIR, "logs")

# ── Key File Paths ───────────────────────────────────────────────────────────
COMPANY_SETTINGS_PATH = os.path.join(DATA_DIR, "company_settings.json")
