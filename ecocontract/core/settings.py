"""Company branding settings: JSON file in DATA_DIR with env overrides."""

import os
import json
import logging
from typing import Optional

from .models import CompanySettings
from . import paths

log = logging.getLogger("ecocontract.settings")

# env var → camelCase settings key
_ENV_OVERRIDES = {
    "ECOCONTRACT_COMPANY_NAME": "companyName",
    "ECOCONTRACT_FOOTER_TEXT": "footerText",
    "ECOCONTRACT_DOCUMENT_TITLE": "documentTitle",
    "ECOCONTRACT_PRIMARY_COLOR": "primaryColor",
}


def load_company_settings(path: Optional[str] = None) -> CompanySettings:
    """Read branding from disk on every call. Missing/corrupt file → defaults."""
    path = path or paths.COMPANY_SETTINGS_PATH
    raw = {}
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        log.debug("No company settings at %s, using defaults", path)
    except (json.JSONDecodeError, OSError) as e:
        log.warning("Company settings unreadable (%s): %s", path, e)
    if not isinstance(raw, dict):
        log.warning("Company settings at %s is not an object, ignoring", path)
        raw = {}

    for env_key, key in _ENV_OVERRIDES.items():
        if os.environ.get(env_key):
            raw[key] = os.environ[env_key]

    return CompanySettings.from_dict(raw)
