#!/usr/bin/env python3
"""Generate a merged checklist PDF from a JSON file.

Usage: python scripts/generate_checklist.py request.json [output_dir]

The JSON file holds the same body the /api/checklist route accepts:
    {"request": {...}, "supplier": {...}, "unit": {...}, "settings": {...}}
`supplier`, `unit` and `settings` are optional; settings default to
company_settings.json in the data directory.

Exit code 0 on success, 1 on failure.
"""
import os
import sys
import json

# Ensure repo root is in path
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, REPO_ROOT)

from logging_config import setup_logging
from ecocontract.core import paths
from ecocontract.forms.composer import merge_and_save, checklist_filename, parse_checklist_payload


def main(argv):
    if len(argv) < 2:
        print(__doc__)
        return 1
    setup_logging()
    with open(argv[1], encoding="utf-8") as f:
        data = json.load(f)
    try:
        req, supplier, unit, settings = parse_checklist_payload(data)
    except ValueError as e:
        print(f"Invalid request file: {e}")
        return 1

    output_dir = argv[2] if len(argv) > 2 else paths.OUTPUT_DIR
    ok = merge_and_save(req, supplier=supplier, settings=settings, unit=unit,
                        output_dir=output_dir)
    if ok:
        print(os.path.join(output_dir, checklist_filename(supplier)))
        return 0
    print("Checklist generation failed, see log")
    return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv))
