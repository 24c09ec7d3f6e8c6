"""Checklist PDF generation.

Key exports:
    render_checklist()  : Render the checklist report pages
    merge_attachments() : Append valid PDF attachments after the report
    compose_checklist() : Report + attachments → one PDF
    merge_and_save()    : Compose and write to OUTPUT_DIR, returns bool
"""
