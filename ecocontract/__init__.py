"""
EcoContract: contract-request checklist back end

Packages:
    core/   Records, paths and company settings
    forms/  Checklist PDF rendering and attachment merging
    api/    Flask routes serving the merged checklist
"""
