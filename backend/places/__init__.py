"""
Place, review and report records.

Responsibilities:
- Define typed records for the schema-less place/review/report documents.
- Map between snake_case attributes and camelCase document fields.
- Define request/response bodies for the HTTP layer.
"""
