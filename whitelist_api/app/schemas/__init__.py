"""
Pydantic schemas for request and response bodies.

Field names are snake_case in Python and exposed in camelCase on the
wire through aliases, matching the JSON contract consumed by the
front‑end.
"""
