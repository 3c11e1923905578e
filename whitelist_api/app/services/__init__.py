"""
Service layer for the Whitelist API.

Services encapsulate business rules and storage access.  Endpoints
obtain the configured service instance from ``app.state`` and never
touch the database directly.
"""
