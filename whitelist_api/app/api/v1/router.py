"""
Top‑level router for version 1 of the API.

Aggregates domain‑specific routers under a unified prefix.  The
health check is not part of this router; it is mounted at the
application root by ``main.create_app``.
"""

from fastapi import APIRouter

from .endpoints import whitelist

router = APIRouter()

router.include_router(whitelist.router, prefix="/whitelist", tags=["whitelist"])
