"""
Health check endpoint.

Reports whether the database connection is open and how many
registrations it holds.  While the connection is closed (e.g. during
shutdown) the count is reported as ``null``.  Unlike the whitelist
routes, a failure here includes the error text so that operators can
see why the check failed.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    """Return service and database status."""
    try:
        database = request.app.state.database
        service = request.app.state.whitelist_service
        count = await service.count() if database.is_connected else None
        return JSONResponse(
            {
                "status": "ok",
                "timestamp": _iso_now(),
                "database": "connected" if database.is_connected else "disconnected",
                "registrations": count,
            }
        )
    except Exception as exc:
        logger.warning("Health check failed: %s", exc)
        return JSONResponse(
            {"status": "error", "timestamp": _iso_now(), "error": str(exc)},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
