"""
Main entrypoint for the Whitelist API.

This module assembles the FastAPI application: logging, CORS, request
logging, the whitelist and health routes, error handlers and the
database lifecycle.  ``create_app`` builds and configures the app,
which is then instantiated at module import time as ``app``, e.g.::

    uvicorn whitelist_api.app.main:app --reload

The database is opened on startup and closed on shutdown.  Uvicorn
runs the shutdown hook only after it has stopped accepting
connections, so in-flight requests finish before the connection is
closed.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.v1.endpoints import health
from .api.v1.router import router as v1_router
from .core.config import Settings, settings as default_settings
from .core.db import Database
from .core.exceptions import AlreadyRegistered, WhitelistError
from .core.logging_config import setup_logging
from .schemas.whitelist import ErrorResponse
from .services.whitelist_service import WhitelistService

logger = logging.getLogger(__name__)

ENDPOINTS = (
    "POST   /api/whitelist/register",
    "GET    /api/whitelist/check/{address}",
    "GET    /api/whitelist/list",
    "GET    /api/whitelist/stats",
    "DELETE /api/whitelist/{address}",
    "GET    /health",
)


def _error_body(message: str, registration=None) -> dict:
    return ErrorResponse(message=message, registration=registration).model_dump(
        mode="json", by_alias=True, exclude_none=True
    )


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to use.  Defaults to the environment‑based
        ``settings`` instance.
    database : Optional[Database]
        Storage to use.  Defaults to a ``Database`` built from
        ``settings.database_url``.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    settings = settings or default_settings
    setup_logging(settings.log_level, settings.log_file or None)

    database = database or Database(settings.database_url)

    # No slash redirects: "/check/" must answer 404 like any unknown path.
    app = FastAPI(
        title=settings.project_name,
        version=settings.api_version,
        redirect_slashes=False,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.whitelist_service = WhitelistService(database)

    # Requests without an Origin header are not subject to CORS and are
    # always served.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    app.include_router(v1_router, prefix="/api")
    app.include_router(health.router, tags=["health"])

    @app.exception_handler(WhitelistError)
    async def whitelist_error_handler(request: Request, exc: WhitelistError) -> JSONResponse:
        registration = exc.registration if isinstance(exc, AlreadyRegistered) else None
        return JSONResponse(
            _error_body(exc.message, registration),
            status_code=exc.status_code,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Only the register body is validated by FastAPI; anything it
        # rejects (no body, malformed JSON, not an object) lacks an address.
        logger.debug("Rejected request body on %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            _error_body("Invalid wallet address"),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # A path that exists only for another method is still an unknown
        # endpoint for the caller.
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return JSONResponse(
                _error_body("Endpoint not found"),
                status_code=status.HTTP_404_NOT_FOUND,
            )
        return JSONResponse(
            _error_body(str(exc.detail)),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            _error_body("Internal server error"),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    @app.on_event("startup")
    async def startup_event() -> None:
        database.connect()
        logger.info("%s %s (%s)", settings.project_name, settings.api_version, settings.environment)
        for endpoint in ENDPOINTS:
            logger.info("  %s", endpoint)

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        database.close()

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
