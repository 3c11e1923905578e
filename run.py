"""Entry point for the Whitelist API server.

Starts the FastAPI application with Uvicorn.  Host and port come from
``Settings`` (``HOST``, ``PORT``); Uvicorn receives the same logging
configuration as the application (``LOG_LEVEL``, ``LOG_FILE``).
Uvicorn handles SIGINT/SIGTERM: it stops accepting connections, lets
in-flight requests finish and then runs the application's shutdown
hook, which closes the database.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from whitelist_api.app.core.config import settings
from whitelist_api.app.core.logging_config import build_log_config, normalize_level
from whitelist_api.app.main import app


async def main() -> None:
    """Serve the API until the process is asked to stop."""
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_config=build_log_config(settings.log_level, settings.log_file or None),
        log_level=normalize_level(settings.log_level).lower(),
    )
    server = Server(config)
    logging.getLogger(__name__).info("Listening on http://%s:%s", settings.host, settings.port)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
