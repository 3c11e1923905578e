"""
Logging configuration shared by the application and Uvicorn.

``build_log_config`` produces a ``logging.config.dictConfig`` mapping
from the ``LOG_LEVEL`` and ``LOG_FILE`` settings.  ``setup_logging``
applies it when the app is created, and ``run.py`` hands the same
mapping to Uvicorn so that server and application records share one
format, one level and one set of handlers.  Uvicorn's own loggers are
routed through the root logger instead of their default handlers.
"""

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def normalize_level(level: str) -> str:
    """Return an upper-case level name, ``INFO`` for unknown names."""
    name = (level or "").upper()
    if isinstance(logging.getLevelName(name), int):
        return name
    return "INFO"


def build_log_config(level: str = "INFO", logfile: Optional[str] = None) -> Dict[str, Any]:
    """Return a ``dictConfig`` mapping for the given level and log file.

    ``logfile`` is resolved against the current working directory; an
    empty value disables the file handler.
    """
    level_name = normalize_level(level)
    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    }
    if logfile:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "default",
            "filename": str(Path(logfile).resolve()),
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT},
        },
        "handlers": handlers,
        "root": {"level": level_name, "handlers": list(handlers)},
        "loggers": {
            name: {"level": level_name, "handlers": [], "propagate": True}
            for name in UVICORN_LOGGERS
        },
    }


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Apply :func:`build_log_config` unless the root logger is configured.

    Creating several apps in one process (tests, reloads) keeps the
    first configuration.
    """
    if logging.getLogger().handlers:
        return
    logging.config.dictConfig(build_log_config(level, logfile))
