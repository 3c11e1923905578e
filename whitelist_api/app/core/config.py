"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts with a local SQLite file and the production CORS
allow-list.  Tests construct ``Settings`` explicitly instead of
relying on the environment.
"""

import os
from dataclasses import dataclass, field
from typing import List


DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173,"
    "http://localhost:3000,"
    "https://rigworkz-app.web.app,"
    "https://rigworkz-app.firebaseapp.com,"
    "https://rigworkz.xyz,"
    "https://www.rigworkz.xyz"
)


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Whitelist API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    environment: str = os.getenv("ENVIRONMENT", os.getenv("NODE_ENV", "development"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    # Optional log file, relative to the working directory; empty disables it.
    log_file: str = os.getenv("LOG_FILE", "")

    # Path to the SQLite database.  Relative paths are resolved against
    # the project root by the ``db`` module; ``:memory:`` keeps the
    # whitelist in process memory only.
    database_url: str = os.getenv("DATABASE_URL", "whitelist.db")

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))

    # Comma‑separated list of browser origins allowed to call the API.
    cors_origins: List[str] = field(
        default_factory=lambda: _split_csv(os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS))
    )


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.
settings = Settings()
