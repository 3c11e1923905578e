"""
SQLite database integration and simple migration system.

The ``Database`` class owns a single SQLite connection for the
lifetime of the application.  It is constructed explicitly (see
``main.create_app``) and handed to the services that need it, so
tests can build an isolated database per case.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.  The
``whitelist`` table carries a ``UNIQUE`` constraint on ``address``,
which is the only guard against duplicate registrations.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

MEMORY_URL = ":memory:"

MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: whitelist table
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS whitelist (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            address TEXT NOT NULL UNIQUE,
            registered_at TEXT NOT NULL,
            ip_address TEXT,
            user_agent TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """,
    ),
    # Migration 2: index used by listing and the time-window statistics
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_whitelist_registered_at ON whitelist(registered_at);
        """,
    ),
]


def resolve_database_path(database_url: str) -> str:
    """Compute the path to the SQLite database file.

    Absolute paths and ``:memory:`` are returned unchanged.  Relative
    paths are resolved against the ``whitelist_api`` package directory.
    """
    if database_url == MEMORY_URL or os.path.isabs(database_url):
        return database_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # whitelist_api/
    return str((base_dir / database_url).resolve())


class Database:
    """Wrapper around the SQLite connection used by the whitelist service."""

    def __init__(self, database_url: str) -> None:
        self.path = resolve_database_path(database_url)
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database is not connected")
        return self._conn

    def connect(self) -> None:
        """Open the connection and apply pending migrations.

        Calling ``connect`` on an open database is a no-op.
        """
        if self._conn is not None:
            return
        # Requests may be served from a worker thread other than the one
        # that ran the startup hook.
        conn = sqlite3.connect(self.path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        self._conn = conn
        self.init_db()
        logger.info("Connected to SQLite database %s", self.path)

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.info("Database connection closed")

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor inside a transaction.

        The transaction is committed when the block exits normally and
        rolled back if it raises, including on ``sqlite3.IntegrityError``.
        """
        conn = self.connection
        with conn:
            cursor = conn.cursor()
            try:
                yield cursor
            finally:
                cursor.close()

    def fetchone(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        return self.connection.execute(query, params).fetchone()

    def fetchall(self, query: str, params: tuple = ()) -> list[sqlite3.Row]:
        return self.connection.execute(query, params).fetchall()

    def init_db(self) -> None:
        """Apply migrations that have not been applied yet.

        Creates the ``migrations`` table if it does not exist, checks the
        current schema version and runs every newer entry of
        ``MIGRATIONS`` in order.
        """
        with self.transaction() as cursor:
            cursor.execute(
                "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
            )
            cursor.execute("SELECT MAX(version) as version FROM migrations")
            row = cursor.fetchone()
            current_version = row["version"] if row and row["version"] is not None else 0

            for version, sql in MIGRATIONS:
                if version > current_version:
                    # executescript commits implicitly; each migration is
                    # idempotent thanks to IF NOT EXISTS.
                    cursor.executescript(sql)
                    cursor.execute(
                        "INSERT INTO migrations (version) VALUES (?)", (version,)
                    )
                    current_version = version
                    logger.debug("Applied migration %s", version)
