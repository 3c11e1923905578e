"""
Service layer for the address whitelist.

``WhitelistService`` implements registration, lookup, paginated
listing, statistics and removal on top of the ``whitelist`` table.
The service is built around an injected ``Database`` and a clock
function, so tests can run it against a throw‑away database and a
fixed point in time.

Duplicate registrations are detected by the ``UNIQUE`` constraint on
``address``: ``register`` inserts first and only reads the existing
row after the insert was rejected.  There is no existence check before
the write, so two concurrent requests for the same address cannot both
succeed.
"""

from __future__ import annotations

import logging
import math
import re
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from whitelist_api.app.core.db import Database
from whitelist_api.app.core.exceptions import (
    AlreadyRegistered,
    InvalidFormat,
    InvalidInput,
    NotFound,
)
from whitelist_api.app.core.validators import is_valid_address, normalize_address
from whitelist_api.app.schemas.whitelist import (
    RegistrationPage,
    RegistrationRead,
    WhitelistStats,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 50
MAX_LIMIT = 1000

# Largest value SQLite accepts as an INTEGER parameter.
SQLITE_MAX_INTEGER = 2 ** 63 - 1

# Fixed width so that string order in SQLite equals chronological order.
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def coerce_int(value: Any, default: int) -> int:
    """Leniently convert a query value to ``int``.

    Uses the leading integer of a string (``"3abc"`` gives 3) and falls
    back to ``default`` when there is none, or when the digit string is
    too long for ``int`` to parse.  Zero and negative numbers are
    returned as parsed; range checks belong to the caller.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    if not match:
        return default
    try:
        return int(match.group(1))
    except ValueError:
        # Exceeds the interpreter's int string conversion limit.
        return default


class WhitelistService:
    """Registry of whitelisted wallet addresses."""

    def __init__(self, database: Database, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = database
        self.clock = clock

    async def register(
        self,
        raw_address: Any,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> RegistrationRead:
        """Add an address to the whitelist.

        Raises ``InvalidInput`` for a missing or non-string address,
        ``InvalidFormat`` when the pattern does not match and
        ``AlreadyRegistered`` when the normalized address is present.
        The duplicate case carries the stored address and registration
        time of the existing entry.
        """
        if not raw_address or not isinstance(raw_address, str):
            raise InvalidInput("Invalid wallet address")
        if not is_valid_address(raw_address):
            raise InvalidFormat()

        address = normalize_address(raw_address)
        registered_at = format_timestamp(self.clock())
        try:
            with self.db.transaction() as cursor:
                cursor.execute(
                    """
                    INSERT INTO whitelist (address, registered_at, ip_address, user_agent)
                    VALUES (?, ?, ?, ?)
                    """,
                    (address, registered_at, client_ip, user_agent),
                )
        except sqlite3.IntegrityError as exc:
            logger.info("Duplicate registration attempt: %s", address)
            # The row may have been removed between the failed insert and
            # this read; the conflict is still reported.
            existing = self._get(address)
            raise AlreadyRegistered(existing) from exc

        logger.info("New registration: %s", address)
        try:
            logger.info("Total registrations: %s", await self.count())
        except sqlite3.Error:
            logger.warning("Could not count registrations after registering %s", address, exc_info=True)

        return RegistrationRead(address=address, registered_at=parse_timestamp(registered_at))

    async def check(self, raw_address: Any) -> Optional[RegistrationRead]:
        """Return the registration for ``raw_address`` or ``None``.

        Raises ``InvalidInput`` when the address is empty and
        ``InvalidFormat`` when it does not match the pattern.
        """
        if not raw_address:
            raise InvalidInput("Address is required")
        if not is_valid_address(raw_address):
            raise InvalidFormat()
        return self._get(normalize_address(raw_address))

    async def list_registrations(self, page: Any = None, limit: Any = None) -> RegistrationPage:
        """Return one page of registrations, most recent first.

        ``page`` and ``limit`` are coerced with :func:`coerce_int` and
        default to 1 and 50.  Values below 1 are rejected with
        ``InvalidInput`` and ``limit`` is capped at ``MAX_LIMIT``.  A page
        too far out for SQLite to address is simply empty.  Rows with the
        same ``registered_at`` are ordered by insertion, newest first.
        """
        page_number = coerce_int(page, DEFAULT_PAGE)
        page_size = coerce_int(limit, DEFAULT_LIMIT)
        if page_size < 1:
            raise InvalidInput("Limit must be a positive integer")
        if page_number < 1:
            raise InvalidInput("Page must be a positive integer")
        page_size = min(page_size, MAX_LIMIT)

        skip = (page_number - 1) * page_size
        if skip > SQLITE_MAX_INTEGER:
            rows = []
        else:
            rows = self.db.fetchall(
                """
                SELECT address, registered_at FROM whitelist
                ORDER BY registered_at DESC, id DESC
                LIMIT ? OFFSET ?
                """,
                (page_size, skip),
            )
        total = await self.count()
        return RegistrationPage(
            registrations=[self._row_to_registration_read(row) for row in rows],
            total=total,
            page=page_number,
            limit=page_size,
            total_pages=math.ceil(total / page_size),
        )

    async def stats(self) -> WhitelistStats:
        """Return total, today's and last week's registration counts.

        "today" starts at UTC midnight of the current day, while
        "last week" is the rolling seven days before now.
        """
        now = self.clock().astimezone(timezone.utc)
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_ago = now - timedelta(days=7)

        total = await self.count()
        today = self._count_since(start_of_day)
        last_week = self._count_since(week_ago)
        return WhitelistStats(total=total, today=today, last_week=last_week)

    async def remove(self, raw_address: Any) -> None:
        """Delete the registration for ``raw_address``.

        The address is not validated first; a malformed value matches
        no row and raises ``NotFound`` like any unknown address.
        """
        if not raw_address or not isinstance(raw_address, str):
            raise InvalidInput("Address is required")
        address = normalize_address(raw_address)
        with self.db.transaction() as cursor:
            cursor.execute("DELETE FROM whitelist WHERE address = ?", (address,))
            deleted = cursor.rowcount
        if not deleted:
            raise NotFound()
        logger.info("Address removed: %s", address)

    async def count(self) -> int:
        return self.db.fetchone("SELECT COUNT(*) FROM whitelist")[0]

    def _count_since(self, moment: datetime) -> int:
        return self.db.fetchone(
            "SELECT COUNT(*) FROM whitelist WHERE registered_at >= ?",
            (format_timestamp(moment),),
        )[0]

    def _get(self, address: str) -> Optional[RegistrationRead]:
        row = self.db.fetchone(
            "SELECT address, registered_at FROM whitelist WHERE address = ?",
            (address,),
        )
        if not row:
            return None
        return self._row_to_registration_read(row)

    @staticmethod
    def _row_to_registration_read(row: sqlite3.Row) -> RegistrationRead:
        """Convert a database row to a RegistrationRead schema instance."""
        return RegistrationRead(
            address=row["address"],
            registered_at=parse_timestamp(row["registered_at"]),
        )
