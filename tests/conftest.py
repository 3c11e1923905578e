"""pytest configuration.

Provides a throw-away SQLite database per test, a controllable clock,
the service built on both, and a FastAPI test client wired to the same
database.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from whitelist_api.app.core.config import Settings
from whitelist_api.app.core.db import Database
from whitelist_api.app.main import create_app
from whitelist_api.app.services.whitelist_service import WhitelistService

ALLOWED_ORIGIN = "https://rigworkz.xyz"


class FrozenClock:
    """Callable returning a fixed instant that tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_address(n: int) -> str:
    """Return a distinct, valid, lowercase address for index ``n``."""
    return "0x" + format(n, "040x")


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 3, 10, 15, 30, tzinfo=timezone.utc))


@pytest.fixture
def database(tmp_path):
    db = Database(str(tmp_path / "whitelist.db"))
    db.connect()
    yield db
    db.close()


@pytest.fixture
def service(database, clock):
    return WhitelistService(database, clock=clock)


@pytest.fixture
def app(tmp_path, database, clock):
    settings = Settings(
        database_url=str(tmp_path / "whitelist.db"),
        cors_origins=[ALLOWED_ORIGIN],
        log_level="WARNING",
    )
    application = create_app(settings=settings, database=database)
    application.state.whitelist_service.clock = clock
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
