"""Shared fixtures."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio

from taskping.db.migrations import run_migrations
from taskping.db.repository import Repository


class FakeClock:
    """Settable clock for services under test."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest_asyncio.fixture
async def repo(tmp_path):
    """Repository backed by a fresh SQLite file."""
    db_path = tmp_path / "taskping.db"
    await run_migrations(db_path)

    repository = Repository(db_path)
    await repository.connect()
    yield repository
    await repository.close()


@pytest.fixture
def clock():
    """Clock frozen at Wednesday 2026-03-04 14:30 UTC."""
    return FakeClock(datetime(2026, 3, 4, 14, 30, tzinfo=ZoneInfo("UTC")))
