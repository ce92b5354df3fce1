"""Pytest configuration and fixtures for the live scoring backend."""

import asyncio
import os

import pytest
from sqlalchemy.pool import NullPool

# Keep test runs quiet and away from the default database file
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from sportsfest_backend.core.database import build_session_maker, init_db  # noqa: E402
from sportsfest_backend.core.sport_config import MatchStatus, Sport  # noqa: E402
from sportsfest_backend.models.match_model import MatchCreate, StatusUpdate  # noqa: E402
from sportsfest_backend.services.broadcast import BroadcastChannel  # noqa: E402
from sportsfest_backend.services.foul_ledger import FoulLedger  # noqa: E402
from sportsfest_backend.services.match_coordinator import MatchCoordinator  # noqa: E402
from sportsfest_backend.services.match_store import MatchStore  # noqa: E402


@pytest.fixture
def database(tmp_path):
    """A fresh SQLite file per test. NullPool: every asyncio.run gets its own connections."""
    engine, session_maker = build_session_maker(
        f"sqlite+aiosqlite:///{tmp_path / 'sportsfest_test.db'}",
        poolclass=NullPool,
    )
    asyncio.run(init_db(engine))
    yield engine, session_maker
    asyncio.run(engine.dispose())


@pytest.fixture
def session_maker(database):
    return database[1]


@pytest.fixture
def store(session_maker):
    return MatchStore(session_maker)


@pytest.fixture
def channel():
    return BroadcastChannel(queue_size=10)


@pytest.fixture
def clock():
    """Controllable wall clock: set clock.now to move time."""

    class FakeClock:
        now = 1_000.0

        def __call__(self):
            return self.now

    return FakeClock()


@pytest.fixture
def coordinator(store, channel, clock):
    return MatchCoordinator(store, channel, clock=clock)


@pytest.fixture
def ledger(coordinator):
    return FoulLedger(coordinator)


@pytest.fixture
def make_match(coordinator):
    """Factory: schedule a match (and optionally take it LIVE), returning its id."""

    def _make(sport=Sport.BADMINTON, live=True, team_a="Computer Science", team_b="Mechanical", **options):
        async def _create():
            match = await coordinator.create_match(
                MatchCreate(sport=sport, team_a=team_a, team_b=team_b, **options)
            )
            if live:
                await coordinator.set_status(match.id, StatusUpdate(status=MatchStatus.LIVE))
            return match.id

        return asyncio.run(_create())

    return _make
