"""
Shared pytest fixtures and configuration.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from focus_engine.api.app import create_app
from focus_engine.blocking.rules import RuleTable
from focus_engine.blocking.synchronizer import BlockingRuleSynchronizer
from focus_engine.session.notifications import NotificationBus
from focus_engine.session.persistence import SessionStore
from focus_engine.session.scheduler import SessionScheduler
from focus_engine.settings import SettingsStore
from focus_engine.storage import KeyValueStore

T0 = 1_700_000_000.0


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: float = T0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def db_path(tmp_path):
    return tmp_path / "focus.db"


@pytest.fixture()
def kv(db_path):
    return KeyValueStore(db_path)


@pytest.fixture()
def settings_store(kv):
    return SettingsStore(kv)


@pytest.fixture()
def session_store(kv):
    return SessionStore(kv)


@pytest.fixture()
def rule_table():
    return RuleTable()


@pytest.fixture()
def bus():
    return NotificationBus()


@pytest.fixture()
def events(bus):
    """Every event published on the bus, in order."""
    received = []
    bus.register_listener(received.append)
    return received


@pytest_asyncio.fixture()
async def make_scheduler(settings_store, session_store, rule_table, bus, clock):
    """Factory for schedulers sharing the same stores; all are shut down on teardown."""
    created = []

    async def _make(tick_interval: float = 3600.0, liveness_interval: float = 3600.0):
        scheduler = SessionScheduler(
            settings_store,
            session_store,
            BlockingRuleSynchronizer(rule_table),
            bus,
            clock=clock,
            tick_interval=tick_interval,
            liveness_interval=liveness_interval,
        )
        created.append(scheduler)
        await scheduler.recover()
        return scheduler

    yield _make
    for scheduler in created:
        await scheduler.shutdown()


@pytest_asyncio.fixture()
async def scheduler(make_scheduler):
    return await make_scheduler()


@pytest.fixture()
def app(db_path, clock):
    """Create a fresh app instance per test, backed by a temp database."""
    return create_app(db_path=db_path, clock=clock, tick_interval=3600, liveness_interval=3600)


@pytest_asyncio.fixture()
async def client(app):
    """Async HTTP client wired directly to the ASGI app (no server needed)."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
