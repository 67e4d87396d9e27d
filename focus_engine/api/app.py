"""
FastAPI application — local focus engine API.
Runs on http://127.0.0.1:8765 by default.

The scheduler, stores and rule table live on app.state so that each call to
create_app() produces a fully independent instance with no shared
module-level globals. This makes test isolation straightforward.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..blocking.rules import RuleTable
from ..blocking.synchronizer import BlockingRuleSynchronizer
from ..config import config
from ..session.notifications import NotificationBus
from ..session.persistence import SessionStore
from ..session.scheduler import SessionScheduler
from ..settings import SettingsStore
from ..storage import KeyValueStore

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Lifespan — initialises and tears down all per-app state
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    opts = app.state.options
    kv = KeyValueStore(opts["db_path"])
    settings_store = SettingsStore(kv)
    session_store = SessionStore(kv)
    rule_table = RuleTable()
    bus = NotificationBus()

    scheduler = SessionScheduler(
        settings_store,
        session_store,
        BlockingRuleSynchronizer(rule_table, redirect_path=config.blocked_page),
        bus,
        clock=opts["clock"],
        tick_interval=opts["tick_interval"],
        liveness_interval=opts["liveness_interval"],
    )

    app.state.bus = bus
    app.state.scheduler = scheduler
    app.state.services = {
        "rule_table": rule_table,
        "settings_store": settings_store,
        "session_store": session_store,
    }

    state = await scheduler.recover()
    logger.info("Focus engine ready (%s, %s)", state.phase.value, state.activity.value)
    scheduler.start_background()

    yield

    await scheduler.shutdown()


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(
    db_path: Optional[Path] = None,
    clock: Callable[[], float] = time.time,
    tick_interval: Optional[float] = None,
    liveness_interval: Optional[float] = None,
) -> FastAPI:
    app = FastAPI(
        title="Focus Engine",
        description="Local focus/break session scheduler with site blocking",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.options = {
        "db_path": db_path or config.state_db_path,
        "clock": clock,
        "tick_interval": tick_interval or config.tick_interval_s,
        "liveness_interval": liveness_interval or config.liveness_interval_s,
    }

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routers import blocking, session, settings

    app.include_router(session.router)
    app.include_router(settings.router)
    app.include_router(blocking.router)

    @app.get("/health")
    def health():
        return {"status": "ok", "version": VERSION}

    return app


app = create_app()
