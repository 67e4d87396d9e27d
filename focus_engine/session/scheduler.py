"""
Session Scheduler — alternates Focus and Break phases from a persisted end
timestamp, keeps the blocking rules in line with the phase, and recovers a
running session after a restart without resetting elapsed time.

Usage:
    scheduler = SessionScheduler(settings_store, session_store, synchronizer, bus)
    await scheduler.recover()
    scheduler.start_background()
    await scheduler.start()
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Callable, Optional, Tuple

from ..blocking.synchronizer import BlockingRuleSynchronizer, RuleSyncError
from ..settings import Settings, SettingsStore
from ..storage import PersistenceError
from .notifications import NotificationBus
from .persistence import SessionStore
from .state import Activity, Phase, SessionState

logger = logging.getLogger(__name__)


class SessionScheduler:
    """
    Owns SessionState and Settings. Every command runs under one lock, so
    commands and driver ticks never interleave; each command awaits its
    persistence write before returning.

    Commands return True on success. An invalid transition (pause while idle,
    resume while running, ...) is a successful no-op. False means the
    persistence write failed; in-memory state is kept as the best-known truth.
    """

    def __init__(
        self,
        settings_store: SettingsStore,
        session_store: SessionStore,
        synchronizer: BlockingRuleSynchronizer,
        bus: NotificationBus,
        clock: Callable[[], float] = time.time,
        tick_interval: float = 1.0,
        liveness_interval: float = 30.0,
    ):
        self._settings_store = settings_store
        self._session_store = session_store
        self._synchronizer = synchronizer
        self._bus = bus
        self._clock = clock
        self._tick_interval = tick_interval
        self._liveness_interval = liveness_interval

        self._state = SessionState()
        self._settings = Settings()
        self._settings_dirty = False
        self._lock = asyncio.Lock()

        # Live resources, never persisted
        self._driver: Optional[asyncio.Task] = None
        self._liveness: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query(self) -> SessionState:
        """Current state with remaining_seconds recomputed. Never writes."""
        return self._state.refreshed(self._clock())

    def get_state(self) -> Tuple[SessionState, Settings]:
        return self.query(), self._settings

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def driver_alive(self) -> bool:
        return self._driver is not None and not self._driver.done()

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    async def recover(self) -> SessionState:
        """Load the durable records once at process start."""
        async with self._lock:
            self._settings = await self._run(self._settings_store.load)
            try:
                state = await self._run(self._session_store.load)
            except PersistenceError:
                logger.warning("Session record unreadable, starting idle", exc_info=True)
                state = None

            if state is None:
                self._state = SessionState()
                await self._persist()
            else:
                self._state = state

            # A phase that ran out while the process was gone ends before any
            # rules are installed for it
            if self._expire_if_due(self._clock()):
                await self._persist()
            else:
                self._sync_blocking()
            if self._state.is_running:
                # end_timestamp is kept: time spent while the process was gone counts
                logger.info(
                    "Recovered running %s phase, %ds remaining",
                    self._state.phase.value,
                    self._state.remaining_at(self._clock()),
                )
                self._start_driver()
            return self.query()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        async with self._lock:
            now = self._clock()
            if self._state.activity != Activity.IDLE:
                return await self._settle(now)
            total = self._settings.focus_minutes * 60
            self._state = SessionState(
                phase=Phase.FOCUS,
                activity=Activity.RUNNING,
                end_timestamp=now + total,
                remaining_seconds=total,
                total_seconds=total,
            )
            logger.info("Focus session started (%ds)", total)
            self._sync_blocking()
            self._start_driver()
            return await self._persist()

    async def pause(self) -> bool:
        async with self._lock:
            now = self._clock()
            self._expire_if_due(now)
            if not self._state.is_running:
                return True
            # Blocking rules stay as they are while paused
            self._state = replace(
                self._state,
                activity=Activity.PAUSED,
                remaining_seconds=self._state.remaining_at(now),
                paused_remaining=self._state.time_left(now),
            )
            self._stop_driver()
            logger.info("Paused with %ds remaining", self._state.remaining_seconds)
            return await self._persist()

    async def resume(self) -> bool:
        async with self._lock:
            now = self._clock()
            if self._state.activity != Activity.PAUSED:
                return await self._settle(now)
            # A fresh end timestamp so the paused interval does not count down
            remaining = self._state.time_left(now)
            self._state = replace(
                self._state,
                activity=Activity.RUNNING,
                end_timestamp=now + remaining,
                paused_remaining=None,
            )
            self._start_driver()
            logger.info("Resumed with %.1fs remaining", remaining)
            return await self._persist()

    async def reset(self) -> bool:
        async with self._lock:
            self._expire_if_due(self._clock())
            self._stop_driver()
            self._state = SessionState()
            self._sync_blocking()
            logger.info("Session reset")
            return await self._persist()

    async def skip(self) -> bool:
        async with self._lock:
            now = self._clock()
            if not self._state.is_running:
                return True
            if not self._expire_if_due(now):
                self._advance_phase(now)
            return await self._persist()

    async def update_settings(self, new: Settings) -> bool:
        """
        Replace settings wholesale. Durations apply from the next phase start;
        a changed site list is enforced immediately while blocking is engaged.
        """
        async with self._lock:
            self._expire_if_due(self._clock())
            current = self._settings
            sites_changed = new.blocked_sites != current.blocked_sites
            self._settings = replace(
                new,
                completed_focus_sessions=max(
                    new.completed_focus_sessions, current.completed_focus_sessions
                ),
            )
            self._settings_dirty = True
            if sites_changed and self._state.blocking_engaged:
                self._sync_blocking()
            logger.info("Settings updated")
            return await self._persist()

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    async def tick(self) -> SessionState:
        """One driver step: refresh remaining time, transition at zero."""
        async with self._lock:
            if not self._state.is_running:
                return self._state
            now = self._clock()
            self._state = self._state.refreshed(now)
            self._bus.publish({"event": "tick", "state": self._state.to_record()})
            if self._state.time_left(now) <= 0:
                self._advance_phase(now)
            await self._persist()
            return self._state

    def check_liveness(self) -> bool:
        """Restart the driver if the session runs but the driver is gone."""
        if self._state.is_running and not self.driver_alive:
            logger.warning("Driver found stopped during a running session, restarting")
            self._start_driver()
            return True
        return False

    def start_background(self) -> None:
        if self._liveness is None or self._liveness.done():
            self._liveness = asyncio.create_task(self._liveness_loop())

    async def shutdown(self) -> None:
        """Cancel live tasks; the persisted state is left for recovery."""
        for task in (self._driver, self._liveness):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._driver = None
        self._liveness = None

    async def _driver_loop(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            try:
                await self.tick()
            except Exception:
                logger.exception("Driver tick failed")
            if not self._state.is_running:
                break

    async def _liveness_loop(self) -> None:
        while True:
            await asyncio.sleep(self._liveness_interval)
            self.check_liveness()

    def _start_driver(self) -> None:
        if self.driver_alive:
            return
        self._driver = asyncio.create_task(self._driver_loop())

    def _stop_driver(self) -> None:
        if self._driver is not None and self._driver is not asyncio.current_task():
            self._driver.cancel()
        self._driver = None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _expire_if_due(self, now: float) -> bool:
        """Apply a pending expiry so it takes precedence over the command."""
        if self._state.is_running and self._state.time_left(now) <= 0:
            self._advance_phase(now)
            return True
        return False

    def _advance_phase(self, now: float) -> None:
        ended = self._state.phase
        if ended == Phase.FOCUS:
            self._settings = replace(
                self._settings,
                completed_focus_sessions=self._settings.completed_focus_sessions + 1,
            )
            self._settings_dirty = True
            next_phase = Phase.BREAK
            minutes = self._settings.break_minutes
        else:
            next_phase = Phase.FOCUS
            minutes = self._settings.focus_minutes

        # Timed from now: a long suspension yields one transition, not a catch-up run
        total = minutes * 60
        self._state = SessionState(
            phase=next_phase,
            activity=Activity.RUNNING,
            end_timestamp=now + total,
            remaining_seconds=total,
            total_seconds=total,
        )
        self._sync_blocking()
        self._bus.publish({
            "event": "phase_ended",
            "ended_phase": ended.value,
            "next_phase": next_phase.value,
            "sound_enabled": self._settings.sound_enabled,
        })
        self._start_driver()
        logger.info("%s phase ended, %s phase started (%ds)", ended.value, next_phase.value, total)

    async def _settle(self, now: float) -> bool:
        """No-op command path; still applies and persists a due expiry."""
        if self._expire_if_due(now):
            return await self._persist()
        return True

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    def _sync_blocking(self) -> None:
        try:
            self._synchronizer.synchronize(
                self._state.blocking_engaged, self._settings.blocked_sites
            )
        except RuleSyncError:
            # Enforcement lags until the next successful sync replaces the table
            logger.exception("Blocking rule sync failed")

    async def _persist(self) -> bool:
        settings = self._settings if self._settings_dirty else None
        try:
            await self._run(self._session_store.save, self._state, settings)
        except PersistenceError:
            logger.exception("Could not persist session state")
            return False
        self._settings_dirty = False
        return True

    async def _run(self, fn, *args):
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, fn, *args)
