"""
Session persistence — durable snapshot of SessionState.

save() replaces the record wholesale; passing settings writes both records in
the same transaction so a completed focus phase is never counted twice after
a crash.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..settings import Settings, SettingsStore
from ..storage import KeyValueStore
from .state import SessionState

logger = logging.getLogger(__name__)


class SessionStore:

    KEY = "session_state"

    def __init__(self, kv: KeyValueStore):
        self._kv = kv

    def load(self) -> Optional[SessionState]:
        """Return the persisted state, or None when absent or malformed."""
        record = self._kv.get(self.KEY)
        if record is None:
            return None
        try:
            return SessionState.from_record(record)
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding malformed session record: %r", record)
            return None

    def save(self, state: SessionState, settings: Optional[Settings] = None) -> None:
        records = {self.KEY: state.to_record()}
        if settings is not None:
            records[SettingsStore.KEY] = settings.to_record()
        self._kv.put(records)
