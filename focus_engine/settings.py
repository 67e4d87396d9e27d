"""
User-tunable settings — phase durations, blocked sites, sound preference and
the completed-focus counter. Persisted as the "settings" record.

SettingsStore is owned by the scheduler; other readers go through load().
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List

from .storage import KeyValueStore, PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_BLOCKED_SITES = [
    "youtube.com",
    "instagram.com",
    "reddit.com",
    "twitter.com",
    "x.com",
    "tiktok.com",
    "facebook.com",
    "netflix.com",
    "twitch.tv",
]


def normalize_site(site: str) -> str:
    """Reduce user input like "https://www.YouTube.com/feed" to "youtube.com"."""
    host = site.strip().lower()
    if "://" in host:
        host = host.split("://", 1)[1]
    host = host.split("/", 1)[0].split(":", 1)[0]
    if host.startswith("www."):
        host = host[4:]
    return host.strip(".")


def normalize_sites(sites: Iterable[str]) -> List[str]:
    """Deduplicated, sorted hostnames; sorted order keeps rule IDs stable."""
    return sorted({h for h in (normalize_site(s) for s in sites) if h})


@dataclass
class Settings:
    focus_minutes: int = 25
    break_minutes: int = 5
    blocked_sites: List[str] = field(default_factory=lambda: list(DEFAULT_BLOCKED_SITES))
    sound_enabled: bool = True
    completed_focus_sessions: int = 0

    def __post_init__(self):
        self.blocked_sites = normalize_sites(self.blocked_sites)
        if self.focus_minutes <= 0 or self.break_minutes <= 0:
            raise ValueError("phase durations must be positive")
        if self.completed_focus_sessions < 0:
            raise ValueError("completed_focus_sessions must be >= 0")

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Settings":
        defaults = cls()
        values = {}
        for k, default in asdict(defaults).items():
            if k in record:
                # coerce to the same type as the default
                values[k] = list(record[k]) if isinstance(default, list) else type(default)(record[k])
        return cls(**values)


class SettingsStore:

    KEY = "settings"

    def __init__(self, kv: KeyValueStore):
        self._kv = kv

    def load(self) -> Settings:
        """Return the stored settings, creating the defaults on first run."""
        try:
            record = self._kv.get(self.KEY)
        except PersistenceError:
            logger.warning("Settings record unreadable, using defaults", exc_info=True)
            return Settings()
        if record is None:
            settings = Settings()
            try:
                self.save(settings)
                logger.info("Created default settings")
            except PersistenceError:
                logger.warning("Could not store default settings", exc_info=True)
            return settings
        try:
            return Settings.from_record(record)
        except (TypeError, ValueError):
            logger.warning("Settings record malformed, using defaults", exc_info=True)
            return Settings()

    def save(self, settings: Settings) -> None:
        self._kv.put({self.KEY: settings.to_record()})
