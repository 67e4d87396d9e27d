"""
Page guard — a backup check for pages the redirect rules did not catch.

Reads the durable records only, so it never goes through the scheduler.
"""

from __future__ import annotations

from ..session.state import Activity, Phase, SessionState
from ..settings import Settings, normalize_site


def is_host_blocked(host: str, state: SessionState, settings: Settings) -> bool:
    # Only block during a running focus phase
    if state.activity != Activity.RUNNING or state.phase != Phase.FOCUS:
        return False
    host = normalize_site(host)
    if not host:
        return False
    return any(host == site or host.endswith("." + site) for site in settings.blocked_sites)
