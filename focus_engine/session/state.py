"""
Session state — the durable, plain-data half of the scheduler.

Live resources (the driver task) never appear here; everything in
SessionState can be written to disk as-is.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional


class Phase(str, Enum):
    FOCUS = "focus"
    BREAK = "break"


class Activity(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


@dataclass(frozen=True)
class SessionState:
    phase: Phase = Phase.FOCUS
    activity: Activity = Activity.IDLE
    end_timestamp: Optional[float] = None   # epoch seconds, authoritative while running
    remaining_seconds: int = 0
    total_seconds: int = 0
    paused_remaining: Optional[float] = None  # exact seconds left, set while paused

    @property
    def is_running(self) -> bool:
        return self.activity == Activity.RUNNING

    @property
    def blocking_engaged(self) -> bool:
        """Focus rules stay installed while running or paused."""
        return self.phase == Phase.FOCUS and self.activity != Activity.IDLE

    def time_left(self, now: float) -> float:
        """Exact seconds until the phase ends; expiry is time_left <= 0."""
        if self.activity == Activity.RUNNING and self.end_timestamp is not None:
            return self.end_timestamp - now
        if self.activity == Activity.PAUSED and self.paused_remaining is not None:
            return self.paused_remaining
        return float(self.remaining_seconds)

    def remaining_at(self, now: float) -> int:
        if self.activity == Activity.RUNNING and self.end_timestamp is not None:
            return max(0, math.floor(self.time_left(now)))
        return self.remaining_seconds

    def refreshed(self, now: float) -> "SessionState":
        """Copy with remaining_seconds recomputed from end_timestamp."""
        return replace(self, remaining_seconds=self.remaining_at(now))

    def to_record(self) -> Dict[str, Any]:
        record = asdict(self)
        record["phase"] = self.phase.value
        record["activity"] = self.activity.value
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "SessionState":
        end = record.get("end_timestamp")
        paused = record.get("paused_remaining")
        state = cls(
            phase=Phase(record["phase"]),
            activity=Activity(record["activity"]),
            end_timestamp=float(end) if end is not None else None,
            remaining_seconds=int(record.get("remaining_seconds", 0)),
            total_seconds=int(record.get("total_seconds", 0)),
            paused_remaining=float(paused) if paused is not None else None,
        )
        if state.is_running and state.end_timestamp is None:
            raise ValueError("running session without end_timestamp")
        return state
