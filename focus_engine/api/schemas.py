"""
Pydantic schemas for the FastAPI local API.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..session.state import SessionState
from ..settings import DEFAULT_BLOCKED_SITES, Settings

# ── Session ────────────────────────────────────────────────────────────────

class SessionStateOut(BaseModel):
    phase: str = Field(..., description="focus | break")
    activity: str = Field(..., description="idle | running | paused")
    end_timestamp: Optional[float] = None
    remaining_seconds: int = Field(..., ge=0)
    total_seconds: int = Field(..., ge=0)

    @classmethod
    def from_state(cls, state: SessionState) -> "SessionStateOut":
        return cls(**state.to_record())


class CommandResultOut(BaseModel):
    success: bool


# ── Settings ───────────────────────────────────────────────────────────────

class SettingsModel(BaseModel):
    focus_minutes: int = Field(25, ge=1, le=180)
    break_minutes: int = Field(5, ge=1, le=180)
    blocked_sites: List[str] = Field(default_factory=lambda: list(DEFAULT_BLOCKED_SITES))
    sound_enabled: bool = True
    completed_focus_sessions: int = Field(0, ge=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SettingsModel":
        return cls(**settings.to_record())


class SettingsIn(SettingsModel):
    # Omitted → keep the engine's counter
    completed_focus_sessions: Optional[int] = Field(None, ge=0)  # type: ignore[assignment]


class SettingsOut(BaseModel):
    settings: SettingsModel
    defaults: SettingsModel


class SettingsUpdateOut(BaseModel):
    success: bool
    settings: SettingsModel


class StateOut(BaseModel):
    state: SessionStateOut
    settings: SettingsModel


# ── Blocking ───────────────────────────────────────────────────────────────

class BlockRuleOut(BaseModel):
    id: int
    priority: int
    url_filter: str
    resource_types: List[str]
    redirect_path: str


class BlockCheckOut(BaseModel):
    host: str
    blocked: bool
