"""
Central configuration for the focus engine.
All values can be overridden via environment variables or a local config.json.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

_ROOT = Path(__file__).parent.parent
_CONFIG_FILE = _ROOT / "config.json"


@dataclass
class Config:
    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8765
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000", "null"]
    )

    # Scheduler
    tick_interval_s: float = 1.0             # one-second driver
    liveness_interval_s: float = 30.0        # restarts a stalled driver

    # Storage
    data_dir: Path = field(default_factory=lambda: _ROOT / "data")
    state_db: str = "focus.db"

    # Blocking
    blocked_page: str = "/blocked.html"      # redirect target inside the extension

    # Logging
    log_level: str = "info"

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def state_db_path(self) -> Path:
        return self.data_dir / self.state_db

    @classmethod
    def load(cls) -> "Config":
        cfg = cls()
        if _CONFIG_FILE.exists():
            overrides = json.loads(_CONFIG_FILE.read_text())
            for k, v in overrides.items():
                if hasattr(cfg, k):
                    setattr(cfg, k, v)
        # environment variable overrides (FOCUS_*)
        for k in cfg.__dataclass_fields__:  # type: ignore[attr-defined]
            env_key = f"FOCUS_{k.upper()}"
            if env_key in os.environ:
                raw = os.environ[env_key]
                current = getattr(cfg, k)
                if isinstance(current, list):
                    setattr(cfg, k, [v.strip() for v in raw.split(",") if v.strip()])
                else:
                    setattr(cfg, k, type(current)(raw))
        cfg.data_dir = Path(cfg.data_dir)
        cfg.data_dir.mkdir(parents=True, exist_ok=True)
        return cfg


# Module-level singleton
config = Config.load()
