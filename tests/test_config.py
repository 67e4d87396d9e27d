"""Tests for environment overrides of the engine configuration."""

from pathlib import Path

from focus_engine.config import Config


class TestConfigOverrides:
    def test_defaults(self, tmp_path):
        cfg = Config(data_dir=tmp_path)
        assert cfg.api_port == 8765
        assert cfg.tick_interval_s == 1.0
        assert cfg.liveness_interval_s == 30.0
        assert cfg.state_db_path == tmp_path / "focus.db"

    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FOCUS_API_PORT", "9000")
        monkeypatch.setenv("FOCUS_LIVENESS_INTERVAL_S", "10")
        monkeypatch.setenv("FOCUS_DATA_DIR", str(tmp_path / "state"))
        monkeypatch.setenv("FOCUS_CORS_ORIGINS", "http://a.test, http://b.test")
        cfg = Config.load()
        assert cfg.api_port == 9000
        assert cfg.liveness_interval_s == 10.0
        assert cfg.data_dir == Path(tmp_path / "state")
        assert cfg.data_dir.is_dir()
        assert cfg.cors_origins == ["http://a.test", "http://b.test"]
