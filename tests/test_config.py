"""Tests for AppConfig loading."""

from __future__ import annotations

import yaml

from taskpilot.web.config import AppConfig


class TestAppConfigDefaults:
    def test_defaults(self):
        config = AppConfig()
        assert config.port == 8000
        assert config.min_confidence == 0.5
        assert config.query_limit == 20
        assert config.stuck_days == 3
        assert config.task_ref_prefixes == ["TP"]
        assert config.agent.name == "AI Assistant"


class TestAppConfigLoad:
    def test_missing_file_uses_defaults(self, tmp_path):
        config = AppConfig.load(config_path=tmp_path / "nonexistent.yaml")
        assert config.db_path == ".taskpilot/taskpilot.db"
        # No secret configured: a random one is generated
        assert len(config.jwt_secret) == 64

    def test_load_from_yaml_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            yaml.safe_dump(
                {
                    "db_path": "/var/lib/taskpilot.db",
                    "jwt_secret": "from-file",
                    "min_confidence": 0.6,
                    "stuck_days": 7,
                    "task_ref_prefixes": ["ACME", "OPS"],
                    "agent": {"name": "Pilot", "color": "#000000"},
                }
            )
        )

        config = AppConfig.load(config_path=config_file)
        assert config.db_path == "/var/lib/taskpilot.db"
        assert config.jwt_secret == "from-file"
        assert config.min_confidence == 0.6
        assert config.stuck_days == 7
        assert config.task_ref_prefixes == ["ACME", "OPS"]
        assert config.agent.name == "Pilot"
        assert config.agent.color == "#000000"
        assert config.agent.short_name == "AI"

    def test_env_vars_override_file(self, tmp_path, monkeypatch):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.safe_dump({"port": 9000, "jwt_secret": "from-file"}))

        monkeypatch.setenv("TASKPILOT_PORT", "9100")
        monkeypatch.setenv("TASKPILOT_JWT_SECRET", "from-env")
        monkeypatch.setenv("TASKPILOT_SEED_DEMO", "true")
        monkeypatch.setenv("TASKPILOT_MIN_CONFIDENCE", "0.7")
        monkeypatch.setenv("TASKPILOT_TASK_REF_PREFIXES", "KB, ,DEV")
        monkeypatch.setenv("TASKPILOT_CORS_ORIGINS", "http://a.test, http://b.test")

        config = AppConfig.load(config_path=config_file)
        assert config.port == 9100
        assert config.jwt_secret == "from-env"
        assert config.seed_demo is True
        assert config.min_confidence == 0.7
        assert config.task_ref_prefixes == ["KB", "DEV"]
        assert config.cors_origins == ["http://a.test", "http://b.test"]

    def test_config_path_from_env(self, tmp_path, monkeypatch):
        config_file = tmp_path / "elsewhere.yaml"
        config_file.write_text(yaml.safe_dump({"query_limit": 5, "jwt_secret": "x"}))
        monkeypatch.setenv("TASKPILOT_CONFIG", str(config_file))

        assert AppConfig.load().query_limit == 5

    def test_unreadable_file_is_ignored(self, tmp_path):
        config_file = tmp_path / "broken.yaml"
        config_file.write_text("port: [unclosed")
        config = AppConfig.load(config_path=config_file)
        assert config.port == 8000
