"""Server configuration.

Loads from ~/.taskpilot/config.yaml (or $TASKPILOT_CONFIG) with
environment variable overrides.
"""

from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .context import AgentIdentity

logger = logging.getLogger(__name__)

# Sentinel value used to detect when no JWT secret was explicitly configured.
_INSECURE_DEFAULT_SECRET = "taskpilot-dev-secret-not-for-production-use"


@dataclass
class AppConfig:
    """Configuration for the API server and the command/automation core."""

    host: str = "0.0.0.0"
    port: int = 8000
    db_path: str = ".taskpilot/taskpilot.db"
    jwt_secret: str = _INSECURE_DEFAULT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24
    cors_origins: list[str] | None = None
    debug: bool = False
    seed_demo: bool = False
    min_confidence: float = 0.5  # below this a parsed command is "unknown"
    query_limit: int = 20
    stuck_days: int = 3
    task_ref_prefixes: list[str] = field(default_factory=lambda: ["TP"])
    agent: AgentIdentity = field(default_factory=AgentIdentity)

    CONFIG_FILE: Path = field(
        default_factory=lambda: Path.home() / ".taskpilot" / "config.yaml",
        repr=False,
    )

    @classmethod
    def load(cls, config_path: Path | None = None) -> AppConfig:
        """Load config from file and environment variables.

        Priority (highest wins):
          1. Environment variables (TASKPILOT_DB_PATH, TASKPILOT_JWT_SECRET, ...)
          2. Config file
          3. Defaults
        """
        config = cls()
        env_file = os.environ.get("TASKPILOT_CONFIG")
        file_path = config_path or (Path(env_file) if env_file else config.CONFIG_FILE)

        if file_path.exists():
            try:
                with open(file_path) as f:
                    data = yaml.safe_load(f) or {}
                config._apply_file(data)
            except (yaml.YAMLError, OSError, ValueError, TypeError):
                logger.warning("Ignoring unreadable config file %s", file_path)

        config.host = os.environ.get("TASKPILOT_HOST", config.host)
        config.port = int(os.environ.get("TASKPILOT_PORT", config.port))
        config.db_path = os.environ.get("TASKPILOT_DB_PATH", config.db_path)
        config.jwt_secret = os.environ.get("TASKPILOT_JWT_SECRET", config.jwt_secret)
        if env_debug := os.environ.get("TASKPILOT_DEBUG"):
            config.debug = env_debug.lower() in ("1", "true")
        if env_seed := os.environ.get("TASKPILOT_SEED_DEMO"):
            config.seed_demo = env_seed.lower() in ("1", "true")
        if origins := os.environ.get("TASKPILOT_CORS_ORIGINS"):
            config.cors_origins = [o.strip() for o in origins.split(",")]
        if env_conf := os.environ.get("TASKPILOT_MIN_CONFIDENCE"):
            config.min_confidence = float(env_conf)
        if env_prefixes := os.environ.get("TASKPILOT_TASK_REF_PREFIXES"):
            config.task_ref_prefixes = [p.strip() for p in env_prefixes.split(",") if p.strip()]
        if env_agent := os.environ.get("TASKPILOT_AGENT_NAME"):
            config.agent.name = env_agent

        if not config.jwt_secret or config.jwt_secret == _INSECURE_DEFAULT_SECRET:
            # Sessions won't survive restarts, which is fine for local development.
            config.jwt_secret = secrets.token_hex(32)
            logger.warning(
                "TASKPILOT_JWT_SECRET not set -- using random ephemeral secret. "
                "Set TASKPILOT_JWT_SECRET for persistent tokens."
            )

        return config

    def _apply_file(self, data: dict) -> None:
        self.host = data.get("host", self.host)
        self.port = int(data.get("port", self.port))
        self.db_path = data.get("db_path", self.db_path)
        self.jwt_secret = data.get("jwt_secret", self.jwt_secret)
        self.jwt_expire_hours = int(data.get("jwt_expire_hours", self.jwt_expire_hours))
        self.debug = bool(data.get("debug", self.debug))
        self.seed_demo = bool(data.get("seed_demo", self.seed_demo))
        self.cors_origins = data.get("cors_origins", self.cors_origins)
        self.min_confidence = float(data.get("min_confidence", self.min_confidence))
        self.query_limit = int(data.get("query_limit", self.query_limit))
        self.stuck_days = int(data.get("stuck_days", self.stuck_days))
        self.task_ref_prefixes = list(data.get("task_ref_prefixes", self.task_ref_prefixes))
        if agent := data.get("agent"):
            self.agent = AgentIdentity(
                name=agent.get("name", self.agent.name),
                short_name=agent.get("short_name", self.agent.short_name),
                avatar=agent.get("avatar", self.agent.avatar),
                color=agent.get("color", self.agent.color),
            )


_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Process-wide config, loaded on first use."""
    global _config
    if _config is None:
        _config = AppConfig.load()
    return _config


def set_config(config: AppConfig) -> None:
    global _config
    _config = config
