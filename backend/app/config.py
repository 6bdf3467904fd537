"""Relay application configuration.

Loads settings from an optional YAML file (``relay.settings.yaml``) and applies
environment overrides on top:

  * DATABASE_URL - storage connection string (DuckDB path or :memory:)
  * PORT / HOST - listening address
  * LOG_LEVEL - root log level
  * RELAY_SETTINGS_FILE - alternate settings file
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("relay.settings.yaml")
DEFAULT_DATABASE_URL = "chat-app.duckdb"
MEMORY_DATABASE = ":memory:"


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host:            str       = "0.0.0.0"
    port:            int       = Field(3001, ge=1, le=65535)
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])


class DatabaseSettings(BaseModel):
    url: str = DEFAULT_DATABASE_URL


# Names uvicorn accepts for --log-level
LOG_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")


class LoggingSettings(BaseModel):
    level: str = "info"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        if value.lower() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value} (expected one of {', '.join(LOG_LEVELS)})")
        return value.lower()


class AppConfig(BaseModel):
    server:   ServerSettings   = Field(default_factory=ServerSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging:  LoggingSettings  = Field(default_factory=LoggingSettings)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _resolve_database_url(url: str, settings_dir: Path) -> str:
    """Resolve a relative DuckDB path against the settings file's directory."""
    if url == MEMORY_DATABASE or Path(url).is_absolute():
        return url
    return str(settings_dir / url)


def _apply_env_overrides(data: Dict[str, Any]) -> None:
    database_url = os.environ.get("DATABASE_URL")
    if database_url:
        data.setdefault("database", {})["url"] = database_url
    elif not (data.get("database") or {}).get("url"):
        logger.warning(
            "DATABASE_URL environment variable is not set; using default %s",
            DEFAULT_DATABASE_URL,
        )

    if os.environ.get("PORT"):
        data.setdefault("server", {})["port"] = os.environ["PORT"]
    if os.environ.get("HOST"):
        data.setdefault("server", {})["host"] = os.environ["HOST"]
    if os.environ.get("LOG_LEVEL"):
        data.setdefault("logging", {})["level"] = os.environ["LOG_LEVEL"]


def load_config(settings_path: Optional[Path] = None) -> AppConfig:
    """Read the settings file and environment into an *AppConfig*."""
    if settings_path is None:
        settings_path = Path(os.environ.get("RELAY_SETTINGS_FILE", SETTINGS_FILE))
    settings_path = Path(settings_path)

    data = _load_yaml(settings_path)
    database = data.get("database") or {}
    if database.get("url"):
        database["url"] = _resolve_database_url(
            str(database["url"]), settings_path.resolve().parent
        )
        data["database"] = database

    _apply_env_overrides(data)

    config = AppConfig(**data)
    logger.info(
        "Settings loaded (server=%s:%s, database=%s)",
        config.server.host,
        config.server.port,
        config.database.url,
    )
    return config


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Process-wide configuration, loaded on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the cached configuration (used by tests)."""
    global _config
    _config = None
