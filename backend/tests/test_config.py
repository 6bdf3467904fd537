"""Tests for settings loading and environment overrides."""
from pathlib import Path

import pytest
from pydantic import ValidationError

from app.config import (
    DEFAULT_DATABASE_URL,
    AppConfig,
    LoggingSettings,
    get_config,
    load_config,
    reset_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("DATABASE_URL", "PORT", "HOST", "LOG_LEVEL", "RELAY_SETTINGS_FILE"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


def test_defaults_without_settings_file(tmp_path):
    cfg = load_config(settings_path=tmp_path / "missing.yaml")
    assert cfg.server.port == 3001
    assert cfg.server.host == "0.0.0.0"
    assert cfg.database.url == DEFAULT_DATABASE_URL
    assert cfg.logging.level == "info"


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", ":memory:")
    monkeypatch.setenv("PORT", "4000")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    cfg = load_config(settings_path=tmp_path / "missing.yaml")

    assert cfg.database.url == ":memory:"
    assert cfg.server.port == 4000
    assert cfg.logging.level == "debug"


def test_yaml_settings(tmp_path):
    settings_file = tmp_path / "relay.settings.yaml"
    settings_file.write_text(
        "server:\n"
        "  port: 8080\n"
        "  allowed_origins: ['https://chat.example.com']\n"
        "database:\n"
        "  url: data/chat.duckdb\n",
        encoding="utf-8",
    )

    cfg = load_config(settings_path=settings_file)

    assert cfg.server.port == 8080
    assert cfg.server.allowed_origins == ["https://chat.example.com"]
    assert Path(cfg.database.url) == tmp_path.resolve() / "data" / "chat.duckdb"


def test_env_database_url_beats_yaml(tmp_path, monkeypatch):
    settings_file = tmp_path / "relay.settings.yaml"
    settings_file.write_text("database:\n  url: file.duckdb\n", encoding="utf-8")
    monkeypatch.setenv("DATABASE_URL", "/srv/relay.duckdb")

    assert load_config(settings_path=settings_file).database.url == "/srv/relay.duckdb"


def test_memory_database_not_resolved(tmp_path):
    settings_file = tmp_path / "relay.settings.yaml"
    settings_file.write_text("database:\n  url: ':memory:'\n", encoding="utf-8")
    assert load_config(settings_path=settings_file).database.url == ":memory:"


def test_settings_file_from_env(tmp_path, monkeypatch):
    settings_file = tmp_path / "custom.yaml"
    settings_file.write_text("server:\n  port: 9100\n", encoding="utf-8")
    monkeypatch.setenv("RELAY_SETTINGS_FILE", str(settings_file))

    assert load_config().server.port == 9100


def test_get_config_is_cached(monkeypatch, tmp_path):
    monkeypatch.setenv("RELAY_SETTINGS_FILE", str(tmp_path / "missing.yaml"))
    assert get_config() is get_config()


@pytest.mark.parametrize("level", ["critical", "ERROR", "warning", "info", "debug", "trace"])
def test_uvicorn_log_levels_accepted(level):
    assert LoggingSettings(level=level).level == level.lower()


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        LoggingSettings(level="loud")
    with pytest.raises(ValidationError):
        LoggingSettings(level="warn")
    with pytest.raises(ValidationError):
        AppConfig(server={"port": 0})
