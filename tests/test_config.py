"""
tests/test_config.py
Unit tests for turing/config.py.
"""

from pathlib import Path

import pytest

from turing.config import (
    DEFAULT_MAX_BACKUPS,
    DEFAULT_SAVE_INTERVAL_MS,
    build_kv_url,
    build_max_backups,
    build_persistent_dir,
    build_postgres_url,
    build_save_debounce_ms,
    build_save_interval_ms,
    force_sync_on_learn,
    load_settings,
    postgres_ssl_required,
)


def test_load_settings_uses_environment(memory_paths):
    settings = load_settings()
    assert settings.memory_path == memory_paths["primary"]
    assert settings.durable_memory_path == memory_paths["durable"]
    assert settings.backup_dir == memory_paths["backups"]
    assert settings.kv_url is None
    assert settings.postgres_url is None
    assert settings.force_sync_on_learn is False


def test_save_interval_defaults(monkeypatch):
    monkeypatch.delenv("SAVE_INTERVAL_MS", raising=False)
    assert build_save_interval_ms() == DEFAULT_SAVE_INTERVAL_MS


def test_save_interval_custom(monkeypatch):
    monkeypatch.setenv("SAVE_INTERVAL_MS", "1500")
    assert build_save_interval_ms() == 1500


@pytest.mark.parametrize("value", ["0", "-5", "soon"])
def test_save_interval_rejects_invalid(monkeypatch, value):
    monkeypatch.setenv("SAVE_INTERVAL_MS", value)
    with pytest.raises(RuntimeError, match="SAVE_INTERVAL_MS"):
        build_save_interval_ms()


def test_zero_allowed_for_debounce_and_backups(monkeypatch):
    monkeypatch.setenv("TURING_SAVE_DEBOUNCE_MS", "0")
    monkeypatch.setenv("TURING_MAX_BACKUPS", "0")
    assert build_save_debounce_ms() == 0
    assert build_max_backups() == 0


def test_max_backups_default(monkeypatch):
    monkeypatch.delenv("TURING_MAX_BACKUPS", raising=False)
    assert build_max_backups() == DEFAULT_MAX_BACKUPS


def test_persistent_dir_on_replit_uses_workspace(monkeypatch, tmp_path):
    monkeypatch.delenv("PERSISTENT_MEMORY_DIR", raising=False)
    monkeypatch.setenv("REPL_ID", "abc")
    monkeypatch.chdir(tmp_path)
    assert build_persistent_dir() == Path.cwd() / ".turing-ai"


def test_persistent_dir_defaults_to_home(monkeypatch):
    monkeypatch.delenv("PERSISTENT_MEMORY_DIR", raising=False)
    assert build_persistent_dir() == Path.home() / ".turing-ai"


def test_force_sync_flag(monkeypatch):
    monkeypatch.setenv("FORCE_SYNC_ON_LEARN", "1")
    assert force_sync_on_learn() is True
    monkeypatch.setenv("FORCE_SYNC_ON_LEARN", "true")
    assert force_sync_on_learn() is False


def test_kv_url_prefers_explicit_setting(monkeypatch):
    monkeypatch.setenv("REPLIT_DB_URL", "https://kv.example/replit")
    assert build_kv_url() == "https://kv.example/replit"
    monkeypatch.setenv("TURING_KV_URL", "https://kv.example/custom")
    assert build_kv_url() == "https://kv.example/custom"


def test_postgres_url_fallback_order(monkeypatch):
    monkeypatch.setenv("POSTGRES_URI", "postgresql://last/db")
    assert build_postgres_url() == "postgresql://last/db"
    monkeypatch.setenv("DATABASE_URL", "postgresql://first/db")
    assert build_postgres_url() == "postgresql://first/db"


def test_postgres_ssl_detection(monkeypatch):
    assert postgres_ssl_required(None) is False
    assert postgres_ssl_required("postgresql://host/db?sslmode=require") is True
    assert postgres_ssl_required("postgresql://host/db") is False
    monkeypatch.setenv("PGSSLMODE", "require")
    assert postgres_ssl_required("postgresql://host/db") is True
