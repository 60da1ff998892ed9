"""Shared pytest fixtures for the Turing test suite."""

import pytest

REMOTE_ENV_VARS = (
    "DATABASE_URL",
    "POSTGRES_URL",
    "POSTGRESQL_URL",
    "POSTGRES_URI",
    "PGSSLMODE",
    "REPLIT_DB_URL",
    "TURING_KV_URL",
    "REPL_ID",
    "REPL_SLUG",
    "FORCE_SYNC_ON_LEARN",
)


@pytest.fixture(autouse=True)
def memory_paths(tmp_path, monkeypatch):
    """Point every storage path at tmp_path and disable remote backends."""
    for name in REMOTE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    primary = tmp_path / "data" / "memory.json"
    durable_dir = tmp_path / "durable"
    monkeypatch.setenv("TURING_MEMORY_PATH", str(primary))
    monkeypatch.setenv("PERSISTENT_MEMORY_DIR", str(durable_dir))
    return {
        "primary": primary,
        "durable": durable_dir / "memory.json",
        "backups": durable_dir / "backups",
    }
