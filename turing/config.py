"""
turing/config.py
Environment-driven settings for the Turing response engine.
Exports: LearningPolicy, Settings, load_settings, build_* helpers
"""

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MEMORY_PATH = "data/memory.json"
DEFAULT_SAVE_INTERVAL_MS = 60_000
DEFAULT_SAVE_DEBOUNCE_MS = 0
DEFAULT_BACKUP_INTERVAL_MS = 24 * 60 * 60 * 1000
DEFAULT_MAX_BACKUPS = 7
DEFAULT_REMOTE_TIMEOUT_MS = 10_000
DEFAULT_RESPONSE_CACHE_TTL_MS = 5_000
POSTGRES_URL_ENV_NAMES = ("DATABASE_URL", "POSTGRES_URL", "POSTGRESQL_URL", "POSTGRES_URI")


@dataclass(frozen=True)
class LearningPolicy:
    """Tunable constants for learning, retrieval and session handling."""

    cluster_cap: int = 20
    context_pair_cap: int = 1000
    context_pair_min_quality: int = 60
    reinforce_step: int = 2
    replace_margin: int = 10
    relearn_after_days: float = 30
    relevance_threshold: float = 30
    min_learn_quality: int = 40
    max_message_length: int = 2000
    max_history: int = 10
    session_timeout_ms: int = 5 * 60 * 1000
    max_sessions: int = 1000


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings for storage, scheduling and backends."""

    memory_path: Path
    persistent_dir: Path
    save_interval_ms: int = DEFAULT_SAVE_INTERVAL_MS
    save_debounce_ms: int = DEFAULT_SAVE_DEBOUNCE_MS
    backup_interval_ms: int = DEFAULT_BACKUP_INTERVAL_MS
    max_backups: int = DEFAULT_MAX_BACKUPS
    force_sync_on_learn: bool = False
    kv_url: str | None = None
    postgres_url: str | None = None
    postgres_ssl: bool = False
    remote_timeout_ms: int = DEFAULT_REMOTE_TIMEOUT_MS
    response_cache_ttl_ms: int = DEFAULT_RESPONSE_CACHE_TTL_MS

    @property
    def durable_memory_path(self) -> Path:
        return self.persistent_dir / "memory.json"

    @property
    def backup_dir(self) -> Path:
        return self.persistent_dir / "backups"


def _positive_int_env(name: str, default: int, *, allow_zero: bool = False) -> int:
    """Read an integer env var, raising RuntimeError when it is malformed."""
    raw_value = os.getenv(name, str(default)).strip()
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise RuntimeError(f"Invalid {name}: expected a positive integer.") from exc
    if value < 0 or (value == 0 and not allow_zero):
        raise RuntimeError(f"Invalid {name}: expected a positive integer.")
    return value


def _optional_env(*names: str) -> str | None:
    for name in names:
        value = os.getenv(name, "").strip()
        if value:
            return value
    return None


def is_replit() -> bool:
    """Return whether the process runs on an ephemeral Replit deployment."""
    return any(os.getenv(name) for name in ("REPL_ID", "REPL_SLUG", "REPLIT_DB_URL"))


def build_memory_path() -> Path:
    """Return the primary snapshot path."""
    return Path(os.getenv("TURING_MEMORY_PATH", DEFAULT_MEMORY_PATH))


def build_persistent_dir() -> Path:
    """Return the durable directory that survives deployment resets."""
    configured = os.getenv("PERSISTENT_MEMORY_DIR", "").strip()
    if configured:
        return Path(configured)
    if is_replit():
        return Path.cwd() / ".turing-ai"
    return Path.home() / ".turing-ai"


def build_save_interval_ms() -> int:
    return _positive_int_env("SAVE_INTERVAL_MS", DEFAULT_SAVE_INTERVAL_MS)


def build_save_debounce_ms() -> int:
    return _positive_int_env("TURING_SAVE_DEBOUNCE_MS", DEFAULT_SAVE_DEBOUNCE_MS, allow_zero=True)


def build_backup_interval_ms() -> int:
    return _positive_int_env("BACKUP_INTERVAL_MS", DEFAULT_BACKUP_INTERVAL_MS)


def build_max_backups() -> int:
    return _positive_int_env("TURING_MAX_BACKUPS", DEFAULT_MAX_BACKUPS, allow_zero=True)


def build_remote_timeout_ms() -> int:
    return _positive_int_env("TURING_REMOTE_TIMEOUT_MS", DEFAULT_REMOTE_TIMEOUT_MS)


def build_response_cache_ttl_ms() -> int:
    return _positive_int_env(
        "TURING_RESPONSE_CACHE_TTL_MS", DEFAULT_RESPONSE_CACHE_TTL_MS, allow_zero=True
    )


def force_sync_on_learn() -> bool:
    """Return whether every learning event is followed by a blocking save."""
    return os.getenv("FORCE_SYNC_ON_LEARN", "").strip() == "1"


def build_kv_url() -> str | None:
    """Return the key-value backend base URL, if one is configured."""
    return _optional_env("TURING_KV_URL", "REPLIT_DB_URL")


def build_postgres_url() -> str | None:
    """Return the relational backend DSN, if one is configured."""
    return _optional_env(*POSTGRES_URL_ENV_NAMES)


def postgres_ssl_required(dsn: str | None) -> bool:
    if not dsn:
        return False
    if os.getenv("PGSSLMODE", "").strip().lower() == "require":
        return True
    return "sslmode=require" in dsn.lower()


def load_settings() -> Settings:
    """
    Build Settings from the current environment.

    Returns:
        Frozen Settings instance.
    Raises:
        RuntimeError: When a numeric env var is malformed.
    """
    postgres_url = build_postgres_url()
    return Settings(
        memory_path=build_memory_path(),
        persistent_dir=build_persistent_dir(),
        save_interval_ms=build_save_interval_ms(),
        save_debounce_ms=build_save_debounce_ms(),
        backup_interval_ms=build_backup_interval_ms(),
        max_backups=build_max_backups(),
        force_sync_on_learn=force_sync_on_learn(),
        kv_url=build_kv_url(),
        postgres_url=postgres_url,
        postgres_ssl=postgres_ssl_required(postgres_url),
        remote_timeout_ms=build_remote_timeout_ms(),
        response_cache_ttl_ms=build_response_cache_ttl_ms(),
    )
