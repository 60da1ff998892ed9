"""Storage layout helpers: file path preparation and the relational table DDL."""

from pathlib import Path

SNAPSHOT_ROW_ID = "global"
SNAPSHOT_KV_KEY = "memory"

CREATE_MEMORY_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS memory_store (
    id text PRIMARY KEY,
    data jsonb NOT NULL,
    updated_at timestamptz NOT NULL DEFAULT now(),
    created_at timestamptz NOT NULL DEFAULT now()
)
"""

CREATE_MEMORY_INDEX_SQL = (
    "CREATE INDEX IF NOT EXISTS idx_memory_updated ON memory_store(updated_at)"
)

SELECT_SNAPSHOT_SQL = "SELECT data FROM memory_store WHERE id = $1"

UPSERT_SNAPSHOT_SQL = """
INSERT INTO memory_store (id, data, updated_at)
VALUES ($1, $2::jsonb, now())
ON CONFLICT (id) DO UPDATE SET data = EXCLUDED.data, updated_at = now()
"""


def prepare_path(path: Path | str) -> Path:
    """Create parent directories for a snapshot file path."""
    resolved = Path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return resolved
