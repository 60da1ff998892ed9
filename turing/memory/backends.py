"""
turing/memory/backends.py
Snapshot storage backends sharing a load()/save(blob) contract.
Exports: SnapshotBackend, FileBackend, KeyValueBackend, PostgresBackend, write_atomic
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Protocol, runtime_checkable

import asyncpg
import httpx

from turing.memory.schema import (
    CREATE_MEMORY_INDEX_SQL,
    CREATE_MEMORY_TABLE_SQL,
    SELECT_SNAPSHOT_SQL,
    SNAPSHOT_KV_KEY,
    SNAPSHOT_ROW_ID,
    UPSERT_SNAPSHOT_SQL,
    prepare_path,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class SnapshotBackend(Protocol):
    """Anything that can store and return one serialized snapshot blob."""

    name: str

    async def load(self) -> str | None:
        """Return the stored blob, or None when nothing has been stored."""
        ...

    async def save(self, blob: str) -> None:
        """Store blob, replacing any previous one."""
        ...

    async def close(self) -> None:
        ...


def write_atomic(path: Path, blob: str, suffix: str = ".tmp") -> None:
    """
    Write blob next to path and rename it into place.

    Args:
        path: Destination file.
        blob: Text to write.
        suffix: Temp file suffix; distinct writers use distinct suffixes.
    Side effects:
        Creates parent directories, writes and fsyncs a temp file, renames it over path.
    """
    prepare_path(path)
    temp_path = path.with_name(path.name + suffix)
    with open(temp_path, "w", encoding="utf-8") as handle:
        handle.write(blob)
        handle.flush()
        os.fsync(handle.fileno())
    os.replace(temp_path, path)


class FileBackend:
    """Local JSON file written with temp-file + atomic rename."""

    def __init__(self, path: Path | str, name: str = "file") -> None:
        self.path = Path(path)
        self.name = name

    def _read(self) -> str | None:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        return text if text.strip() else None

    async def load(self) -> str | None:
        return await asyncio.to_thread(self._read)

    async def save(self, blob: str) -> None:
        await asyncio.to_thread(write_atomic, self.path, blob)

    def save_sync(self, blob: str) -> None:
        """Blocking write used when the event loop cannot be trusted to finish."""
        write_atomic(self.path, blob, suffix=".sync.tmp")

    async def close(self) -> None:
        return None


class KeyValueBackend:
    """Remote key-value store holding the blob under a fixed key (GET/PUT)."""

    def __init__(
        self,
        base_url: str,
        key: str = SNAPSHOT_KV_KEY,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.name = "kv"
        self.url = f"{base_url.rstrip('/')}/{key}"
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def load(self) -> str | None:
        response = await self._client.get(self.url)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        text = response.text
        return text if text and text.strip() else None

    async def save(self, blob: str) -> None:
        response = await self._client.put(
            self.url,
            content=blob.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        response.raise_for_status()

    async def close(self) -> None:
        await self._client.aclose()


class PostgresBackend:
    """Relational store: one jsonb row upserted by id."""

    def __init__(self, dsn: str, *, ssl: bool = False, row_id: str = SNAPSHOT_ROW_ID) -> None:
        self.name = "postgres"
        self.dsn = dsn.strip()
        if not self.dsn:
            raise ValueError("Postgres DSN cannot be empty")
        self.ssl = ssl
        self.row_id = row_id
        self._pool: asyncpg.Pool | None = None
        self._init_lock = asyncio.Lock()

    async def _ensure_pool(self) -> asyncpg.Pool:
        async with self._init_lock:
            if self._pool is None:
                pool = await asyncpg.create_pool(
                    dsn=self.dsn,
                    min_size=1,
                    max_size=2,
                    command_timeout=30.0,
                    ssl="require" if self.ssl else None,
                )
                async with pool.acquire() as conn:
                    await conn.execute(CREATE_MEMORY_TABLE_SQL)
                    await conn.execute(CREATE_MEMORY_INDEX_SQL)
                self._pool = pool
            return self._pool

    async def load(self) -> str | None:
        pool = await self._ensure_pool()
        async with pool.acquire() as conn:
            data = await conn.fetchval(SELECT_SNAPSHOT_SQL, self.row_id)
        if not data:
            return None
        return data if isinstance(data, str) else str(data)

    async def save(self, blob: str) -> None:
        pool = await self._ensure_pool()
        async with pool.acquire() as conn:
            await conn.execute(UPSERT_SNAPSHOT_SQL, self.row_id, blob)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
