"""
turing/memory/persistence.py
Debounced, multi-backend snapshot persistence for the PatternStore.
Exports: SaveState, PersistenceCoordinator, build_coordinator

State machine:
    IDLE --request_save--> SCHEDULED --next loop turn--> SAVING --done--> IDLE
    SAVING --request_save--> SCHEDULED (the running drain loop saves again)
At most one save runs at a time and a request made during a save is never lost.
"""

import asyncio
import contextlib
import logging
import shutil
import time
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from turing.config import Settings
from turing.memory.backends import FileBackend, KeyValueBackend, PostgresBackend, SnapshotBackend
from turing.memory.snapshot import CorruptSnapshotError, dump_snapshot, parse_snapshot
from turing.memory.store import PatternStore
from turing.memory.types import MemorySnapshot

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "memory-"
BACKUP_SUFFIX = ".json"


class SaveState(str, Enum):
    IDLE = "idle"
    SCHEDULED = "save-scheduled"
    SAVING = "saving"


class PersistenceCoordinator:
    """
    Serializes the store to a primary file, a durable mirror and optional remotes.

    Only the primary file write decides whether a save succeeded. Mirror,
    remote and backup failures are logged as warnings and never raised.
    """

    def __init__(
        self,
        store: PatternStore,
        primary: FileBackend,
        *,
        durable: FileBackend | None = None,
        remotes: Sequence[SnapshotBackend] = (),
        backup_dir: Path | None = None,
        max_backups: int = 7,
        backup_interval_ms: int = 24 * 60 * 60 * 1000,
        debounce_ms: int = 0,
        remote_timeout_ms: int = 10_000,
        force_sync: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.primary = primary
        self.durable = durable
        self.remotes = list(remotes)
        self.backup_dir = Path(backup_dir) if backup_dir else None
        self.max_backups = max_backups
        self.backup_interval_ms = backup_interval_ms
        self.debounce_ms = debounce_ms
        self.remote_timeout_ms = remote_timeout_ms
        self.force_sync = force_sync
        self._clock = clock

        self.state = SaveState.IDLE
        self.save_count = 0
        self._task: asyncio.Task | None = None
        self._autosave_task: asyncio.Task | None = None
        self._remote_tasks: set[asyncio.Task] = set()
        self._remote_locks: dict[str, asyncio.Lock] = {}
        self._remote_written: dict[str, int] = {}
        self._generation = 0
        self._backup_requested = False
        self._last_backup_ms: float | None = None
        self._save_lock = asyncio.Lock()

    # Scheduling

    def notify_change(self) -> None:
        """Store mutation hook: blocking save when forced, then a debounced request."""
        if self.force_sync:
            self.save_sync()
        self.request_save()

    def request_save(self) -> None:
        """
        Ask for a save without blocking.

        Requests while a save is scheduled coalesce into it; a request during a
        save schedules exactly one more. Without a running event loop the
        request stays pending until flush() or shutdown().
        """
        if self.state is SaveState.SAVING:
            self.state = SaveState.SCHEDULED
            return
        self.state = SaveState.SCHEDULED
        if self._task is None or self._task.done():
            self._schedule()

    def _schedule(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; save request deferred until flush.")
            return
        self._task = loop.create_task(self._drain())

    async def _drain(self) -> None:
        await asyncio.sleep(self.debounce_ms / 1000)
        while self.state is SaveState.SCHEDULED:
            self.state = SaveState.SAVING
            try:
                await self.perform_save()
            except Exception:
                logger.exception("Queued memory save failed.")
            finally:
                if self.state is SaveState.SAVING:
                    self.state = SaveState.IDLE

    async def flush(self) -> None:
        """Wait until no save is scheduled or running."""
        while True:
            task = self._task
            if task is not None and not task.done():
                await task
                continue
            if self.state is SaveState.SCHEDULED:
                self._schedule()
                continue
            return

    def start_autosave(self, interval_ms: int) -> asyncio.Task:
        """Request a save every interval_ms until shutdown."""

        async def _autosave() -> None:
            while True:
                await asyncio.sleep(interval_ms / 1000)
                self.request_save()

        self._autosave_task = asyncio.get_running_loop().create_task(_autosave())
        return self._autosave_task

    # Saving

    async def perform_save(self, *, force_backup: bool = False) -> bool:
        """
        Write the current snapshot everywhere it is configured to go.

        Args:
            force_backup: Create a backup copy regardless of the backup interval.
        Returns:
            True when the primary file write succeeded.
        """
        async with self._save_lock:
            return await self._save_everywhere(force_backup)

    async def _save_everywhere(self, force_backup: bool) -> bool:
        blob = dump_snapshot(self.store.to_snapshot())
        self._generation += 1
        generation = self._generation

        saved = True
        try:
            await self.primary.save(blob)
        except Exception:
            logger.exception("Failed to save memory to %s.", self.primary.path)
            saved = False

        if self.durable is not None:
            try:
                await self.durable.save(blob)
            except Exception as exc:
                logger.warning("Failed to mirror memory to %s: %s", self.durable.path, exc)

        self._propagate(blob, generation)

        if saved:
            self.save_count += 1
            force_backup = force_backup or self._backup_requested
            self._backup_requested = False
            await self.rotate_backups(force=force_backup)
            logger.info("Memory saved (%d bytes).", len(blob))
        return saved

    def _propagate(self, blob: str, generation: int) -> None:
        if not self.remotes:
            return
        loop = asyncio.get_running_loop()
        for backend in self.remotes:
            task = loop.create_task(self._save_remote(backend, blob, generation))
            self._remote_tasks.add(task)
            task.add_done_callback(self._remote_tasks.discard)

    async def _save_remote(self, backend: SnapshotBackend, blob: str, generation: int) -> None:
        lock = self._remote_locks.setdefault(backend.name, asyncio.Lock())
        async with lock:
            if generation <= self._remote_written.get(backend.name, 0):
                return
            try:
                await asyncio.wait_for(backend.save(blob), self.remote_timeout_ms / 1000)
            except Exception as exc:
                logger.warning("Failed to save memory to %s backend: %r", backend.name, exc)
                return
            self._remote_written[backend.name] = generation
            logger.info("Memory saved to %s backend.", backend.name)

    def save_sync(self) -> bool:
        """
        Blocking temp-write + rename of the primary file, bypassing the queue.

        Returns:
            True on success; failures are logged, never raised.
        """
        try:
            self.primary.save_sync(dump_snapshot(self.store.to_snapshot(), indent=None))
        except Exception:
            logger.exception("Synchronous memory save failed.")
            return False
        logger.info("Synchronous memory save completed.")
        return True

    # Backups

    async def rotate_backups(self, *, force: bool = False) -> None:
        """Copy the primary file into the backup directory and prune old copies (best-effort)."""
        if self.backup_dir is None or self.max_backups <= 0:
            return
        now_ms = self._clock() * 1000
        if (
            not force
            and self._last_backup_ms is not None
            and now_ms - self._last_backup_ms < self.backup_interval_ms
        ):
            return
        try:
            await asyncio.to_thread(self._create_backup)
        except OSError as exc:
            logger.warning("Backup creation failed: %s", exc)
            return
        self._last_backup_ms = now_ms
        try:
            await asyncio.to_thread(self._prune_backups)
        except OSError as exc:
            logger.warning("Backup pruning failed: %s", exc)

    def _create_backup(self) -> Path:
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        backup_path = self.backup_dir / f"{BACKUP_PREFIX}{stamp}{BACKUP_SUFFIX}"
        shutil.copyfile(self.primary.path, backup_path)
        logger.info("Backup created: %s", backup_path)
        return backup_path

    def _prune_backups(self) -> None:
        backups = sorted(
            self.backup_dir.glob(f"{BACKUP_PREFIX}*{BACKUP_SUFFIX}"),
            key=lambda path: (path.stat().st_mtime, path.name),
            reverse=True,
        )
        for old in backups[self.max_backups:]:
            old.unlink()
            logger.info("Old backup removed: %s", old.name)

    # Lifecycle

    def load_sources(self) -> list[SnapshotBackend]:
        """Load priority: remotes in configured order, then durable mirror, then primary."""
        sources: list[SnapshotBackend] = list(self.remotes)
        if self.durable is not None:
            sources.append(self.durable)
        sources.append(self.primary)
        return sources

    async def load(self) -> MemorySnapshot:
        """
        Read the first non-empty snapshot from the configured sources.

        Returns:
            Parsed snapshot, or an empty default when nothing is stored or the
            stored snapshot is corrupt.
        """
        for backend in self.load_sources():
            try:
                blob = await asyncio.wait_for(backend.load(), self.remote_timeout_ms / 1000)
            except Exception as exc:
                logger.warning("Failed to read memory from %s backend: %r", backend.name, exc)
                continue
            if not blob:
                continue
            try:
                snapshot = parse_snapshot(blob)
            except CorruptSnapshotError as exc:
                logger.warning("Invalid memory snapshot in %s backend, using defaults: %s", backend.name, exc)
                return MemorySnapshot()
            logger.info(
                "Memory loaded from %s backend: %d context pairs, %d clusters.",
                backend.name,
                len(snapshot.context_pairs),
                len(snapshot.semantic_clusters),
            )
            return snapshot
        logger.info("No existing memory found, starting fresh.")
        return MemorySnapshot()

    async def initialize(self) -> None:
        """Load-or-default the store at process start."""
        self.store.replace_snapshot(await self.load())

    async def shutdown(self) -> None:
        """
        Final flush sequence: drain pending saves, one last async save (with
        backup), a synchronous save of the primary file, then close backends.
        """
        logger.info("Flushing memory before shutdown.")
        if self._autosave_task is not None:
            self._autosave_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._autosave_task
            self._autosave_task = None
        try:
            await self.flush()
            self._backup_requested = True
            self.request_save()
            await self.flush()
        except Exception:
            logger.exception("Error during shutdown save.")
        self.save_sync()
        if self._remote_tasks:
            await asyncio.gather(*list(self._remote_tasks), return_exceptions=True)
        await self.close()

    async def close(self) -> None:
        backends: list[SnapshotBackend] = [self.primary, *self.remotes]
        if self.durable is not None:
            backends.append(self.durable)
        for backend in backends:
            try:
                await backend.close()
            except Exception as exc:
                logger.warning("Failed to close %s backend: %r", backend.name, exc)


def build_remote_backends(settings: Settings) -> list[SnapshotBackend]:
    """Instantiate the optional remote backends named by settings (relational first)."""
    remotes: list[SnapshotBackend] = []
    timeout = settings.remote_timeout_ms / 1000
    if settings.postgres_url:
        remotes.append(PostgresBackend(settings.postgres_url, ssl=settings.postgres_ssl))
    if settings.kv_url:
        remotes.append(KeyValueBackend(settings.kv_url, timeout=timeout))
    return remotes


def build_coordinator(store: PatternStore, settings: Settings) -> PersistenceCoordinator:
    """Wire a coordinator for settings and subscribe it to store changes."""
    coordinator = PersistenceCoordinator(
        store,
        FileBackend(settings.memory_path, name="primary"),
        durable=FileBackend(settings.durable_memory_path, name="durable"),
        remotes=build_remote_backends(settings),
        backup_dir=settings.backup_dir,
        max_backups=settings.max_backups,
        backup_interval_ms=settings.backup_interval_ms,
        debounce_ms=settings.save_debounce_ms,
        remote_timeout_ms=settings.remote_timeout_ms,
        force_sync=settings.force_sync_on_learn,
    )
    store.on_change = coordinator.notify_change
    return coordinator
