"""
turing/memory_store.py
Facade for the learned-pattern memory layer.
Exports: PatternStore, PatternEntry, Stats, MemorySnapshot, Matcher, ResponseCache,
PersistenceCoordinator, SaveState, build_coordinator, dump_snapshot, parse_snapshot, CorruptSnapshotError
"""

from turing.memory.cache import ResponseCache
from turing.memory.persistence import PersistenceCoordinator, SaveState, build_coordinator
from turing.memory.query import Matcher
from turing.memory.snapshot import CorruptSnapshotError, dump_snapshot, parse_snapshot
from turing.memory.store import PatternStore
from turing.memory.types import MemorySnapshot, PatternEntry, Stats

__all__ = [
    "CorruptSnapshotError",
    "Matcher",
    "MemorySnapshot",
    "PatternEntry",
    "PatternStore",
    "PersistenceCoordinator",
    "ResponseCache",
    "SaveState",
    "Stats",
    "build_coordinator",
    "dump_snapshot",
    "parse_snapshot",
]
