"""
turing/memory/snapshot.py
JSON codec for MemorySnapshot.
Exports: CorruptSnapshotError, dump_snapshot, parse_snapshot
"""

import json
from typing import Any

from turing.memory.types import MemorySnapshot, PatternEntry, Stats


class CorruptSnapshotError(ValueError):
    """Raised when a persisted snapshot cannot be parsed or violates its structure."""


def snapshot_to_dict(snapshot: MemorySnapshot) -> dict[str, Any]:
    return {
        "patterns": dict(snapshot.patterns),
        "contextPairs": [entry.to_dict() for entry in snapshot.context_pairs],
        "semanticClusters": {
            keyword: [entry.to_dict() for entry in entries]
            for keyword, entries in snapshot.semantic_clusters.items()
        },
        "qualityScores": dict(snapshot.quality_scores),
        "stats": snapshot.stats.to_dict(),
    }


def dump_snapshot(snapshot: MemorySnapshot, *, indent: int | None = 2) -> str:
    """Serialize a snapshot to the persisted JSON format."""
    return json.dumps(snapshot_to_dict(snapshot), indent=indent)


def parse_snapshot(blob: str | bytes) -> MemorySnapshot:
    """
    Parse and validate a persisted snapshot.

    Args:
        blob: JSON text as written by dump_snapshot.
    Returns:
        MemorySnapshot with fresh PatternEntry objects.
    Raises:
        CorruptSnapshotError: Invalid JSON, missing/mistyped contextPairs or
            semanticClusters, or malformed entries.
    """
    try:
        data = json.loads(blob)
    except (TypeError, ValueError) as exc:
        raise CorruptSnapshotError(f"Snapshot is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise CorruptSnapshotError("Snapshot must be a JSON object.")

    raw_pairs = data.get("contextPairs")
    raw_clusters = data.get("semanticClusters")
    if not isinstance(raw_pairs, list):
        raise CorruptSnapshotError("Snapshot contextPairs must be an array.")
    if not isinstance(raw_clusters, dict):
        raise CorruptSnapshotError("Snapshot semanticClusters must be an object.")

    try:
        context_pairs = [PatternEntry.from_dict(item) for item in raw_pairs]
        semantic_clusters = {
            str(keyword): [PatternEntry.from_dict(item) for item in entries]
            for keyword, entries in raw_clusters.items()
        }
        quality_scores = {
            str(key): int(value) for key, value in (data.get("qualityScores") or {}).items()
        }
        stats = Stats.from_dict(data.get("stats"))
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise CorruptSnapshotError(f"Snapshot entries are malformed: {exc}") from exc

    patterns = data.get("patterns")
    return MemorySnapshot(
        context_pairs=context_pairs,
        semantic_clusters=semantic_clusters,
        quality_scores=quality_scores,
        stats=stats,
        patterns=patterns if isinstance(patterns, dict) else {},
    )
