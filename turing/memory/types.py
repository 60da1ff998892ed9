"""Dataclasses for the learned pattern store and its persisted snapshot."""

import time
from dataclasses import dataclass, field
from typing import Any


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class PatternEntry:
    """One learned input -> response association."""

    input: str
    response: str
    quality: int
    confidence: int = 1
    timestamp: int = field(default_factory=now_ms)

    @property
    def score(self) -> int:
        """Eviction/ordering weight: quality x confidence."""
        return self.quality * self.confidence

    def to_dict(self) -> dict[str, Any]:
        return {
            "input": self.input,
            "response": self.response,
            "quality": self.quality,
            "confidence": self.confidence,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PatternEntry":
        return cls(
            input=str(data["input"]),
            response=str(data["response"]),
            quality=int(data["quality"]),
            confidence=int(data.get("confidence") or 1),
            timestamp=int(data.get("timestamp") or 0),
        )


@dataclass
class Stats:
    """Aggregate usage counters persisted with the snapshot."""

    total_messages: int = 0
    total_conversations: int = 0
    training_data_points: int = 0
    garbage_filtered: int = 0
    live_conversations_learned: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "totalMessages": self.total_messages,
            "totalConversations": self.total_conversations,
            "trainingDataPoints": self.training_data_points,
            "garbageFiltered": self.garbage_filtered,
            "liveConversationsLearned": self.live_conversations_learned,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Stats":
        data = data or {}
        return cls(
            total_messages=int(data.get("totalMessages", 0)),
            total_conversations=int(data.get("totalConversations", 0)),
            training_data_points=int(data.get("trainingDataPoints", 0)),
            garbage_filtered=int(data.get("garbageFiltered", 0)),
            live_conversations_learned=int(data.get("liveConversationsLearned", 0)),
        )


@dataclass
class MemorySnapshot:
    """Complete serializable state of the pattern store."""

    context_pairs: list[PatternEntry] = field(default_factory=list)
    semantic_clusters: dict[str, list[PatternEntry]] = field(default_factory=dict)
    quality_scores: dict[str, int] = field(default_factory=dict)
    stats: Stats = field(default_factory=Stats)
    patterns: dict[str, Any] = field(default_factory=dict)
