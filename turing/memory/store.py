"""
turing/memory/store.py
In-memory knowledge base of learned exchanges.
Exports: PatternStore, MergeOutcome

Semantic clusters hold independent copies of each entry (one per keyword of its
input); context pairs hold one more copy for exact-match lookup. Reinforcement
and replacement are applied to every copy separately.
"""

import copy
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import replace
from enum import Enum

from turing.common.keywords import extract_keywords
from turing.common.text_clean import InvalidMessageError, normalize_text
from turing.config import LearningPolicy
from turing.memory.types import MemorySnapshot, PatternEntry, Stats

logger = logging.getLogger(__name__)

MS_PER_DAY = 24 * 60 * 60 * 1000


class MergeOutcome(str, Enum):
    INSERTED = "inserted"
    REINFORCED = "reinforced"
    REPLACED = "replaced"
    KEPT = "kept"


class PatternStore:
    """
    Owns every mutation of the learned patterns and usage stats.

    Callers outside the store only ever receive copies of entries and stats.
    """

    def __init__(
        self,
        snapshot: MemorySnapshot | None = None,
        *,
        policy: LearningPolicy | None = None,
        clock: Callable[[], float] = time.time,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.policy = policy or LearningPolicy()
        self._clock = clock
        self.on_change = on_change
        self._load(snapshot or MemorySnapshot())

    def _load(self, snapshot: MemorySnapshot) -> None:
        snapshot = copy.deepcopy(snapshot)
        self._patterns = snapshot.patterns
        self._context_pairs = snapshot.context_pairs
        self._clusters = snapshot.semantic_clusters
        self._quality_scores = snapshot.quality_scores
        self._stats = snapshot.stats

    def replace_snapshot(self, snapshot: MemorySnapshot) -> None:
        """Swap in a loaded snapshot (startup only)."""
        self._load(snapshot)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    # Learning

    def learn_pattern(self, input_text: str, response: str, quality: int) -> None:
        """
        Fold an observed exchange into the clusters and, when good enough, the context pairs.

        Args:
            input_text: Cleaned message that prompted the response.
            response: Cleaned reply.
            quality: Score from 0 to 100.
        Raises:
            InvalidMessageError: Empty text or out-of-range quality; nothing is mutated.
        Side effects:
            Mutates the store and signals on_change. Never performs I/O.
        """
        if not isinstance(input_text, str) or not input_text.strip():
            raise InvalidMessageError("Learning input must be a non-empty string")
        if not isinstance(response, str) or not response.strip():
            raise InvalidMessageError("Learning response must be a non-empty string")
        if isinstance(quality, bool) or not isinstance(quality, int) or not 0 <= quality <= 100:
            raise InvalidMessageError("Quality must be an integer between 0 and 100")

        input_lower = normalize_text(input_text)
        now = self._now_ms()

        for keyword in extract_keywords(input_lower):
            cluster = self._clusters.setdefault(keyword, [])
            self._merge(cluster, input_lower, response, quality, now)
            self._rank_and_cap(cluster, self.policy.cluster_cap)

        if quality >= self.policy.context_pair_min_quality:
            outcome = self._merge(self._context_pairs, input_lower, response, quality, now)
            self._rank_and_cap(self._context_pairs, self.policy.context_pair_cap)
            logger.debug("Context pair %s for %r.", outcome.value, input_lower)

        self._quality_scores[input_lower] = quality
        self._stats.training_data_points += 1
        self._notify()

    def _merge(
        self,
        entries: list[PatternEntry],
        input_lower: str,
        response: str,
        quality: int,
        now: int,
    ) -> MergeOutcome:
        for index, existing in enumerate(entries):
            if existing.input != input_lower:
                continue
            if existing.response == response:
                existing.confidence = (existing.confidence or 1) + 1
                existing.quality = min(100, existing.quality + self.policy.reinforce_step)
                existing.timestamp = now
                return MergeOutcome.REINFORCED
            age_days = (now - existing.timestamp) / MS_PER_DAY
            if (
                quality > existing.quality + self.policy.replace_margin
                or age_days > self.policy.relearn_after_days
            ):
                entries[index] = PatternEntry(input_lower, response, quality, 1, now)
                return MergeOutcome.REPLACED
            return MergeOutcome.KEPT
        entries.append(PatternEntry(input_lower, response, quality, 1, now))
        return MergeOutcome.INSERTED

    @staticmethod
    def _rank_and_cap(entries: list[PatternEntry], cap: int) -> None:
        entries.sort(key=lambda entry: entry.score, reverse=True)
        del entries[cap:]

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()

    # Stats

    def record_message(self) -> int:
        self._stats.total_messages += 1
        return self._stats.total_messages

    def record_garbage(self) -> None:
        self._stats.garbage_filtered += 1

    def record_conversation(self) -> None:
        self._stats.total_conversations += 1

    def record_live_learning(self) -> None:
        self._stats.live_conversations_learned += 1

    def get_stats(self) -> Stats:
        return replace(self._stats)

    # Lookup

    def exact_match(self, text: str) -> str | None:
        """Return the context-pair response whose input equals text (case-insensitive)."""
        text_lower = normalize_text(text)
        for pair in self._context_pairs:
            if pair.input == text_lower:
                return pair.response
        return None

    def candidates(self, keywords: Iterable[str]) -> list[PatternEntry]:
        """Concatenate cluster copies for each keyword; duplicates across clusters are kept."""
        found: list[PatternEntry] = []
        for keyword in keywords:
            found.extend(replace(entry) for entry in self._clusters.get(keyword, []))
        return found

    def cluster(self, keyword: str) -> list[PatternEntry]:
        return [replace(entry) for entry in self._clusters.get(keyword, [])]

    def context_pairs(self) -> list[PatternEntry]:
        return [replace(entry) for entry in self._context_pairs]

    def quality_score(self, text: str) -> int | None:
        return self._quality_scores.get(normalize_text(text))

    def cluster_sizes(self) -> dict[str, int]:
        return {keyword: len(entries) for keyword, entries in self._clusters.items()}

    def memory_size(self) -> dict[str, int]:
        clustered = sum(len(entries) for entries in self._clusters.values())
        return {
            "contextPairs": len(self._context_pairs),
            "semanticClusters": len(self._clusters),
            "totalLearned": len(self._context_pairs) + clustered,
        }

    def to_snapshot(self) -> MemorySnapshot:
        """Deep copy of the current state, safe to serialize while learning continues."""
        return copy.deepcopy(
            MemorySnapshot(
                context_pairs=self._context_pairs,
                semantic_clusters=self._clusters,
                quality_scores=self._quality_scores,
                stats=self._stats,
                patterns=self._patterns,
            )
        )
