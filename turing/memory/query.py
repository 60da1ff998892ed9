"""Retrieval of the best learned response for an incoming message."""

import logging
from dataclasses import dataclass

from turing.common.keywords import extract_keywords
from turing.memory.cache import ResponseCache
from turing.memory.store import PatternStore
from turing.memory.types import PatternEntry
from turing.metrics import MetricsCollector

logger = logging.getLogger(__name__)


@dataclass
class ScoredCandidate:
    """Cluster entry annotated with its relevance to the current query."""

    entry: PatternEntry
    relevance: float


def relevance_score(query_keywords: list[str], entry: PatternEntry) -> float:
    """Keyword-overlap ratio of the query multiplied by the entry quality."""
    candidate_keywords = set(extract_keywords(entry.input))
    overlap = sum(1 for keyword in query_keywords if keyword in candidate_keywords)
    return (overlap / max(len(query_keywords), 1)) * entry.quality


def rank_candidates(query_keywords: list[str], candidates: list[PatternEntry]) -> list[ScoredCandidate]:
    """
    Score and sort candidates by descending relevance.

    Ties keep gathering order (keyword order of the query, then cluster order),
    since the sort is stable.
    """
    scored = [ScoredCandidate(entry, relevance_score(query_keywords, entry)) for entry in candidates]
    scored.sort(key=lambda item: item.relevance, reverse=True)
    return scored


class Matcher:
    """Cache -> exact context pair -> ranked cluster candidates."""

    def __init__(
        self,
        store: PatternStore,
        cache: ResponseCache | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.metrics = metrics

    def find_best_response(self, text: str) -> str | None:
        """
        Return the best learned response, or None when nothing is relevant enough.

        Args:
            text: Cleaned, non-garbage message.
        Returns:
            Learned response text, or None so the caller can supply a fallback.
        """
        if self.cache is not None:
            cached = self.cache.get(text)
            if cached is not None:
                if self.metrics is not None:
                    self.metrics.record_cache_hit()
                return cached
            if self.metrics is not None:
                self.metrics.record_cache_miss()

        exact = self.store.exact_match(text)
        if exact is not None:
            return self._remember(text, exact)

        keywords = extract_keywords(text)
        candidates = self.store.candidates(keywords)
        if not candidates:
            return None

        best = rank_candidates(keywords, candidates)[0]
        if best.relevance > self.store.policy.relevance_threshold:
            return self._remember(text, best.entry.response)
        logger.debug("Best candidate relevance %.1f below threshold.", best.relevance)
        return None

    def _remember(self, text: str, response: str) -> str:
        if self.cache is not None:
            self.cache.set(text, response)
        return response

    def invalidate(self) -> None:
        """Drop cached responses after the store changed."""
        if self.cache is not None:
            self.cache.clear()
