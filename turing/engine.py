"""
turing/engine.py
Orchestration of cleaning, classification, retrieval, learning and persistence.
Exports: ResponseEngine, ChatTurn
"""

import logging
import random
from dataclasses import dataclass

from turing.common.fallbacks import GARBAGE_RESPONSE, fallback_response
from turing.common.garbage import classify_garbage
from turing.common.quality import score_quality
from turing.common.text_clean import clean_text, validate_message, validate_session_id
from turing.config import LearningPolicy, Settings
from turing.memory.cache import ResponseCache
from turing.memory.persistence import PersistenceCoordinator, build_coordinator
from turing.memory.query import Matcher
from turing.memory.store import PatternStore
from turing.memory.types import Stats
from turing.metrics import MetricsCollector
from turing.sessions import SessionManager

logger = logging.getLogger(__name__)

SAVE_EVERY_N_MESSAGES = 10


@dataclass
class ChatTurn:
    """Result of one chat exchange."""

    response: str
    from_memory: bool = False
    rejected: bool = False
    learned_pattern: bool = False


class ResponseEngine:
    """Process-wide learning engine; the HTTP layer only talks to this object."""

    def __init__(
        self,
        store: PatternStore,
        coordinator: PersistenceCoordinator | None = None,
        *,
        cache: ResponseCache | None = None,
        metrics: MetricsCollector | None = None,
        sessions: SessionManager | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.policy: LearningPolicy = store.policy
        self.coordinator = coordinator
        self.metrics = metrics or MetricsCollector()
        self.matcher = Matcher(store, cache if cache is not None else ResponseCache(), self.metrics)
        self.sessions = sessions or SessionManager(
            max_history=self.policy.max_history,
            session_timeout_ms=self.policy.session_timeout_ms,
            max_sessions=self.policy.max_sessions,
        )
        self._rng = rng or random.Random()

    @classmethod
    def from_settings(cls, settings: Settings, policy: LearningPolicy | None = None) -> "ResponseEngine":
        store = PatternStore(policy=policy)
        coordinator = build_coordinator(store, settings)
        return cls(store, coordinator, cache=ResponseCache(ttl_ms=settings.response_cache_ttl_ms))

    # Collaborator-facing operations

    def clean_text(self, raw: object) -> str:
        """Validate and clean incoming text; raises InvalidMessageError."""
        return clean_text(validate_message(raw, self.policy.max_message_length), self.policy.max_message_length)

    @staticmethod
    def is_acceptable(text: str) -> bool:
        return bool(text) and not classify_garbage(text)

    def find_best_response(self, text: str) -> str | None:
        return self.matcher.find_best_response(text)

    def learn_pattern(self, input_text: str, response: str, quality: int) -> None:
        self.store.learn_pattern(input_text, response, quality)
        self.matcher.invalidate()
        self.metrics.record_learning()

    def request_save(self) -> None:
        if self.coordinator is not None:
            self.coordinator.request_save()

    def get_stats(self) -> Stats:
        return self.store.get_stats()

    # Chat turn

    def chat(self, message: object, session_id: object = "default") -> ChatTurn:
        """
        Answer one message and learn from the session's previous message.

        Args:
            message: Raw message from the client.
            session_id: Client-chosen conversation id.
        Returns:
            ChatTurn describing the reply.
        Raises:
            InvalidMessageError: Malformed message or session id.
        """
        cleaned = self.clean_text(message)
        session = validate_session_id(session_id)

        if not self.is_acceptable(cleaned):
            self.store.record_garbage()
            return ChatTurn(response=GARBAGE_RESPONSE, rejected=True)

        if self.sessions.touch(session):
            self.store.record_conversation()
            self.sessions.cleanup()

        response = self.find_best_response(cleaned)
        from_memory = response is not None
        if response is None:
            response = fallback_response(cleaned, self._rng)

        history = self.sessions.add_turn(session, cleaned, response)
        learned = False
        if len(history) >= 2:
            learned = self._learn_from_previous(history[-2].user, cleaned)

        if self.store.record_message() % SAVE_EVERY_N_MESSAGES == 0:
            self.request_save()
        return ChatTurn(response=response, from_memory=from_memory, learned_pattern=learned)

    def _learn_from_previous(self, previous: str, current: str) -> bool:
        if not self.is_acceptable(previous) or not self.is_acceptable(current):
            return False
        quality = score_quality(previous, current)
        if quality < self.policy.min_learn_quality:
            return False
        self.store.record_live_learning()
        self.learn_pattern(previous, current, quality)
        logger.info(
            "Pattern learned: %r -> %r (quality %d, total %d).",
            previous,
            current,
            quality,
            self.store.get_stats().live_conversations_learned,
        )
        return True

    # Lifecycle

    async def startup(self) -> None:
        if self.coordinator is not None:
            await self.coordinator.initialize()

    async def shutdown(self) -> None:
        if self.coordinator is not None:
            await self.coordinator.shutdown()
