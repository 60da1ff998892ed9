"""
turing/sessions.py
Per-session rolling conversation history used to pair consecutive messages for learning.
Exports: SessionManager, Turn
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class Turn:
    user: str
    ai: str
    timestamp: int


class SessionManager:
    """Tracks session activity and the last few turns of each session."""

    def __init__(
        self,
        max_history: int = 10,
        session_timeout_ms: int = 5 * 60 * 1000,
        max_sessions: int = 1000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_history = max_history
        self.session_timeout_ms = session_timeout_ms
        self.max_sessions = max_sessions
        self._clock = clock
        self._activity: dict[str, int] = {}
        self._history: dict[str, list[Turn]] = {}

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def touch(self, session_id: str) -> bool:
        """Record activity; return True when the session is new."""
        is_new = session_id not in self._activity
        self._activity[session_id] = self._now_ms()
        return is_new

    def history(self, session_id: str) -> list[Turn]:
        return list(self._history.get(session_id, []))

    def add_turn(self, session_id: str, user_message: str, ai_response: str) -> list[Turn]:
        """Append a turn, keep only the most recent ones, and return a copy of the history."""
        turns = self._history.setdefault(session_id, [])
        turns.append(Turn(user=user_message, ai=ai_response, timestamp=self._now_ms()))
        if len(turns) > self.max_history:
            del turns[: len(turns) - self.max_history]
        return list(turns)

    def cleanup(self) -> int:
        """Drop idle sessions and enforce the session cap; return how many were removed."""
        cutoff = self._now_ms() - self.session_timeout_ms
        expired = [sid for sid, last_seen in self._activity.items() if last_seen < cutoff]
        for session_id in expired:
            self._forget(session_id)
        if expired:
            logger.info("Session cleanup removed %d idle sessions (%d active).", len(expired), len(self._activity))

        overflow = len(self._activity) - self.max_sessions
        if overflow > 0:
            oldest = sorted(self._activity.items(), key=lambda item: item[1])[:overflow]
            for session_id, _ in oldest:
                self._forget(session_id)
            logger.warning("Session limit enforced, removed %d sessions.", overflow)
        return len(expired) + max(overflow, 0)

    def _forget(self, session_id: str) -> None:
        self._activity.pop(session_id, None)
        self._history.pop(session_id, None)

    def active_count(self) -> int:
        return len(self._activity)
