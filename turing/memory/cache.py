"""Short-TTL cache of normalized input -> response, consulted before matching."""

import hashlib
import time
from collections.abc import Callable

from turing.common.text_clean import normalize_text

DEFAULT_TTL_MS = 5000
DEFAULT_MAX_ENTRIES = 1000


class ResponseCache:
    """Insertion-ordered TTL cache keyed by an MD5 of the normalized message."""

    def __init__(
        self,
        ttl_ms: int = DEFAULT_TTL_MS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_ms = ttl_ms
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    @staticmethod
    def key_for(message: str) -> str:
        return hashlib.md5(normalize_text(message).encode("utf-8")).hexdigest()

    def get(self, message: str) -> str | None:
        key = self.key_for(message)
        entry = self._entries.get(key)
        if entry is None:
            return None
        response, stored_at = entry
        if (self._clock() - stored_at) * 1000 > self.ttl_ms:
            del self._entries[key]
            return None
        return response

    def set(self, message: str, response: str) -> None:
        if self.ttl_ms <= 0:
            return
        key = self.key_for(message)
        self._entries.pop(key, None)
        self._entries[key] = (response, self._clock())
        while len(self._entries) > self.max_entries:
            del self._entries[next(iter(self._entries))]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
