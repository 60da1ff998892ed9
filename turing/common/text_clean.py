"""
turing/common/text_clean.py
Validation and cleanup applied to raw chat text before learning or matching.
Exports: InvalidMessageError, validate_message, validate_session_id, clean_text, normalize_text
"""

import re
from typing import Any

MAX_MESSAGE_LENGTH = 2000
SESSION_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,100}$")
SUSPICIOUS_PATTERNS = (
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"data:text/html", re.IGNORECASE),
)

_SPEAKER = r"(Human|Person|Speaker|User|Assistant|AI|Bot)"
_SPEAKER_PREFIXES = (
    re.compile(rf"^{_SPEAKER}\s*[0-9]+\s*:\s*", re.IGNORECASE),
    re.compile(rf"^{_SPEAKER}\s*[A-Z]\s*:\s*", re.IGNORECASE),
    re.compile(rf"^{_SPEAKER}\s*:\s*", re.IGNORECASE),
)


class InvalidMessageError(ValueError):
    """Raised when chat input or learning input is malformed."""


def validate_message(message: Any, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """
    Validate a raw chat message.

    Args:
        message: Untrusted request value.
        max_length: Maximum accepted length after trimming.
    Returns:
        Trimmed message.
    Raises:
        InvalidMessageError: Non-string, empty, oversized or suspicious content.
    """
    if not isinstance(message, str):
        raise InvalidMessageError("Message must be a string")
    trimmed = message.strip()
    if not trimmed:
        raise InvalidMessageError("Message is too short")
    if len(trimmed) > max_length:
        raise InvalidMessageError(f"Message exceeds maximum length of {max_length} characters")
    if any(pattern.search(message) for pattern in SUSPICIOUS_PATTERNS):
        raise InvalidMessageError("Message contains suspicious content")
    return trimmed


def validate_session_id(session_id: Any) -> str:
    """Return session_id unchanged or raise InvalidMessageError."""
    if not isinstance(session_id, str):
        raise InvalidMessageError("Session ID must be a string")
    if not SESSION_ID_PATTERN.match(session_id):
        raise InvalidMessageError("Invalid session ID format")
    return session_id


def clean_text(text: str | None, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """
    Strip transcript artifacts (speaker labels, wrapping quotes) and collapse whitespace.

    Args:
        text: Validated message text.
        max_length: Truncation length for the cleaned text.
    Returns:
        Cleaned text, possibly empty.
    """
    if not text:
        return ""
    cleaned = text.strip()
    for prefix in _SPEAKER_PREFIXES:
        cleaned = prefix.sub("", cleaned, count=1)
    cleaned = re.sub(r"^[\"']|[\"']$", "", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    return cleaned[:max_length]


def normalize_text(text: str) -> str:
    return text.lower().strip()
