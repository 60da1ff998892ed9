"""
turing/common/garbage.py
Garbage/spam/profanity classifier gating both learning and retrieval.
Exports: classify_garbage, contains_profanity, ProfanityResult

The pattern lists below are policy tables; callers only depend on the predicates.
"""

import re
import unicodedata
from dataclasses import dataclass, field

MAX_CLASSIFIABLE_LENGTH = 500
MAX_SPECIAL_CHAR_RATIO = 0.3
MAX_SHOUTING_RATIO = 0.6
MIN_VOWEL_RATIO = 0.15

BANNED_WORDS = frozenset(
    {
        "fuck", "fucker", "fucking", "shit", "bitch", "bastard", "asshole", "dick",
        "douche", "cunt", "whore", "slut", "nigger", "nigga", "faggot", "fag",
        "retard", "spaz", "kys",
    }
)

SPAM_PATTERNS = (
    re.compile(r"click here", re.IGNORECASE),
    re.compile(r"buy now", re.IGNORECASE),
    re.compile(r"limited time", re.IGNORECASE),
    re.compile(r"act now", re.IGNORECASE),
    re.compile(r"free money", re.IGNORECASE),
    re.compile(r"\b(viagra|cialis|casino)\b", re.IGNORECASE),
    re.compile(r"https?://\S{20,}", re.IGNORECASE),
    re.compile(r"(.)\1{5,}"),
    re.compile(r"\d{5,}"),
    re.compile(r"\b(subscribe|follow me|check out my)\b", re.IGNORECASE),
)

HARMFUL_PATTERNS = (re.compile(r"\b(kill yourself|kys)\b", re.IGNORECASE),)

LEET_MAP = {"4": "a", "@": "a", "3": "e", "1": "i", "!": "i", "0": "o", "$": "s", "5": "s", "7": "t", "8": "b"}
_SPECIAL_CHARS = re.compile(r"[^a-zA-Z0-9\s.,!?'-]")


@dataclass
class ProfanityResult:
    """Outcome of profanity detection."""

    found: bool
    matches: list[str] = field(default_factory=list)


def _normalize_for_profanity(text: str) -> tuple[str, str]:
    """Return (letters_only, collapsed) forms with leet-speak and diacritics undone."""
    decomposed = unicodedata.normalize("NFKD", unicodedata.normalize("NFKC", text).lower())
    normalized = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    normalized = "".join(LEET_MAP.get(ch, ch) for ch in normalized)
    letters_only = re.sub(r"[^a-z]", "", normalized)
    collapsed = re.sub(r"(.)\1{2,}", r"\1\1", letters_only)
    return letters_only, collapsed


def contains_profanity(text: str) -> ProfanityResult:
    """
    Detect banned words, including obfuscated spellings.

    Args:
        text: Message text.
    Returns:
        ProfanityResult with the sorted matched words.
    """
    if not text:
        return ProfanityResult(found=False)
    lowered = text.lower()
    matches: set[str] = set()
    for word in BANNED_WORDS:
        if re.search(rf"\b{re.escape(word)}\b", lowered):
            matches.add(word)
    letters_only, collapsed = _normalize_for_profanity(text)
    for word in BANNED_WORDS:
        if word in collapsed or word in letters_only:
            matches.add(word)
    return ProfanityResult(found=bool(matches), matches=sorted(matches))


def classify_garbage(text: str) -> bool:
    """
    Return True when text should be neither learned from nor answered.

    Args:
        text: Cleaned message text.
    Returns:
        True for empty/oversized, spammy, harmful, profane, shouted or gibberish text.
    """
    lowered = text.lower().strip()
    if not lowered or len(lowered) > MAX_CLASSIFIABLE_LENGTH:
        return True

    if len(_SPECIAL_CHARS.findall(text)) / len(text) > MAX_SPECIAL_CHAR_RATIO:
        return True
    if any(pattern.search(text) for pattern in SPAM_PATTERNS):
        return True
    if any(pattern.search(text) for pattern in HARMFUL_PATTERNS):
        return True
    if contains_profanity(text).found:
        return True

    words = re.split(r"\s+", text)
    shouted = [word for word in words if len(word) > 1 and word == word.upper()]
    if len(shouted) / len(words) > MAX_SHOUTING_RATIO:
        return True

    vowel_ratio = len(re.findall(r"[aeiou]", lowered)) / len(lowered)
    if vowel_ratio < MIN_VOWEL_RATIO and len(lowered) > 4:
        return True
    return False
