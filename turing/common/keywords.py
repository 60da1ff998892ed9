"""Keyword normalization helpers for cluster lookup and relevance scoring."""

import re

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "is", "are", "was", "were", "be", "been",
        "being", "have", "has", "had", "do", "does", "did", "will", "would",
        "could", "should", "may", "might", "can", "this", "that", "these",
        "those", "i", "you", "he", "she", "it", "we", "they", "what", "which",
        "who", "when", "where", "why", "how",
    }
)
MIN_KEYWORD_LENGTH = 3


def extract_keywords(text: str) -> list[str]:
    """
    Extract content words from free text.

    Args:
        text: Raw or cleaned message text.
    Returns:
        Lowercase keywords in first-seen order, without duplicates, stop words
        or tokens shorter than three characters.
    """
    lowered = re.sub(r"[^a-z0-9\s]", "", str(text).lower())
    keywords: list[str] = []
    for token in lowered.split():
        if len(token) < MIN_KEYWORD_LENGTH or token in STOP_WORDS:
            continue
        if token not in keywords:
            keywords.append(token)
    return keywords
