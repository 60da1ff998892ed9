"""Length-based quality heuristic for learned (input, response) pairs."""

import re

BASE_SCORE = 50


def _word_count(text: str) -> int:
    return len(re.split(r"\s+", text))


def score_quality(input_text: str, response: str) -> int:
    """
    Score an exchange between 0 and 100.

    Args:
        input_text: Message that prompted the response.
        response: Reply observed for that message.
    Returns:
        Bounded integer quality score.
    """
    score = BASE_SCORE
    input_words = _word_count(input_text)
    response_words = _word_count(response)

    if 1 <= input_words <= 50:
        score += 15
    if 1 <= response_words <= 100:
        score += 15
    if 3 <= response_words <= 20:
        score += 10
    if re.search(r"[.!?]$", response):
        score += 5
    if input_text.lower() != response.lower():
        score += 5

    return max(0, min(100, score))
