"""Canned replies used when nothing learned matches the incoming message."""

import random
import re

GARBAGE_RESPONSE = "Let's keep our conversation meaningful and respectful! 😊"

GREETING_PATTERN = re.compile(r"^(hi|hey|hello|sup|yo|greetings|howdy|wassup|what's up)\b")
STATUS_PATTERN = re.compile(r"how (are|r) (you|u)|how's it going|hows it going|what's up|whats up")
QUESTION_PATTERN = re.compile(r"^(what|where|when|who|why|how|which|whose|\?)")

GREETINGS = (
    "hey", "hi", "hello", "hey there", "hi!", "sup", "yo",
    "hey! how are you?", "hello! how's it going?",
)
STATUSES = (
    "good, you?", "pretty good!", "not bad, how about you?",
    "doing alright", "i'm good thanks", "fine, and you?", "great! how are you?",
)
QUESTIONS = (
    "what do you think?", "i'm not sure, what would you say?",
    "hmm, good question", "that's interesting, tell me your thoughts",
    "not sure tbh", "idk, what about you?", "what's your take on it?",
)
CASUAL = (
    "oh really?", "interesting", "cool", "nice", "that's cool",
    "oh nice", "yeah?", "for real?", "i see", "tell me more",
    "go on", "interesting!", "oh wow", "haha nice", "that's interesting",
    "cool, tell me more", "nice! what else?", "oh that's cool",
    "i feel that", "makes sense",
)


def fallback_pool(text: str) -> tuple[str, ...]:
    """Pick the reply pool matching the shape of the message."""
    lowered = text.lower()
    if GREETING_PATTERN.search(lowered):
        return GREETINGS
    if STATUS_PATTERN.search(lowered):
        return STATUSES
    if QUESTION_PATTERN.search(lowered):
        return QUESTIONS
    return CASUAL


def fallback_response(text: str, rng: random.Random | None = None) -> str:
    return (rng or random).choice(fallback_pool(text))
