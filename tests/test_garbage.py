"""Unit tests for turing/common/garbage.py."""

import pytest

from turing.common.garbage import classify_garbage, contains_profanity


@pytest.mark.parametrize(
    "text",
    [
        "hello there friend",
        "ok",
        "how are you doing today",
        "pretty good thanks for asking",
    ],
)
def test_classify_garbage_accepts_normal_chat(text):
    assert classify_garbage(text) is False


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "x" * 501,
        "buy now cheap stuff",
        "win at the casino tonight",
        "sooooooooo good",
        "call 5551234 please",
        "THIS IS SO LOUD",
        "xkcd bcdfg",
        "@@## $$%% ^^&&",
        "just kys already",
    ],
)
def test_classify_garbage_rejects(text):
    assert classify_garbage(text) is True


def test_contains_profanity_direct_match():
    result = contains_profanity("what the fuck")
    assert result.found is True
    assert result.matches == ["fuck"]


def test_contains_profanity_sees_through_leet_speak():
    assert contains_profanity("sh1t happens").found is True
    assert classify_garbage("sh1t happens") is True


def test_contains_profanity_clean_text():
    result = contains_profanity("have a lovely day")
    assert result.found is False
    assert result.matches == []
