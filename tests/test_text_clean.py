"""Unit tests for turing/common/text_clean.py."""

import pytest

from turing.common.text_clean import (
    InvalidMessageError,
    clean_text,
    validate_message,
    validate_session_id,
)


def test_validate_message_trims():
    assert validate_message("  hello  ") == "hello"


@pytest.mark.parametrize(
    "message, reason",
    [
        (123, "must be a string"),
        ("   ", "too short"),
        ("x" * 2001, "maximum length"),
        ("<script>alert(1)</script>", "suspicious"),
        ("javascript:void(0)", "suspicious"),
        ('<img onerror="x">', "suspicious"),
    ],
)
def test_validate_message_rejects_bad_input(message, reason):
    with pytest.raises(InvalidMessageError, match=reason):
        validate_message(message)


def test_validate_session_id():
    assert validate_session_id("user_42-a") == "user_42-a"
    with pytest.raises(InvalidMessageError):
        validate_session_id("bad id!")
    with pytest.raises(InvalidMessageError):
        validate_session_id(None)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Human 1: hello there", "hello there"),
        ("Speaker B: what's new", "what's new"),
        ("bot: fine thanks", "fine thanks"),
        ('"quoted reply"', "quoted reply"),
        ("lots    of \n space", "lots of space"),
        ("", ""),
        (None, ""),
    ],
)
def test_clean_text(raw, expected):
    assert clean_text(raw) == expected


def test_clean_text_truncates():
    assert len(clean_text("a" * 3000)) == 2000
