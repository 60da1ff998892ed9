"""
tests/test_sessions.py
Unit tests for turing/sessions.py.
"""

from turing.sessions import SessionManager


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now


def test_touch_reports_new_sessions_once():
    sessions = SessionManager()
    assert sessions.touch("alpha") is True
    assert sessions.touch("alpha") is False
    assert sessions.active_count() == 1


def test_history_keeps_most_recent_turns():
    sessions = SessionManager(max_history=3)
    for index in range(5):
        history = sessions.add_turn("alpha", f"question {index}", f"answer {index}")

    assert [turn.user for turn in history] == ["question 2", "question 3", "question 4"]
    history.clear()
    assert len(sessions.history("alpha")) == 3


def test_cleanup_drops_idle_sessions():
    clock = FakeClock()
    sessions = SessionManager(session_timeout_ms=60_000, clock=clock)
    sessions.touch("alpha")
    sessions.add_turn("alpha", "hello", "hi")
    clock.now += 30
    sessions.touch("bravo")
    clock.now += 45

    assert sessions.cleanup() == 1
    assert sessions.active_count() == 1
    assert sessions.history("alpha") == []


def test_cleanup_enforces_session_cap_oldest_first():
    clock = FakeClock()
    sessions = SessionManager(max_sessions=2, clock=clock)
    for session_id in ("alpha", "bravo", "charlie"):
        sessions.touch(session_id)
        clock.now += 1

    assert sessions.cleanup() == 1
    assert sessions.touch("alpha") is True
    assert sessions.touch("charlie") is False
