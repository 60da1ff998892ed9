"""
tests/test_memory_store.py
Unit tests for turing/memory/store.py and the snapshot codec.
"""

from unittest.mock import MagicMock

import pytest

from turing.common.text_clean import InvalidMessageError
from turing.config import LearningPolicy
from turing.memory.snapshot import snapshot_to_dict
from turing.memory_store import (
    CorruptSnapshotError,
    PatternStore,
    dump_snapshot,
    parse_snapshot,
)

DAY = 24 * 60 * 60


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_days(self, days: float) -> None:
        self.now += days * DAY


def test_learn_pattern_fans_out_to_every_keyword_cluster():
    store = PatternStore()
    store.learn_pattern("Tell me about cats", "cats are great", 50)

    for keyword in ("tell", "about", "cats"):
        entries = store.cluster(keyword)
        assert len(entries) == 1
        assert entries[0].input == "tell me about cats"
        assert entries[0].response == "cats are great"
        assert entries[0].confidence == 1
    assert store.context_pairs() == []
    assert store.quality_score("tell me about cats") == 50


def test_learn_pattern_adds_context_pair_only_at_quality_60():
    store = PatternStore()
    store.learn_pattern("favourite colour", "blue", 59)
    assert store.context_pairs() == []

    store.learn_pattern("favourite colour", "blue", 60)
    pairs = store.context_pairs()
    assert [(pair.input, pair.response) for pair in pairs] == [("favourite colour", "blue")]


def test_reinforcement_is_idempotent_per_copy():
    store = PatternStore()
    for _ in range(4):
        store.learn_pattern("nice weather today", "lovely indeed!", 70)

    for keyword in ("nice", "weather", "today"):
        entries = store.cluster(keyword)
        assert len(entries) == 1
        assert entries[0].confidence == 4
        assert entries[0].quality == 76
    pairs = store.context_pairs()
    assert len(pairs) == 1
    assert pairs[0].confidence == 4
    assert pairs[0].quality == 76


def test_reinforcement_caps_quality_at_100():
    store = PatternStore()
    for _ in range(5):
        store.learn_pattern("best pizza topping", "pineapple", 97)
    assert store.cluster("pizza")[0].quality == 100


def test_replacement_requires_margin_over_existing_quality():
    clock = FakeClock()
    store = PatternStore(clock=clock)
    store.learn_pattern("tell me about cats", "cats are great", 50)
    clock.advance_days(1)

    store.learn_pattern("tell me about cats", "cats are aloof", 55)
    assert store.cluster("cats")[0].response == "cats are great"

    store.learn_pattern("tell me about cats", "cats are aloof", 61)
    entry = store.cluster("cats")[0]
    assert entry.response == "cats are aloof"
    assert entry.quality == 61
    assert entry.confidence == 1


def test_replacement_allowed_once_entry_is_older_than_30_days():
    clock = FakeClock()
    store = PatternStore(clock=clock)
    store.learn_pattern("tell me about cats", "cats are great", 90)

    clock.advance_days(29)
    store.learn_pattern("tell me about cats", "cats sleep a lot", 40)
    assert store.cluster("cats")[0].response == "cats are great"

    clock.advance_days(2)
    store.learn_pattern("tell me about cats", "cats sleep a lot", 40)
    assert store.cluster("cats")[0].response == "cats sleep a lot"


def test_cluster_cap_evicts_lowest_score():
    store = PatternStore()
    for index in range(25):
        store.learn_pattern(f"weather item{index}", f"reply {index}", 40 + index)

    cluster = store.cluster("weather")
    assert len(cluster) == 20
    qualities = [entry.quality for entry in cluster]
    assert qualities == sorted(qualities, reverse=True)
    assert min(qualities) == 45


def test_context_pair_cap_keeps_highest_scores():
    store = PatternStore(policy=LearningPolicy(context_pair_cap=5))
    for index in range(12):
        store.learn_pattern(f"question number{index}", f"answer {index}", 60 + index)

    pairs = store.context_pairs()
    assert len(pairs) == 5
    assert [pair.quality for pair in pairs] == [71, 70, 69, 68, 67]


def test_default_caps_hold_under_many_learns():
    store = PatternStore()
    for index in range(1010):
        store.learn_pattern(f"shared topic{index}", f"answer {index}", 80)
    assert len(store.context_pairs()) == 1000
    assert all(size <= 20 for size in store.cluster_sizes().values())


def test_invalid_learning_input_does_not_mutate():
    on_change = MagicMock()
    store = PatternStore(on_change=on_change)
    for args in (("", "reply", 50), ("hello there", "  ", 50), ("hello there", "reply", 101)):
        with pytest.raises(InvalidMessageError):
            store.learn_pattern(*args)
    assert store.cluster_sizes() == {}
    assert store.get_stats().training_data_points == 0
    on_change.assert_not_called()


def test_learn_pattern_signals_change():
    on_change = MagicMock()
    store = PatternStore(on_change=on_change)
    store.learn_pattern("hello there friend", "hey!", 70)
    on_change.assert_called_once_with()
    assert store.get_stats().training_data_points == 1


def test_exposed_entries_and_stats_are_copies():
    store = PatternStore()
    store.learn_pattern("hello there friend", "hey!", 70)
    store.cluster("friend")[0].response = "tampered"
    store.context_pairs()[0].quality = 0
    store.get_stats().total_messages = 99

    assert store.cluster("friend")[0].response == "hey!"
    assert store.context_pairs()[0].quality == 70
    assert store.get_stats().total_messages == 0


def test_snapshot_round_trip_reproduces_store():
    store = PatternStore()
    store.learn_pattern("tell me about cats", "cats are great", 72)
    store.learn_pattern("tell me about dogs", "dogs are loyal", 55)
    store.learn_pattern("tell me about cats", "cats are great", 72)
    store.record_message()
    store.record_garbage()

    blob = dump_snapshot(store.to_snapshot())
    restored = PatternStore(parse_snapshot(blob))

    assert snapshot_to_dict(restored.to_snapshot()) == snapshot_to_dict(store.to_snapshot())
    assert restored.get_stats() == store.get_stats()


def test_parse_snapshot_defaults_missing_stats():
    snapshot = parse_snapshot('{"contextPairs": [], "semanticClusters": {}}')
    assert snapshot.stats.total_messages == 0
    assert snapshot.quality_scores == {}


@pytest.mark.parametrize(
    "blob",
    [
        "not json",
        "[]",
        '{"semanticClusters": {}}',
        '{"contextPairs": [], "semanticClusters": []}',
        '{"contextPairs": {}, "semanticClusters": {}}',
        '{"contextPairs": [{"response": "x"}], "semanticClusters": {}}',
    ],
)
def test_parse_snapshot_rejects_corrupt_blobs(blob):
    with pytest.raises(CorruptSnapshotError):
        parse_snapshot(blob)
