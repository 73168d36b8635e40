import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import io
import random
import pytest

import score_cache
import utils
from board import BoardState, InvalidTileIndex
from heuristics import Evaluator, HeuristicMap, classify_tile, count_owned
from tabu import LockMemory
from utils import COMPUTER, HUMAN, LockPolicy


@pytest.fixture(autouse=True)
def fresh_cache(monkeypatch):
    monkeypatch.setattr(score_cache, "CACHE_DISABLED", False)
    score_cache.clear_cache()
    yield
    score_cache.clear_cache()


def test_tile_classes_on_4x4():
    assert [classify_tile(t, 4) for t in (0, 3, 12, 15)] == ["corner"] * 4
    assert [classify_tile(t, 4) for t in (1, 2, 4, 7, 8, 11, 13, 14)] == ["edge"] * 8
    # No interior on the smallest board: every inner tile touches a corner ring
    assert [classify_tile(t, 4) for t in (5, 6, 9, 10)] == ["trap"] * 4


def test_tile_classes_on_6x6():
    assert classify_tile(7, 6) == "trap"
    assert classify_tile(14, 6) == "interior"
    assert classify_tile(21, 6) == "interior"
    assert classify_tile(28, 6) == "trap"


def test_tile_values_and_total():
    hm = HeuristicMap(4)
    assert hm.value(0) == 25
    assert hm.value(1) == 15
    assert hm.value(5) == -5
    assert hm.total() == 200
    with pytest.raises(InvalidTileIndex):
        hm.value(16)


def test_base_value_shifts_every_tile():
    hm = HeuristicMap(5, base_value=1.0)
    assert hm.value(12) == 6.0
    assert hm.total() == HeuristicMap(5).total() + 25


def test_all_yellow_board_scores_total_for_human():
    ev = Evaluator(HeuristicMap(4))
    state = BoardState([True] * 16)
    assert ev.evaluate(state, HUMAN) == 200
    assert ev.evaluate(state, COMPUTER) == -200


def test_evaluation_is_zero_sum():
    rng = random.Random(5)
    for policy in LockPolicy:
        ev = Evaluator(HeuristicMap(5), policy)
        locks = LockMemory(6, 5)
        for _ in range(4):
            locks.record(rng.randrange(25))
        for _ in range(20):
            state = BoardState([rng.random() < 0.5 for _ in range(25)])
            assert ev.evaluate(state, HUMAN, locks) == -ev.evaluate(state, COMPUTER, locks)


def test_immunity_boosts_locked_tiles():
    locks = LockMemory(4)
    locks.record(0)
    state = BoardState([True] * 16)
    boosted = Evaluator(HeuristicMap(4), LockPolicy.IMMUNITY, 1.5)
    plain = Evaluator(HeuristicMap(4), LockPolicy.EXCLUSION, 1.5)
    assert boosted.evaluate(state, HUMAN, locks) == 212.5
    assert plain.evaluate(state, HUMAN, locks) == 200


def test_repeat_evaluation_hits_cache():
    ev = Evaluator(HeuristicMap(4))
    state = BoardState([i % 3 == 0 for i in range(16)])
    first = ev.evaluate(state, HUMAN)
    second = ev.evaluate(state, HUMAN)
    assert first == second
    stats = score_cache.cache_stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["size"] == 1


def test_evaluators_with_different_weights_do_not_share_entries():
    state = BoardState([True] + [False] * 15)
    low = Evaluator(HeuristicMap(4))
    high = Evaluator(HeuristicMap(4, corner_value=100))
    assert low.evaluate(state, HUMAN) != high.evaluate(state, HUMAN)
    assert score_cache.cache_stats()["hits"] == 0


def test_disabled_cache_skips_counters(monkeypatch):
    monkeypatch.setattr(score_cache, "CACHE_DISABLED", True)
    ev = Evaluator(HeuristicMap(4))
    state = BoardState.new(4)
    ev.evaluate(state, HUMAN)
    ev.evaluate(state, HUMAN)
    assert score_cache.cache_stats() == {"hits": 0, "misses": 0, "size": 0}


def test_lru_cache_evicts_oldest():
    cache = score_cache.LRUCache(maxsize=2)
    cache["a"] = 1
    cache["b"] = 2
    _ = cache["a"]
    cache["c"] = 3
    assert list(cache) == ["a", "c"]


def test_cache_summary_output(monkeypatch):
    monkeypatch.setattr(utils, "VERBOSE", True)
    ev = Evaluator(HeuristicMap(4))
    state = BoardState.new(4)
    ev.evaluate(state, HUMAN)
    ev.evaluate(state, HUMAN)
    out = io.StringIO()
    monkeypatch.setattr("sys.stdout", out)
    score_cache.print_cache_summary()
    result = out.getvalue()
    assert "CACHE SUMMARY" in result
    assert "Hashes seen more than once: 1" in result


def test_count_owned():
    state = BoardState([True, False, True, True])
    assert count_owned(state, HUMAN) == 3
    assert count_owned(state, COMPUTER) == 1
