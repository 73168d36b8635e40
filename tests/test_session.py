import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import concurrent.futures
import random
import pytest

from board import InvalidTileIndex
from config import EngineConfig, config_for
from search import NO_MOVE
from session import GameSession
from utils import COMPUTER, HUMAN, LockPolicy


class ImmediateExecutor:
    """Runs submitted work inline and hands back a finished future."""

    def submit(self, fn, *args, **kwargs):
        future = concurrent.futures.Future()
        future.set_result(fn(*args, **kwargs))
        return future


def make_session(seed=1, **overrides):
    overrides.setdefault("blunder_probability", 0.0)
    return GameSession(config_for("hard", **overrides), random.Random(seed))


def test_new_game_bumps_round_id_and_resets():
    session = make_session()
    assert session.round_id == 1
    session.play_human(session.hint())
    session.new_game()
    assert session.round_id == 2
    assert session.state.round_id == 2
    assert session.state.turns_played == 0
    assert len(session.locks) == 0
    assert session.human_to_move
    assert session.last_move is None


@pytest.mark.parametrize("seed", range(10))
def test_scrambled_board_is_never_uniform(seed):
    session = make_session(seed)
    assert not session.state.is_uniform()


def test_locked_tile_is_rejected_without_changing_board():
    session = make_session(lock_policy=LockPolicy.EXCLUSION)
    first = session.hint()
    assert session.play_human(first)
    assert session.computer_move() is not NO_MOVE
    before = list(session.state.owners)
    assert not session.play_human(first)
    assert session.state.owners == before
    assert session.human_to_move


def test_human_cannot_move_out_of_turn():
    session = make_session()
    assert session.play_human(0)
    assert not session.play_human(1)
    assert session.state.turns_played == 1


def test_invalid_tile_raises():
    session = make_session()
    with pytest.raises(InvalidTileIndex):
        session.play_human(99)


def test_moves_record_locks_and_turns():
    session = make_session()
    session.play_human(3)
    tile = session.computer_move()
    assert session.locks.locked_tiles() == (3, tile)
    assert session.state.turns_played == 2
    assert session.rounds_played == 1
    assert session.round_number == 2
    assert session.last_move == tile


def test_dispatch_applies_result_for_current_game():
    session = make_session()
    session.play_human(session.hint())
    round_id, future = session.dispatch_computer_move(ImmediateExecutor())
    assert session.pending
    assert session.complete_computer_move(round_id, future.result())
    assert not session.pending
    assert session.human_to_move


def test_stale_decision_is_discarded_after_new_game():
    session = make_session()
    session.play_human(session.hint())
    round_id, future = session.dispatch_computer_move(ImmediateExecutor())
    session.new_game()
    before = list(session.state.owners)
    assert not session.complete_computer_move(round_id, future.result())
    assert session.state.owners == before
    assert session.state.turns_played == 0
    assert len(session.locks) == 0
    assert session.human_to_move


def test_dispatch_runs_on_real_thread_pool():
    session = make_session()
    session.play_human(session.hint())
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
        round_id, future = session.dispatch_computer_move(executor)
        tile = future.result()
    assert session.complete_computer_move(round_id, tile)
    assert session.last_move == tile


def test_perfect_board_ends_game():
    session = make_session()
    session.state.owners = [True] * 16
    outcome = session.outcome()
    assert outcome.winner == HUMAN
    assert outcome.reason == "perfect"
    assert "Perfect Victory" in outcome.describe()
    session.state.owners = [False] * 16
    assert session.outcome().winner == COMPUTER


def test_round_limit_decides_on_score():
    session = make_session(max_rounds=3)
    session.state.owners = [True] * 9 + [False] * 7
    session.state.turns_played = 5
    assert session.outcome() is None
    session.state.turns_played = 6
    outcome = session.outcome()
    assert outcome.winner == HUMAN
    assert outcome.reason == "rounds"
    assert "WINS by Score" in outcome.describe()
    assert not session.play_human(0)


def test_round_limit_draw():
    session = make_session(max_rounds=1)
    session.state.owners = [True] * 8 + [False] * 8
    session.state.turns_played = 2
    outcome = session.outcome()
    assert outcome.winner is None
    assert "DRAW" in outcome.describe()


def test_computer_releases_oldest_lock_when_boxed_in():
    session = make_session(lock_policy=LockPolicy.EXCLUSION, lock_capacity=16)
    session.locks.clear()
    for t in range(16):
        session.locks.record(t)
    session.human_to_move = False
    tile = session.computer_move()
    assert tile == 0
    assert session.last_move == 0
    assert session.locks.locked_tiles()[-1] == 0
    assert len(session.locks) == 16


def test_scores_are_zero_sum():
    session = make_session()
    scores = session.scores()
    assert scores["yellow"] + scores["grey"] == 16
    assert scores["human_eval"] == -scores["computer_eval"]


def test_default_config_session():
    session = GameSession(rng=random.Random(0))
    assert session.config == EngineConfig()
    assert session.locks.capacity == 4
