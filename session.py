import random
import time
from dataclasses import dataclass
from typing import Optional

from colorama import Fore
from utils import HUMAN, COMPUTER, log_with_time, vlog, side_name
from board import BoardState, apply_move, new_board, validate_tile
from config import EngineConfig
from heuristics import HeuristicMap
from search import MoveSelector, NO_MOVE, fallback_move
from tabu import LockMemory


@dataclass(frozen=True)
class GameOutcome:
    winner: Optional[bool]  # HUMAN, COMPUTER, or None for a draw
    reason: str             # "perfect" or "rounds"
    yellow: int
    grey: int

    def describe(self):
        if self.reason == "perfect":
            return f"Perfect Victory! {side_name(self.winner).upper()} WINS!"
        if self.winner is None:
            return f"Time's Up! IT'S A DRAW! ({self.yellow}-{self.grey})"
        return f"Time's Up! {side_name(self.winner).upper()} WINS by Score! ({self.yellow}-{self.grey})"


class GameSession:
    """Owns the live board, the lock memory and the turn order of one game.

    The computer's decision can run off-thread: ``dispatch_computer_move``
    hands a snapshot to an executor and ``complete_computer_move`` applies
    the answer only if no new game was started in the meantime.
    """

    def __init__(self, config=None, rng=None):
        self.config = (config or EngineConfig()).validate()
        self.rng = rng or random.Random()
        self.heuristic_map = HeuristicMap.from_config(self.config)
        self.locks = LockMemory(self.config.effective_lock_capacity, self.config.grid_size)
        self.round_id = 0
        self.adjacency = None
        self.selector = None
        self.state = None
        self.human_to_move = True
        self.pending = False
        self.last_move = None
        self.new_game()

    # ---- lifecycle ----
    def new_game(self):
        t0 = time.time()
        self.round_id += 1
        n = self.config.grid_size
        self.adjacency = new_board(n, self.config.pattern, self.rng)
        self.selector = MoveSelector(self.adjacency, self.config, self.heuristic_map, self.rng)
        self.state = BoardState.new(n, self.round_id)
        self.locks.clear()
        self.human_to_move = True
        self.pending = False
        self.last_move = None

        lo, hi = self.config.scramble_moves
        scrambles = self.rng.randint(lo, hi)
        for _ in range(scrambles):
            apply_move(self.state, self.rng.randrange(self.adjacency.tile_count), self.adjacency)
        while hi > 0 and self.state.is_uniform():
            apply_move(self.state, self.rng.randrange(self.adjacency.tile_count), self.adjacency)
        vlog(f"New game #{self.round_id}: {n}x{n} {self.config.pattern.value}, {scrambles} scramble moves", t0)
        return self.state

    @property
    def round_number(self):
        return self.state.turns_played // 2 + 1

    @property
    def rounds_played(self):
        return self.state.turns_played // 2

    # ---- moves ----
    def is_legal(self, tile_id):
        validate_tile(tile_id, self.config.grid_size)
        return not self.locks.blocks_move(tile_id, self.config.lock_policy)

    def _apply_turn(self, tile_id, perspective):
        apply_move(self.state, tile_id, self.adjacency, self.locks, self.config.lock_policy)
        self.locks.record(tile_id)
        self.state.turns_played += 1
        self.last_move = tile_id
        self.human_to_move = not perspective
        vlog(f"{side_name(perspective)} played tile {tile_id} (turn {self.state.turns_played})")

    def play_human(self, tile_id):
        """Apply the human's move; False if it is not their turn or the tile is locked."""
        if self.outcome() is not None or self.pending or not self.human_to_move:
            return False
        if not self.is_legal(tile_id):
            return False
        self._apply_turn(tile_id, HUMAN)
        return True

    def pass_turn(self):
        """Skip the side to move; used when it has no legal tile."""
        perspective = self.human_to_move
        self.state.turns_played += 1
        self.human_to_move = not perspective
        vlog(f"{side_name(perspective)} passes (turn {self.state.turns_played})")

    def _resolve_computer_tile(self, tile_id):
        if tile_id is NO_MOVE:
            tile_id = fallback_move(self.locks)
            if tile_id is NO_MOVE:
                return NO_MOVE
            # Every tile is locked: release the stalest one early
            self.locks.release(tile_id)
            log_with_time(f"CPU had no legal move; releasing tile {tile_id}", color=Fore.YELLOW)
        return tile_id

    def computer_move(self):
        """Decide and apply the computer's move on the calling thread."""
        if self.outcome() is not None or self.human_to_move:
            return NO_MOVE
        tile_id = self.selector.get_best_move(self.state.snapshot(), self.locks.copy())
        tile_id = self._resolve_computer_tile(tile_id)
        if tile_id is not NO_MOVE:
            self._apply_turn(tile_id, COMPUTER)
        return tile_id

    def dispatch_computer_move(self, executor, delay=0.0):
        """Start the computer's decision on ``executor``; returns ``(round_id, future)``."""
        snapshot = self.state.snapshot()
        locks = self.locks.copy()
        selector = self.selector
        self.pending = True

        def think():
            if delay:
                time.sleep(delay)
            return selector.get_best_move(snapshot, locks)

        return self.round_id, executor.submit(think)

    def complete_computer_move(self, round_id, tile_id):
        """Apply a dispatched decision; stale or late results are dropped."""
        if round_id != self.round_id:
            vlog(f"Discarding CPU move {tile_id} from game #{round_id} (now #{self.round_id})")
            return False
        self.pending = False
        if self.outcome() is not None or self.human_to_move:
            return False
        tile_id = self._resolve_computer_tile(tile_id)
        if tile_id is NO_MOVE:
            return False
        self._apply_turn(tile_id, COMPUTER)
        return True

    def hint(self):
        return self.selector.get_hint(self.state.snapshot(), self.locks.copy())

    # ---- scoring ----
    def scores(self):
        yellow, grey = self.state.counts()
        return {
            "yellow": yellow,
            "grey": grey,
            "human_eval": self.selector.evaluate(self.state, HUMAN, self.locks),
            "computer_eval": self.selector.evaluate(self.state, COMPUTER, self.locks),
        }

    def outcome(self):
        yellow, grey = self.state.counts()
        if yellow == self.state.tile_count:
            return GameOutcome(HUMAN, "perfect", yellow, grey)
        if grey == self.state.tile_count:
            return GameOutcome(COMPUTER, "perfect", yellow, grey)
        if self.rounds_played >= self.config.max_rounds:
            if yellow > grey:
                winner = HUMAN
            elif grey > yellow:
                winner = COMPUTER
            else:
                winner = None
            return GameOutcome(winner, "rounds", yellow, grey)
        return None
