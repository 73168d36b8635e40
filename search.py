import random
import time

from colorama import Fore
from utils import vlog, HUMAN, COMPUTER, TieBreak, side_name
from board import simulate
from heuristics import Evaluator, HeuristicMap, count_owned

# Returned when every tile is excluded by the lock policy
NO_MOVE = None


class MoveSelector:
    """Chooses the tile to activate for either side.

    Scores every legal tile on a simulated copy of the board. Depending on the
    config it also looks one reply ahead, penalises moves that hand the
    opponent a big swing, and occasionally blunders on purpose.
    """

    def __init__(self, adjacency, config, heuristic_map=None, rng=None):
        self.adjacency = adjacency
        self.config = config
        self.policy = config.lock_policy
        self.heuristic_map = heuristic_map or HeuristicMap.from_config(config)
        self.evaluator = Evaluator(self.heuristic_map, self.policy, config.locked_value_multiplier)
        self.rng = rng or random.Random()

    # ---- building blocks ----
    def candidates(self, locks=None):
        tiles = range(self.adjacency.tile_count)
        if locks is None:
            return list(tiles)
        return [t for t in tiles if not locks.blocks_move(t, self.policy)]

    def evaluate(self, state, perspective, locks=None):
        return self.evaluator.evaluate(state, perspective, locks)

    def simulate(self, state, tile_id, locks=None):
        return simulate(state, tile_id, self.adjacency, locks, self.policy)

    def best_greedy_move(self, state, perspective, locks=None):
        """One-ply best tile for ``perspective``; ties go to the lowest index."""
        best_tile = NO_MOVE
        best_score = float("-inf")
        for t in self.candidates(locks):
            sc = self.evaluate(self.simulate(state, t, locks), perspective, locks)
            if sc > best_score:
                best_score = sc
                best_tile = t
        return best_tile

    def predict_best_reply(self, state, perspective, locks=None):
        """The opponent's greedy answer after ``perspective`` has moved."""
        return self.best_greedy_move(state, not perspective, locks)

    def opponent_gain(self, state, perspective, locks=None):
        """Largest number of tiles the opponent of ``perspective`` can win next move."""
        opponent = not perspective
        before = count_owned(state, opponent)
        best = 0
        for t in self.candidates(locks):
            gain = count_owned(self.simulate(state, t, locks), opponent) - before
            if gain > best:
                best = gain
        return best

    def score_move(self, state, tile_id, perspective, locks=None):
        after = self.simulate(state, tile_id, locks)
        if self.config.lookahead_plies < 2 and not self.config.trap_detection:
            return self.evaluate(after, perspective, locks)

        next_locks = locks.with_recorded(tile_id) if locks is not None else None
        if self.config.lookahead_plies >= 2:
            reply = self.predict_best_reply(after, perspective, next_locks)
            if reply is not NO_MOVE:
                after_reply = self.simulate(after, reply, next_locks)
                score = self.evaluate(after_reply, perspective, next_locks)
            else:
                score = self.evaluate(after, perspective, next_locks)
        else:
            score = self.evaluate(after, perspective, locks)

        if self.config.trap_detection:
            gain = self.opponent_gain(after, perspective, next_locks)
            if gain >= self.config.trap_threshold:
                score -= self.config.trap_penalty
        return score

    def rank_candidates(self, state, perspective, locks=None):
        """All legal moves as ``(score, tile)``, best first, ties by tile index."""
        scored = [(self.score_move(state, t, perspective, locks), t) for t in self.candidates(locks)]
        scored.sort(key=lambda x: (-x[0], x[1]))
        return scored

    # ---- decision ----
    def select(self, state, perspective, locks=None, allow_blunder=False):
        t0 = time.time()
        cands = self.candidates(locks)
        if not cands:
            vlog(f"{side_name(perspective)}: no legal move, every tile is locked")
            return NO_MOVE

        if allow_blunder and self.rng.random() < self.config.blunder_probability:
            tile = self.rng.choice(cands)
            vlog(f"{side_name(perspective)} blunders onto tile {tile}", t0)
            return tile

        best_score = float("-inf")
        ties = []
        for t in cands:
            sc = self.score_move(state, t, perspective, locks)
            if sc > best_score:
                best_score = sc
                ties = [t]
            elif sc == best_score:
                ties.append(t)

        if len(ties) == 1 or self.config.tie_break == TieBreak.INDEX:
            tile = ties[0]
        else:
            tile = self.rng.choice(ties)
        vlog(
            f"{side_name(perspective)}: scanned {len(cands)} tiles, best {best_score:+.1f} "
            f"({len(ties)} tied) -> tile {tile}",
            t0,
        )
        return tile

    def get_best_move(self, snapshot, locks=None):
        return self.select(snapshot, COMPUTER, locks, allow_blunder=True)

    def get_hint(self, snapshot, locks=None):
        return self.select(snapshot, HUMAN, locks, allow_blunder=False)


def fallback_move(locks):
    """Least-recently-locked tile, for when the selector has nothing legal."""
    if locks is None:
        return NO_MOVE
    return locks.oldest()


def format_ranking(ranking, limit=5):
    parts = []
    for sc, t in ranking[:limit]:
        color = Fore.GREEN if sc >= 0 else Fore.RED
        parts.append(f"{t}:{color}{sc:+.1f}{Fore.RESET}")
    return "  ".join(parts)
