from utils import CORNER_VALUE, EDGE_VALUE, INTERIOR_VALUE, TRAP_VALUE, LockPolicy
from board import row_col, validate_tile
from score_cache import cached_evaluation


def classify_tile(tile_id, grid_size):
    """Return 'corner', 'edge', 'trap' or 'interior' for a tile position."""
    r, c = row_col(tile_id, grid_size)
    last = grid_size - 1
    on_row_edge = r in (0, last)
    on_col_edge = c in (0, last)
    if on_row_edge and on_col_edge:
        return "corner"
    if on_row_edge or on_col_edge:
        return "edge"
    # Within one ring of a corner: activating these tends to hand the corner over
    if (r <= 1 or r >= grid_size - 2) and (c <= 1 or c >= grid_size - 2):
        return "trap"
    return "interior"


class HeuristicMap:
    """Static strategic value of every tile, fixed for the whole game."""

    def __init__(
        self,
        grid_size,
        corner_value=CORNER_VALUE,
        edge_value=EDGE_VALUE,
        trap_value=TRAP_VALUE,
        interior_value=INTERIOR_VALUE,
        base_value=0.0,
    ):
        self.grid_size = grid_size
        weights = {
            "corner": corner_value,
            "edge": edge_value,
            "trap": trap_value,
            "interior": interior_value,
        }
        self._values = tuple(
            base_value + weights[classify_tile(i, grid_size)] for i in range(grid_size * grid_size)
        )
        self.signature = (grid_size, corner_value, edge_value, trap_value, interior_value, base_value)

    @classmethod
    def from_config(cls, config):
        return cls(
            config.grid_size,
            corner_value=config.corner_value,
            edge_value=config.edge_value,
            trap_value=config.trap_value,
            interior_value=config.interior_value,
            base_value=config.base_value,
        )

    def value(self, tile_id):
        validate_tile(tile_id, self.grid_size)
        return self._values[tile_id]

    def values(self):
        return self._values

    def total(self):
        return sum(self._values)


class Evaluator:
    """Zero-sum positional score of a board from one side's point of view."""

    def __init__(self, heuristic_map, policy=LockPolicy.NONE, locked_value_multiplier=1.5):
        self.heuristic_map = heuristic_map
        self.policy = policy
        self.locked_value_multiplier = locked_value_multiplier
        self.signature = heuristic_map.signature + (policy.value, locked_value_multiplier)

    def _weighted_values(self, locked):
        values = self.heuristic_map.values()
        if self.policy != LockPolicy.IMMUNITY or not locked:
            return values
        boosted = list(values)
        for tile_id in locked:
            boosted[tile_id] *= self.locked_value_multiplier
        return boosted

    def compute(self, owners, locked, perspective):
        yellow = 0.0
        grey = 0.0
        for owner, value in zip(owners, self._weighted_values(locked)):
            if owner:
                yellow += value
            else:
                grey += value
        return yellow - grey if perspective else grey - yellow

    def evaluate(self, state, perspective, locks=None):
        # Lock weighting only changes the score under immunity
        locked = ()
        if locks is not None and self.policy == LockPolicy.IMMUNITY:
            locked = tuple(sorted(locks.locked_tiles()))
        return cached_evaluation(self, state.as_tuple(), locked, bool(perspective))


def count_owned(state, perspective):
    return sum(1 for owner in state.owners if owner == bool(perspective))
