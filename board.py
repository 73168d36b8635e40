import random
from dataclasses import dataclass
from typing import List, Tuple

from colorama import Fore, Back, Style
from utils import PRINT_LOCK, LockPolicy, Pattern

ORTHOGONAL_OFFSETS = ((-1, 0), (1, 0), (0, -1), (0, 1))
DIAGONAL_OFFSETS = ((-1, -1), (-1, 1), (1, -1), (1, 1))


class InvalidTileIndex(IndexError):
    pass


class LockedTileError(ValueError):
    pass


def validate_tile(tile_id, grid_size):
    if not isinstance(tile_id, int) or isinstance(tile_id, bool) or not 0 <= tile_id < grid_size * grid_size:
        raise InvalidTileIndex(f"tile {tile_id!r} outside [0, {grid_size * grid_size})")
    return tile_id


def row_col(tile_id, grid_size):
    return divmod(tile_id, grid_size)


class AdjacencyModel:
    """Which tiles toggle when a tile is activated.

    Built once per board and never mutated. With ``Pattern.MIXED`` each tile
    draws its own pattern from ``rng`` at construction time.
    """

    def __init__(self, grid_size, pattern=Pattern.ORTHOGONAL, rng=None):
        if grid_size < 2:
            raise ValueError(f"grid size must be >= 2, got {grid_size}")
        self.grid_size = grid_size
        self.pattern = pattern
        self.tile_count = grid_size * grid_size
        rng = rng or random.Random()
        tile_patterns = []
        neighbors = []
        for tile_id in range(self.tile_count):
            tile_pattern = pattern
            if pattern == Pattern.MIXED:
                tile_pattern = rng.choice((Pattern.ORTHOGONAL, Pattern.DIAGONAL))
            tile_patterns.append(tile_pattern)
            neighbors.append(self._build(tile_id, tile_pattern))
        self._tile_patterns = tuple(tile_patterns)
        self._neighbors = tuple(neighbors)

    def _build(self, tile_id, tile_pattern):
        n = self.grid_size
        r, c = row_col(tile_id, n)
        offsets = ORTHOGONAL_OFFSETS if tile_pattern == Pattern.ORTHOGONAL else DIAGONAL_OFFSETS
        out = [tile_id]
        for dr, dc in offsets:
            nr, nc = r + dr, c + dc
            if 0 <= nr < n and 0 <= nc < n:
                out.append(nr * n + nc)
        return tuple(out)

    def neighbors(self, tile_id):
        validate_tile(tile_id, self.grid_size)
        return self._neighbors[tile_id]

    def tile_pattern(self, tile_id):
        validate_tile(tile_id, self.grid_size)
        return self._tile_patterns[tile_id]

    def __len__(self):
        return self.tile_count


def new_board(grid_size, pattern=Pattern.ORTHOGONAL, rng=None):
    return AdjacencyModel(grid_size, pattern, rng)


@dataclass
class BoardState:
    owners: List[bool]
    turns_played: int = 0
    round_id: int = 0

    @classmethod
    def new(cls, grid_size, round_id=0):
        return cls([False] * (grid_size * grid_size), 0, round_id)

    @property
    def tile_count(self):
        return len(self.owners)

    def snapshot(self):
        return BoardState(list(self.owners), self.turns_played, self.round_id)

    def counts(self) -> Tuple[int, int]:
        yellow = sum(1 for owner in self.owners if owner)
        return yellow, len(self.owners) - yellow

    def is_uniform(self):
        return all(self.owners) or not any(self.owners)

    def as_tuple(self):
        return tuple(self.owners)


def apply_move(state, tile_id, adjacency, locks=None, policy=LockPolicy.NONE):
    """Toggle every tile in the neighbourhood of ``tile_id`` in place.

    Under ``LockPolicy.IMMUNITY`` locked neighbours keep their owner.
    """
    validate_tile(tile_id, adjacency.grid_size)
    if len(state.owners) != adjacency.tile_count:
        raise ValueError(f"board has {len(state.owners)} tiles, adjacency expects {adjacency.tile_count}")
    if locks is not None and locks.blocks_move(tile_id, policy):
        raise LockedTileError(f"tile {tile_id} is locked for {locks.countdown(tile_id)} more move(s)")
    owners = state.owners
    for n in adjacency.neighbors(tile_id):
        if locks is not None and locks.blocks_flip(n, policy):
            continue
        owners[n] = not owners[n]
    return state


def simulate(state, tile_id, adjacency, locks=None, policy=LockPolicy.NONE):
    return apply_move(state.snapshot(), tile_id, adjacency, locks, policy)


def print_board(state, grid_size, locks=None, hint=None, last_move=None):
    """Thread-safe printing of a board with lock countdowns and markers."""
    with PRINT_LOCK:
        lines = []
        for r in range(grid_size):
            line = []
            for c in range(grid_size):
                tile_id = r * grid_size + c
                owner = state.owners[tile_id]
                color = Back.YELLOW + Fore.BLACK if owner else Back.WHITE + Fore.BLACK
                countdown = locks.countdown(tile_id) if locks is not None else 0
                label = f"{tile_id:>2}"
                if countdown:
                    label = f"L{countdown}" if countdown < 10 else "L+"
                    color += Style.DIM
                marker = " "
                if tile_id == hint:
                    marker = Fore.GREEN + "*"
                elif tile_id == last_move:
                    marker = Fore.RED + "<"
                line.append(color + f" {label} " + Style.RESET_ALL + marker + Style.RESET_ALL)
            lines.append(" ".join(line))
        print("\n".join(lines), flush=True)
        print(flush=True)
