from collections import deque

from utils import N, LockPolicy
from board import validate_tile


def default_capacity(grid_size):
    """Lock memory size derived from the board: a quarter of the tiles, at least 2."""
    return max(2, (grid_size * grid_size) // 4)


class LockMemory:
    """Sliding-window tabu list of recently activated tiles.

    The queue holds each tile at most once, oldest at the head. A tile is
    locked while it is in the queue; recording a tile that is already
    present moves it to the tail.
    """

    def __init__(self, capacity, grid_size=N):
        if capacity < 1:
            raise ValueError(f"lock capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.grid_size = grid_size
        self._queue = deque()

    def record(self, tile_id):
        validate_tile(tile_id, self.grid_size)
        try:
            self._queue.remove(tile_id)
        except ValueError:
            pass
        self._queue.append(tile_id)
        if len(self._queue) > self.capacity:
            self._queue.popleft()

    def is_locked(self, tile_id):
        validate_tile(tile_id, self.grid_size)
        return tile_id in self._queue

    def countdown(self, tile_id):
        """Moves remaining until ``tile_id`` is eligible again (0 if unlocked).

        Counts the distinct records still needed to push the tile off the
        head. With a full queue this is the 1-based position from the head.
        """
        validate_tile(tile_id, self.grid_size)
        try:
            index = self._queue.index(tile_id)
        except ValueError:
            return 0
        return self.capacity - (len(self._queue) - 1 - index)

    def release(self, tile_id):
        validate_tile(tile_id, self.grid_size)
        try:
            self._queue.remove(tile_id)
        except ValueError:
            return False
        return True

    def clear(self):
        self._queue.clear()

    def locked_tiles(self):
        return tuple(self._queue)

    def oldest(self):
        return self._queue[0] if self._queue else None

    def copy(self):
        other = LockMemory(self.capacity, self.grid_size)
        other._queue = deque(self._queue)
        return other

    def with_recorded(self, tile_id):
        other = self.copy()
        other.record(tile_id)
        return other

    def blocks_move(self, tile_id, policy):
        return policy != LockPolicy.NONE and self.is_locked(tile_id)

    def blocks_flip(self, tile_id, policy):
        return policy == LockPolicy.IMMUNITY and self.is_locked(tile_id)

    def __len__(self):
        return len(self._queue)

    def __repr__(self):
        return f"LockMemory(capacity={self.capacity}, grid_size={self.grid_size}, queue={list(self._queue)})"
