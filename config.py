from dataclasses import dataclass, replace
from typing import Optional, Tuple

from utils import (
    CORNER_VALUE,
    EDGE_VALUE,
    INTERIOR_VALUE,
    MAX_ROUNDS,
    N,
    SUPPORTED_GRID_SIZES,
    TRAP_VALUE,
    LockPolicy,
    Pattern,
    TieBreak,
)
from tabu import default_capacity


@dataclass(frozen=True)
class EngineConfig:
    grid_size: int = N
    pattern: Pattern = Pattern.ORTHOGONAL
    lock_policy: LockPolicy = LockPolicy.EXCLUSION
    lock_capacity: Optional[int] = None  # None = derived from grid size
    blunder_probability: float = 0.15
    lookahead_plies: int = 1
    trap_detection: bool = False
    trap_threshold: int = 3
    trap_penalty: float = 10.0
    tie_break: TieBreak = TieBreak.RANDOM
    locked_value_multiplier: float = 1.5
    corner_value: float = CORNER_VALUE
    edge_value: float = EDGE_VALUE
    trap_value: float = TRAP_VALUE
    interior_value: float = INTERIOR_VALUE
    base_value: float = 0.0
    max_rounds: int = MAX_ROUNDS
    scramble_moves: Tuple[int, int] = (4, 6)

    @property
    def tile_count(self):
        return self.grid_size * self.grid_size

    @property
    def effective_lock_capacity(self):
        if self.lock_capacity is None:
            return default_capacity(self.grid_size)
        return self.lock_capacity

    def validate(self):
        if self.grid_size not in SUPPORTED_GRID_SIZES:
            raise ValueError(f"grid size must be one of {SUPPORTED_GRID_SIZES}, got {self.grid_size}")
        if not 0.0 <= self.blunder_probability <= 1.0:
            raise ValueError(f"blunder probability must be in [0, 1], got {self.blunder_probability}")
        if self.lookahead_plies not in (1, 2):
            raise ValueError(f"lookahead plies must be 1 or 2, got {self.lookahead_plies}")
        if self.lock_capacity is not None and self.lock_capacity < 1:
            raise ValueError(f"lock capacity must be >= 1, got {self.lock_capacity}")
        if self.max_rounds < 1:
            raise ValueError(f"max rounds must be >= 1, got {self.max_rounds}")
        lo, hi = self.scramble_moves
        if lo < 0 or hi < lo:
            raise ValueError(f"invalid scramble range {self.scramble_moves}")
        return self

    def with_overrides(self, **overrides):
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **overrides).validate()


DIFFICULTY_PRESETS = {
    "easy": EngineConfig(
        lock_policy=LockPolicy.EXCLUSION,
        lock_capacity=8,
        blunder_probability=0.50,
    ),
    "hard": EngineConfig(
        lock_policy=LockPolicy.IMMUNITY,
        blunder_probability=0.15,
    ),
    "expert": EngineConfig(
        lock_policy=LockPolicy.IMMUNITY,
        blunder_probability=0.0,
        lookahead_plies=2,
        trap_detection=True,
    ),
}


def config_for(difficulty="hard", **overrides):
    """Preset for ``difficulty`` with any non-None ``overrides`` applied."""
    try:
        base = DIFFICULTY_PRESETS[difficulty]
    except KeyError:
        raise ValueError(f"unknown difficulty {difficulty!r}; choose from {sorted(DIFFICULTY_PRESETS)}") from None
    return base.with_overrides(**overrides)
