import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest

from config import DIFFICULTY_PRESETS, EngineConfig, config_for
from utils import LockPolicy


def test_presets():
    easy, hard, expert = (config_for(d) for d in ("easy", "hard", "expert"))
    assert easy.lock_policy == LockPolicy.EXCLUSION
    assert easy.effective_lock_capacity == 8
    assert easy.blunder_probability == 0.5
    assert hard.lock_policy == LockPolicy.IMMUNITY
    assert hard.effective_lock_capacity == 4
    assert hard.lookahead_plies == 1
    assert expert.blunder_probability == 0.0
    assert expert.lookahead_plies == 2
    assert expert.trap_detection
    assert set(DIFFICULTY_PRESETS) == {"easy", "hard", "expert"}


def test_overrides_ignore_none():
    config = config_for("hard", grid_size=6, blunder_probability=None)
    assert config.grid_size == 6
    assert config.tile_count == 36
    assert config.effective_lock_capacity == 9
    assert config.blunder_probability == 0.15


def test_unknown_difficulty():
    with pytest.raises(ValueError):
        config_for("impossible")


@pytest.mark.parametrize(
    "field,value",
    [
        ("grid_size", 7),
        ("blunder_probability", 1.5),
        ("blunder_probability", -0.1),
        ("lookahead_plies", 3),
        ("lock_capacity", 0),
        ("max_rounds", 0),
        ("scramble_moves", (5, 2)),
    ],
)
def test_validate_rejects_bad_values(field, value):
    with pytest.raises(ValueError):
        EngineConfig(**{field: value}).validate()


def test_config_is_frozen():
    config = EngineConfig()
    with pytest.raises(Exception):
        config.grid_size = 5
