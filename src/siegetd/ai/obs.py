from __future__ import annotations

import math

import numpy as np

from siegetd.core.model.catalog import get_tower_kind
from siegetd.core.rules.waves import generate_wave

from .actions import ActionSpaceSpec


MAX_WAVES = 50
MONEY_SCALE = 10_000.0
COMBO_SCALE = 20.0
ENEMY_SCALE = 50.0
SEGMENT_ENEMY_SCALE = 10.0

SCALAR_KEYS = (
    "money_norm",
    "lives_norm",
    "wave_norm",
    "combo_norm",
    "speed_norm",
    "wave_in_progress",
    "pending_spawns_norm",
    "enemy_count_norm",
    "tower_count_norm",
    "next_wave_enemies_norm",
)
CELL_FEATURES = ("occupied", "level_norm", "kind_norm")


def _log_norm(value: int | float, scale: float) -> float:
    if scale <= 0:
        return 0.0
    return min(1.0, math.log1p(max(0.0, float(value))) / math.log1p(scale))


def observation_size(spec: ActionSpaceSpec, map_data) -> int:
    return len(SCALAR_KEYS) + len(spec.cell_positions) * len(CELL_FEATURES) + map_data.last_segment


def scalar_features(engine, spec: ActionSpaceSpec) -> dict[str, float]:
    state = engine.state
    config = engine.config
    cell_count = max(1, len(spec.cell_positions))
    max_speed = max(config.speeds) if config.speeds else 1.0
    next_wave = generate_wave(state.wave + 1)
    return {
        "money_norm": _log_norm(state.money, MONEY_SCALE),
        "lives_norm": min(1.0, float(state.lives) / max(1, config.starting_lives)),
        "wave_norm": min(1.0, float(state.wave) / MAX_WAVES),
        "combo_norm": min(1.0, float(state.combo) / COMBO_SCALE),
        "speed_norm": float(state.speed) / max_speed,
        "wave_in_progress": 1.0 if state.wave_in_progress else 0.0,
        "pending_spawns_norm": min(1.0, len(state.spawn_queue) / ENEMY_SCALE),
        "enemy_count_norm": min(1.0, len(state.registry.enemies) / ENEMY_SCALE),
        "tower_count_norm": min(1.0, len(state.registry.towers) / cell_count),
        "next_wave_enemies_norm": min(1.0, next_wave.enemy_count / ENEMY_SCALE),
    }


def build_observation(engine, spec: ActionSpaceSpec) -> np.ndarray:
    """
    Flat float32 vector: scalars, then one block per buildable cell, then
    the enemy count on each route segment.
    """
    state = engine.state
    map_data = engine.map
    scalars = scalar_features(engine, spec)

    kind_to_idx = {kind: idx for idx, kind in enumerate(spec.tower_kinds)}
    kind_scale = max(1, len(spec.tower_kinds) - 1)
    cells = np.zeros((len(spec.cell_positions), len(CELL_FEATURES)), dtype=np.float32)
    for tower in state.registry.towers.values():
        cell_idx = spec.cell_index.get((tower.cell_x, tower.cell_y))
        if cell_idx is None:
            continue
        max_level = max(1, get_tower_kind(tower.kind).max_level)
        cells[cell_idx, 0] = 1.0
        cells[cell_idx, 1] = tower.level / max_level
        cells[cell_idx, 2] = kind_to_idx.get(tower.kind, 0) / kind_scale

    segments = np.zeros(map_data.last_segment, dtype=np.float32)
    for enemy in state.registry.enemies.values():
        if 0 <= enemy.segment < map_data.last_segment:
            segments[enemy.segment] += 1.0
    segments = np.minimum(segments / SEGMENT_ENEMY_SCALE, 1.0)

    return np.concatenate(
        [
            np.asarray([scalars[key] for key in SCALAR_KEYS], dtype=np.float32),
            cells.reshape(-1),
            segments,
        ]
    ).astype(np.float32)
