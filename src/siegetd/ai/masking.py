from __future__ import annotations

import numpy as np

from siegetd.core.rules.placement import placement_error, upgrade_error

from .actions import ActionSpaceSpec


def _can_start_wave(state) -> bool:
    if getattr(state, "game_over", False):
        return False
    return not getattr(state, "wave_in_progress", False)


def compute_action_mask(engine, spec: ActionSpaceSpec) -> list[bool]:
    """An action is unmasked when the matching engine command would be accepted."""
    state = engine.state
    map_data = engine.map
    mask = np.zeros(spec.num_actions, dtype=bool)
    mask[spec.offsets.noop] = True

    if getattr(state, "game_over", False):
        return mask.tolist()

    if _can_start_wave(state):
        mask[spec.offsets.start_wave] = True

    cell_count = len(spec.cell_positions)
    for tower_type, kind in enumerate(spec.tower_kinds):
        base = spec.offsets.place + tower_type * cell_count
        for cell_idx, (cell_x, cell_y) in enumerate(spec.cell_positions):
            if placement_error(state, map_data, cell_x, cell_y, kind) is None:
                mask[base + cell_idx] = True

    registry = state.registry
    for tower in registry.towers.values():
        cell_idx = spec.cell_index.get((tower.cell_x, tower.cell_y))
        if cell_idx is None:
            continue
        if upgrade_error(state, tower.cell_x, tower.cell_y) is None:
            mask[spec.offsets.upgrade + cell_idx] = True
        mask[spec.offsets.sell + cell_idx] = True

    mask[spec.offsets.set_speed: spec.offsets.set_speed + spec.set_speed_count] = True
    return mask.tolist()
