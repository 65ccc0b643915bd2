from __future__ import annotations

import math

from ..model.entities import Enemy
from .waves import generate_wave


def combo_bonus(reward: int, combo: int, bonus_pct: float) -> int:
    if combo <= 1:
        return 0
    return int(math.floor(round(reward * (combo - 1) * bonus_pct, 9)))


def kill_enemy(state, enemy: Enemy, *, tower_id: int | None = None) -> int:
    """
    Remove a depleted enemy and pay for it. Returns the money granted, 0 when
    the enemy was already gone.
    """
    registry = state.registry
    if registry.remove_enemy(enemy.id) is None:
        return 0

    state.total_kills += 1
    state.combo += 1
    state.last_kill_ms = state.now_ms

    reward = int(enemy.reward)
    granted = reward + combo_bonus(reward, state.combo, state.config.combo_bonus)
    state.money += granted

    if tower_id is not None:
        tower = registry.get_tower(tower_id)
        if tower is not None:
            tower.kills += 1
    return granted


def leak_enemy(state, enemy: Enemy) -> None:
    """Enemy left the route: no reward, one life lost."""
    if state.registry.remove_enemy(enemy.id) is None:
        return
    state.lives -= 1
    if state.lives <= 0:
        state.lives = 0
        state.game_over = True


def step_combo(state) -> None:
    if state.combo <= 0:
        return
    if state.now_ms - state.last_kill_ms > state.config.combo_window_ms:
        state.combo = 0


def check_wave_complete(state) -> int | None:
    """
    Close the running wave once nothing is left to spawn or kill.
    Returns the completion bonus on the transition, None otherwise.
    """
    if getattr(state, "game_over", False):
        return None
    if not state.wave_in_progress:
        return None
    if state.spawn_queue or state.registry.enemies:
        return None

    state.wave_in_progress = False
    state.waves_completed += 1
    bonus = generate_wave(state.wave).bonus
    state.money += bonus
    return bonus
