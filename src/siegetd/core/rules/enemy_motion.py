# src/siegetd/core/rules/enemy_motion.py
from __future__ import annotations

import math

from ..model.catalog import get_enemy_kind
from ..model.entities import Enemy
from .economy import leak_enemy


def effective_speed(enemy: Enemy, now_ms: float, slow_factor: float) -> float:
    enemy_kind = get_enemy_kind(enemy.kind)
    if enemy.slow_until_ms > now_ms and enemy_kind.ability != "immune_to_slow":
        return enemy_kind.base_speed * slow_factor
    return enemy_kind.base_speed


def step_enemies(state, map_data, dt_ms: float) -> None:
    """
    Avance chaque ennemi sur la route partagée.

    - progress += vitesse * dt / longueur du segment ; à 1 : progress = 0, segment++
    - dernier waypoint atteint : retrait sans récompense, lives-- ;
      à 0 vie la partie s'arrête immédiatement (plus rien ce tick)
    - position = interpolation linéaire entre les extrémités du segment
    """
    if getattr(state, "game_over", False):
        return

    enemies = list(state.registry.enemies.values())
    if not enemies:
        return

    dt_s = dt_ms / 1000.0
    slow_factor = state.config.slow_factor
    last_segment = map_data.last_segment

    for enemy in enemies:
        speed = effective_speed(enemy, state.now_ms, slow_factor)
        enemy.progress += (speed * dt_s) / map_data.segment_lengths[enemy.segment]
        if enemy.progress >= 1.0:
            enemy.progress = 0.0
            enemy.segment += 1

        if enemy.segment >= last_segment:
            enemy.x, enemy.y = map_data.route[last_segment]
            leak_enemy(state, enemy)
            if state.game_over:
                return
            continue

        enemy.x, enemy.y = map_data.point_on_route(enemy.segment, enemy.progress)

    _heal_nearby(state, dt_ms)


def _heal_nearby(state, dt_ms: float) -> None:
    """
    Soigneurs : chaque autre ennemi vivant à moins de heal_radius et blessé
    regagne heal_per_ms * dt, plafonné à max_health.
    """
    enemies = state.registry.enemies
    healers = [e for e in enemies.values() if get_enemy_kind(e.kind).ability == "heals_nearby"]
    if not healers:
        return

    radius = state.config.heal_radius
    amount = state.config.heal_per_ms * dt_ms
    for healer in healers:
        for other in enemies.values():
            if other.id == healer.id:
                continue
            if other.health >= other.max_health:
                continue
            if math.hypot(other.x - healer.x, other.y - healer.y) < radius:
                other.health = min(other.max_health, other.health + amount)
