# src/siegetd/core/rules/tower_attack.py
from __future__ import annotations

from typing import Iterable

from ..model.catalog import get_tower_kind
from ..model.entities import Enemy, Projectile, Tower


def step_towers(state, map_data) -> list[Projectile]:
    """
    Tick tour -> cible -> tir. Returns the projectiles launched this tick.
    """
    if getattr(state, "game_over", False):
        return []

    registry = state.registry
    towers = list(registry.towers.values())
    if not towers:
        return []

    launched: list[Projectile] = []
    enemies = registry.enemies
    for tower in towers:
        if not tower_ready(tower, state.now_ms):
            continue
        if not enemies:
            continue
        target = select_target(tower, enemies.values(), map_data)
        if target is None:
            continue
        launched.append(_fire_tower(state, map_data, tower, target))
    return launched


def tower_ready(tower: Tower, now_ms: float) -> bool:
    if tower.last_fired_ms is None:
        return True
    level = get_tower_kind(tower.kind).level(tower.level)
    return now_ms - tower.last_fired_ms >= level.fire_interval_ms


def tower_center(tower: Tower, map_data) -> tuple[float, float]:
    return map_data.cell_center(tower.cell_x, tower.cell_y)


def select_target(tower: Tower, enemies: Iterable[Enemy], map_data) -> Enemy | None:
    """
    Furthest enemy along the route within range. Strict comparison keeps the
    first enemy seen on ties, i.e. the lowest identifier.
    """
    level = get_tower_kind(tower.kind).level(tower.level)
    tx, ty = tower_center(tower, map_data)
    range_sq = float(level.range) ** 2

    best_score = -1.0
    chosen: Enemy | None = None
    for enemy in enemies:
        if _distance_sq(tx, ty, enemy.x, enemy.y) > range_sq:
            continue
        score = enemy.route_score
        if score > best_score:
            best_score = score
            chosen = enemy
    return chosen


def _fire_tower(state, map_data, tower: Tower, target: Enemy) -> Projectile:
    tower_kind = get_tower_kind(tower.kind)
    level = tower_kind.level(tower.level)
    origin_x, origin_y = tower_center(tower, map_data)

    tower.last_fired_ms = state.now_ms
    registry = state.registry
    projectile = Projectile(
        id=registry.issue_id(),
        x=float(origin_x),
        y=float(origin_y),
        target_id=target.id,
        tower_id=tower.id,
        kind=tower_kind.kind,
        damage=float(level.damage),
        effect=tower_kind.effect,
        special=level.special,
        speed=float(state.config.projectile_speed),
    )
    return registry.add_projectile(projectile)


def _distance_sq(ax: float, ay: float, bx: float, by: float) -> float:
    dx = ax - bx
    dy = ay - by
    return dx * dx + dy * dy
