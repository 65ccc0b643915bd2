from __future__ import annotations

import math

from ..model.catalog import get_enemy_kind
from ..model.entities import Enemy, Projectile
from .economy import kill_enemy


def step_projectiles(state, dt_ms: float) -> None:
    """
    Move every projectile toward its target and resolve hits.

    A projectile whose target is gone is dropped without effect; a projectile
    that hits is always dropped after its effect resolves.
    """
    if getattr(state, "game_over", False):
        return

    registry = state.registry
    projectiles = list(registry.projectiles.values())
    if not projectiles:
        return

    hit_radius = state.config.hit_radius
    dt_s = dt_ms / 1000.0
    for projectile in projectiles:
        target = registry.get_enemy(projectile.target_id)
        if target is None:
            registry.remove_projectile(projectile.id)
            continue

        dx = target.x - projectile.x
        dy = target.y - projectile.y
        dist = math.hypot(dx, dy)
        if dist < hit_radius:
            resolve_hit(state, projectile, target)
            registry.remove_projectile(projectile.id)
            continue

        step = min(dist, projectile.speed * dt_s)
        projectile.x += (dx / dist) * step
        projectile.y += (dy / dist) * step


def resolve_hit(state, projectile: Projectile, target: Enemy) -> None:
    damage = float(projectile.damage)
    config = state.config

    match projectile.effect:
        case "single":
            _apply_damage(state, projectile, target, damage)
        case "splash":
            _apply_damage(state, projectile, target, damage)
            _splash(state, projectile, target, damage * config.splash_falloff)
        case "slow":
            _apply_damage(state, projectile, target, damage)
            if get_enemy_kind(target.kind).ability != "immune_to_slow":
                target.slow_until_ms = state.now_ms + config.slow_duration_ms
        case "chain":
            _apply_damage(state, projectile, target, damage)
            _chain(state, projectile, target, damage * config.chain_falloff)
        case "dot":
            # No damage-over-time rule exists yet; the hit has no effect.
            pass
        case _:
            raise ValueError(f"Unknown effect kind {projectile.effect!r}")


def _apply_damage(state, projectile: Projectile, enemy: Enemy, amount: float) -> None:
    enemy.health -= amount
    if enemy.health > 0:
        return
    kill_enemy(state, enemy, tower_id=projectile.tower_id)


def _splash(state, projectile: Projectile, target: Enemy, amount: float) -> None:
    radius = float(projectile.special or 0.0)
    if radius <= 0.0:
        return
    for enemy in list(state.registry.enemies.values()):
        if enemy.id == target.id:
            continue
        if math.hypot(enemy.x - target.x, enemy.y - target.y) < radius:
            _apply_damage(state, projectile, enemy, amount)


def _chain(state, projectile: Projectile, target: Enemy, amount: float) -> None:
    """
    Jump special - 1 times, each time to the nearest enemy not hit yet that is
    strictly within chain_radius of the last enemy hit.
    """
    jumps = int(projectile.special or 0) - 1
    radius = state.config.chain_radius
    hit: set[int] = {target.id}
    last = target
    while jumps > 0:
        closest: Enemy | None = None
        closest_dist = radius
        for enemy in state.registry.enemies.values():
            if enemy.id in hit:
                continue
            dist = math.hypot(enemy.x - last.x, enemy.y - last.y)
            if dist < closest_dist:
                closest_dist = dist
                closest = enemy
        if closest is None:
            break
        hit.add(closest.id)
        _apply_damage(state, projectile, closest, amount)
        last = closest
        jumps -= 1
