# src/siegetd/core/rules/wave_spawner.py
from __future__ import annotations

from ..model.catalog import get_enemy_kind
from ..model.entities import Enemy, SpawnEntry
from ..model.results import CommandResult, accepted, rejected
from ..rng import shuffle_in_place
from .waves import generate_wave

# Le spawner manipule state/map mais reste découplé de toute présentation.
# Il ne dépend que des champs utilisés (duck-typing).


def start_wave(state, map_data) -> CommandResult:
    """
    Ouvre la vague suivante.

    - refusé si une vague est déjà en cours (pas de mise en file d'attente)
    - wave++ puis expansion de la composition : une entrée par ennemi,
      chacune portant le délai de son groupe
    - mélange unique de toute la file (le délai voyage avec son entrée)
    """
    if getattr(state, "game_over", False):
        return rejected("game_over")
    if state.wave_in_progress:
        return rejected("already_in_progress")

    state.wave += 1
    composition = generate_wave(state.wave)

    queue: list[SpawnEntry] = []
    for group in composition.groups:
        for _ in range(group.count):
            queue.append(SpawnEntry(kind=group.kind, delay_ms=group.delay_ms))
    shuffle_in_place(state, queue)

    state.spawn_queue = queue
    state.spawn_timer_ms = 0.0
    state.wave_in_progress = True
    return accepted()


def step_spawner(state, map_data, dt_ms: float) -> Enemy | None:
    """
    Libère au plus un ennemi par tick, quand le délai de la tête de file est atteint.
    """
    if getattr(state, "game_over", False):
        return None
    if not state.wave_in_progress or not state.spawn_queue:
        return None

    state.spawn_timer_ms += dt_ms
    head = state.spawn_queue[0]
    if state.spawn_timer_ms < head.delay_ms:
        return None

    state.spawn_timer_ms = 0.0
    state.spawn_queue.pop(0)
    return spawn_enemy(state, map_data, head.kind)


def spawn_enemy(state, map_data, kind: str) -> Enemy:
    enemy_kind = get_enemy_kind(kind)
    wave = max(1, int(state.wave))
    health = enemy_kind.health_at_wave(wave)
    x, y = map_data.route[0]

    registry = state.registry
    enemy = Enemy(
        id=registry.issue_id(),
        kind=enemy_kind.kind,
        x=float(x),
        y=float(y),
        health=float(health),
        max_health=float(health),
        reward=enemy_kind.reward_at_wave(wave),
    )
    return registry.add_enemy(enemy)
