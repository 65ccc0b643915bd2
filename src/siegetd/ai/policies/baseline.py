from __future__ import annotations

import random
from typing import Protocol

from siegetd.ai.actions import (
    Action,
    ActionSpaceSpec,
    Noop,
    Place,
    StartWave,
    Upgrade,
    unflatten,
)
from siegetd.ai.masking import compute_action_mask
from siegetd.core.model.catalog import get_tower_kind


class Policy(Protocol):
    def reset(self, engine, spec: ActionSpaceSpec) -> None: ...

    def next_action(self, engine, spec: ActionSpaceSpec) -> Action: ...


def _point_segment_distance_sq(
    px: float,
    py: float,
    x1: float,
    y1: float,
    x2: float,
    y2: float,
) -> float:
    dx = x2 - x1
    dy = y2 - y1
    t = ((px - x1) * dx + (py - y1) * dy) / (dx * dx + dy * dy)
    t = max(0.0, min(1.0, t))
    cx = x1 + t * dx
    cy = y1 + t * dy
    return (px - cx) ** 2 + (py - cy) ** 2


def cells_by_route_distance(map_data, spec: ActionSpaceSpec) -> list[int]:
    """Cell indices of the action space, nearest to the route first."""
    segments = list(zip(map_data.route[:-1], map_data.route[1:]))
    scored: list[tuple[float, int]] = []
    for idx, (cell_x, cell_y) in enumerate(spec.cell_positions):
        cx, cy = map_data.cell_center(cell_x, cell_y)
        best = min(
            _point_segment_distance_sq(cx, cy, x1, y1, x2, y2)
            for (x1, y1), (x2, y2) in segments
        )
        scored.append((best, idx))
    scored.sort()
    return [idx for _, idx in scored]


def _cheapest_upgrade(engine, spec: ActionSpaceSpec, mask: list[bool]) -> Upgrade | None:
    best: Upgrade | None = None
    best_cost = None
    for tower in engine.state.registry.towers.values():
        cell_idx = spec.cell_index.get((tower.cell_x, tower.cell_y))
        if cell_idx is None or not mask[spec.offsets.upgrade + cell_idx]:
            continue
        cost = get_tower_kind(tower.kind).level(tower.level + 1).cost
        if best_cost is None or cost < best_cost:
            best_cost = cost
            best = Upgrade(cell=cell_idx)
    return best


class GreedyPolicy:
    """
    Cheapest affordable tower on the open cell nearest the route; upgrade the
    cheapest tower when nothing can be placed; otherwise start the wave.
    """

    def __init__(self, *, max_towers: int | None = None) -> None:
        self.max_towers = max_towers
        self._spec: ActionSpaceSpec | None = None
        self._cell_order: list[int] = []

    def reset(self, engine, spec: ActionSpaceSpec) -> None:
        self._spec = spec
        self._cell_order = cells_by_route_distance(engine.map, spec)

    def next_action(self, engine, spec: ActionSpaceSpec) -> Action:
        if engine.state.wave_in_progress:
            return Noop()
        if spec is not self._spec:
            self.reset(engine, spec)
        mask = compute_action_mask(engine, spec)

        tower_count = len(engine.state.registry.towers)
        if self.max_towers is None or tower_count < self.max_towers:
            by_cost = sorted(range(len(spec.tower_kinds)), key=lambda i: (spec.tower_costs[i], i))
            cell_count = len(spec.cell_positions)
            for tower_type in by_cost:
                base = spec.offsets.place + tower_type * cell_count
                for cell_idx in self._cell_order:
                    if mask[base + cell_idx]:
                        return Place(tower_type=tower_type, cell=cell_idx)

        upgrade = _cheapest_upgrade(engine, spec, mask)
        if upgrade is not None:
            return upgrade
        if mask[spec.offsets.start_wave]:
            return StartWave()
        return Noop()


class RandomPolicy:
    def __init__(self, *, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def reset(self, engine, spec: ActionSpaceSpec) -> None:
        return None

    def next_action(self, engine, spec: ActionSpaceSpec) -> Action:
        mask = compute_action_mask(engine, spec)
        valid = [idx for idx, ok in enumerate(mask) if ok]
        if not valid:
            return Noop()
        return unflatten(self._rng.choice(valid), spec)


def make_policy(name: str, *, seed: int | None = None, max_towers: int | None = None) -> Policy:
    if name == "greedy":
        return GreedyPolicy(max_towers=max_towers)
    if name == "random":
        return RandomPolicy(seed=seed)
    raise ValueError(f"Unknown policy {name!r}")
