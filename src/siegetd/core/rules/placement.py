from __future__ import annotations

import math

from ..model.catalog import TOWER_KINDS, get_tower_kind, total_cost
from ..model.entities import Tower
from ..model.map import buildable_cells
from ..model.results import CommandResult, RejectReason, accepted, rejected


def placement_error(
    state,
    map_data,
    cell_x: int,
    cell_y: int,
    tower_kind: str = "cannon",
) -> RejectReason | None:
    if getattr(state, "game_over", False):
        return "game_over"
    if tower_kind not in TOWER_KINDS:
        return "unknown_kind"
    if not map_data.in_bounds(cell_x, cell_y):
        return "out_of_bounds"
    if map_data.is_blocked(cell_x, cell_y):
        return "blocked"
    if state.registry.tower_at(cell_x, cell_y) is not None:
        return "occupied"
    if int(state.money) < get_tower_kind(tower_kind).level(0).cost:
        return "insufficient_funds"
    return None


def can_place_tower(state, map_data, cell_x: int, cell_y: int, tower_kind: str = "cannon") -> bool:
    return placement_error(state, map_data, cell_x, cell_y, tower_kind) is None


def place_tower(
    state,
    map_data,
    cell_x: int,
    cell_y: int,
    tower_kind: str = "cannon",
) -> CommandResult:
    error = placement_error(state, map_data, cell_x, cell_y, tower_kind)
    if error is not None:
        return rejected(error)
    cost = get_tower_kind(tower_kind).level(0).cost
    state.money = int(state.money) - cost
    registry = state.registry
    registry.add_tower(
        Tower(
            id=registry.issue_id(),
            cell_x=int(cell_x),
            cell_y=int(cell_y),
            kind=tower_kind,
        )
    )
    return accepted(cost)


def upgrade_error(state, cell_x: int, cell_y: int) -> RejectReason | None:
    if getattr(state, "game_over", False):
        return "game_over"
    tower = state.registry.tower_at(cell_x, cell_y)
    if tower is None:
        return "no_tower"
    tower_kind = get_tower_kind(tower.kind)
    if tower.level >= tower_kind.max_level:
        return "max_level"
    if int(state.money) < tower_kind.level(tower.level + 1).cost:
        return "insufficient_funds"
    return None


def upgrade_tower(state, cell_x: int, cell_y: int) -> CommandResult:
    error = upgrade_error(state, cell_x, cell_y)
    if error is not None:
        return rejected(error)
    tower = state.registry.tower_at(cell_x, cell_y)
    upgrade_cost = get_tower_kind(tower.kind).level(tower.level + 1).cost
    state.money = int(state.money) - upgrade_cost
    tower.level += 1
    return accepted(upgrade_cost)


def sale_price(state, tower: Tower) -> int:
    spent = total_cost(get_tower_kind(tower.kind), tower.level)
    # 180 * 0.7 is 125.99999999999999 in floating point
    return int(math.floor(round(spent * state.config.sell_refund, 9)))


def sell_tower(state, cell_x: int, cell_y: int) -> CommandResult:
    if getattr(state, "game_over", False):
        return rejected("game_over")
    tower = state.registry.tower_at(cell_x, cell_y)
    if tower is None:
        return rejected("no_tower")
    refund = sale_price(state, tower)
    state.money = int(state.money) + refund
    state.registry.remove_tower(tower.id)
    return accepted(refund)


def open_cells(state, map_data) -> list[tuple[int, int]]:
    return [cell for cell in buildable_cells(map_data) if state.registry.tower_at(*cell) is None]
