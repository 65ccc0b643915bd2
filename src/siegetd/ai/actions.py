from __future__ import annotations

from dataclasses import dataclass

from siegetd.core.model.catalog import list_tower_kinds
from siegetd.core.model.map import buildable_cells


@dataclass(frozen=True, slots=True)
class Noop:
    pass


@dataclass(frozen=True, slots=True)
class StartWave:
    pass


@dataclass(frozen=True, slots=True)
class Place:
    tower_type: int
    cell: int


@dataclass(frozen=True, slots=True)
class Upgrade:
    cell: int


@dataclass(frozen=True, slots=True)
class Sell:
    cell: int


@dataclass(frozen=True, slots=True)
class SetSpeed:
    speed: int


Action = Noop | StartWave | Place | Upgrade | Sell | SetSpeed


@dataclass(frozen=True, slots=True)
class ActionOffsets:
    noop: int
    start_wave: int
    place: int
    upgrade: int
    sell: int
    set_speed: int


@dataclass(frozen=True, slots=True)
class ActionSpaceSpec:
    map_name: str
    tower_kinds: tuple[str, ...]
    tower_costs: tuple[int, ...]
    speeds: tuple[float, ...]
    cell_positions: tuple[tuple[int, int], ...]
    cell_index: dict[tuple[int, int], int]
    offsets: ActionOffsets
    place_count: int
    upgrade_count: int
    sell_count: int
    set_speed_count: int
    num_actions: int


def action_space_spec(map_data, *, speeds: tuple[float, ...] = (0.5, 1.0, 2.0, 3.0)) -> ActionSpaceSpec:
    tower_kinds = list_tower_kinds()
    kinds = tuple(t.kind for t in tower_kinds)
    costs = tuple(int(t.level(0).cost) for t in tower_kinds)

    cells = list(buildable_cells(map_data))
    cells.sort(key=lambda cell: (cell[1], cell[0]))
    cell_index = {(int(x), int(y)): idx for idx, (x, y) in enumerate(cells)}

    place_count = len(kinds) * len(cells)
    upgrade_count = len(cells)
    sell_count = len(cells)
    set_speed_count = len(speeds)

    offsets = ActionOffsets(
        noop=0,
        start_wave=1,
        place=2,
        upgrade=2 + place_count,
        sell=2 + place_count + upgrade_count,
        set_speed=2 + place_count + upgrade_count + sell_count,
    )
    return ActionSpaceSpec(
        map_name=str(getattr(map_data, "name", "")),
        tower_kinds=kinds,
        tower_costs=costs,
        speeds=tuple(speeds),
        cell_positions=tuple(cells),
        cell_index=cell_index,
        offsets=offsets,
        place_count=place_count,
        upgrade_count=upgrade_count,
        sell_count=sell_count,
        set_speed_count=set_speed_count,
        num_actions=offsets.set_speed + set_speed_count,
    )


def flatten(action: Action, spec: ActionSpaceSpec) -> int:
    num_cells = len(spec.cell_positions)
    if isinstance(action, Noop):
        return spec.offsets.noop
    if isinstance(action, StartWave):
        return spec.offsets.start_wave
    if isinstance(action, Place):
        if not 0 <= action.tower_type < len(spec.tower_kinds):
            raise ValueError(f"tower_type out of range: {action.tower_type}")
        _check_cell(action.cell, num_cells)
        return spec.offsets.place + action.tower_type * num_cells + action.cell
    if isinstance(action, Upgrade):
        _check_cell(action.cell, num_cells)
        return spec.offsets.upgrade + action.cell
    if isinstance(action, Sell):
        _check_cell(action.cell, num_cells)
        return spec.offsets.sell + action.cell
    if isinstance(action, SetSpeed):
        if not 0 <= action.speed < len(spec.speeds):
            raise ValueError(f"speed index out of range: {action.speed}")
        return spec.offsets.set_speed + action.speed
    raise TypeError(f"Unknown action {action!r}")


def unflatten(action_id: int, spec: ActionSpaceSpec) -> Action:
    if not 0 <= action_id < spec.num_actions:
        raise ValueError(f"action id out of range: {action_id}")
    offsets = spec.offsets
    num_cells = len(spec.cell_positions)
    if action_id == offsets.noop:
        return Noop()
    if action_id == offsets.start_wave:
        return StartWave()
    if action_id < offsets.upgrade:
        rel = action_id - offsets.place
        return Place(tower_type=rel // num_cells, cell=rel % num_cells)
    if action_id < offsets.sell:
        return Upgrade(cell=action_id - offsets.upgrade)
    if action_id < offsets.set_speed:
        return Sell(cell=action_id - offsets.sell)
    return SetSpeed(speed=action_id - offsets.set_speed)


def apply_action(engine, action: Action, spec: ActionSpaceSpec):
    """Translate an action into the matching engine command."""
    if isinstance(action, Noop):
        return None
    if isinstance(action, StartWave):
        return engine.start_wave()
    if isinstance(action, Place):
        kind = spec.tower_kinds[action.tower_type]
        return engine.place_tower(kind, spec.cell_positions[action.cell])
    if isinstance(action, Upgrade):
        return engine.upgrade_tower(spec.cell_positions[action.cell])
    if isinstance(action, Sell):
        return engine.sell_tower(spec.cell_positions[action.cell])
    if isinstance(action, SetSpeed):
        return engine.set_speed(spec.speeds[action.speed])
    raise TypeError(f"Unknown action {action!r}")


def _check_cell(cell: int, num_cells: int) -> None:
    if not 0 <= cell < num_cells:
        raise ValueError(f"cell index out of range: {cell}")
