from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import json
import math


DEFAULT_WAYPOINTS: tuple[tuple[int, int], ...] = (
    (-1, 6),
    (3, 6),
    (3, 2),
    (7, 2),
    (7, 9),
    (11, 9),
    (11, 4),
    (15, 4),
    (15, 8),
    (20, 8),
)


@dataclass(slots=True)
class MapData:
    """
    Grid + route shared by placement, movement and targeting.

    waypoints are grid cells; they may lie one cell outside the grid so
    enemies enter and leave from off-screen.
    """
    name: str
    cols: int
    rows: int
    tile_size: int
    waypoints: tuple[tuple[int, int], ...]

    route: tuple[tuple[float, float], ...] = field(init=False, default=())
    segment_lengths: tuple[float, ...] = field(init=False, default=())
    blocked: frozenset[tuple[int, int]] = field(init=False, default=frozenset())

    def __post_init__(self) -> None:
        if len(self.waypoints) < 2:
            raise ValueError(f"Map '{self.name}' needs at least two waypoints")
        self.route = tuple(self.cell_center(x, y) for x, y in self.waypoints)
        lengths = []
        for (x1, y1), (x2, y2) in zip(self.route[:-1], self.route[1:]):
            length = math.hypot(x2 - x1, y2 - y1)
            if length == 0.0:
                raise ValueError(f"Map '{self.name}' has a zero-length route segment")
            lengths.append(length)
        self.segment_lengths = tuple(lengths)
        self.blocked = frozenset(_route_cells(self))

    @property
    def width(self) -> int:
        return self.cols * self.tile_size

    @property
    def height(self) -> int:
        return self.rows * self.tile_size

    @property
    def last_segment(self) -> int:
        return len(self.route) - 1

    def cell_center(self, cell_x: int, cell_y: int) -> tuple[float, float]:
        half = self.tile_size / 2
        return cell_x * self.tile_size + half, cell_y * self.tile_size + half

    def in_bounds(self, cell_x: int, cell_y: int) -> bool:
        return 0 <= cell_x < self.cols and 0 <= cell_y < self.rows

    def is_blocked(self, cell_x: int, cell_y: int) -> bool:
        return (cell_x, cell_y) in self.blocked

    def point_on_route(self, segment: int, progress: float) -> tuple[float, float]:
        x1, y1 = self.route[segment]
        if segment >= self.last_segment:
            return x1, y1
        x2, y2 = self.route[segment + 1]
        return x1 + (x2 - x1) * progress, y1 + (y2 - y1) * progress


def buildable_cells(map_data: MapData) -> list[tuple[int, int]]:
    cells: list[tuple[int, int]] = []
    for y in range(map_data.rows):
        for x in range(map_data.cols):
            if not map_data.is_blocked(x, y):
                cells.append((x, y))
    return cells


def _route_cells(map_data: MapData) -> list[tuple[int, int]]:
    cells: list[tuple[int, int]] = []
    for (x1, y1), (x2, y2) in zip(map_data.waypoints[:-1], map_data.waypoints[1:]):
        dx = (x2 > x1) - (x2 < x1)
        dy = (y2 > y1) - (y2 < y1)
        x, y = x1, y1
        while x != x2 or y != y2:
            if map_data.in_bounds(x, y):
                cells.append((x, y))
            if x != x2:
                x += dx
            if y != y2:
                y += dy
        if map_data.in_bounds(x, y):
            cells.append((x, y))
    return cells


def default_map() -> MapData:
    return MapData(
        name="canyon",
        cols=20,
        rows=12,
        tile_size=48,
        waypoints=DEFAULT_WAYPOINTS,
    )


def load_map_json(path: str | Path) -> MapData:
    p = Path(path)
    data = json.loads(p.read_text(encoding="utf-8"))
    try:
        waypoints = tuple((int(wp[0]), int(wp[1])) for wp in data["waypoints"])
        return MapData(
            name=str(data["name"]),
            cols=int(data.get("cols", 20)),
            rows=int(data.get("rows", 12)),
            tile_size=int(data.get("tile_size", 48)),
            waypoints=waypoints,
        )
    except (KeyError, IndexError, TypeError) as exc:
        raise ValueError(f"Malformed map file {p}: {exc}") from exc
