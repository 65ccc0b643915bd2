from __future__ import annotations
from dataclasses import dataclass

from .catalog import EffectKind


@dataclass(frozen=True, slots=True)
class SpawnEntry:
    kind: str
    delay_ms: float


@dataclass(slots=True)
class Tower:
    id: int
    cell_x: int
    cell_y: int
    kind: str
    level: int = 0
    last_fired_ms: float | None = None
    kills: int = 0


@dataclass(slots=True)
class Enemy:
    id: int
    kind: str
    x: float
    y: float

    health: float
    max_health: float
    reward: int

    segment: int = 0
    progress: float = 0.0
    slow_until_ms: float = 0.0

    @property
    def route_score(self) -> float:
        return self.segment + self.progress

    @property
    def health_fraction(self) -> float:
        if self.max_health <= 0:
            return 0.0
        return max(0.0, self.health / self.max_health)


@dataclass(slots=True)
class Projectile:
    id: int
    x: float
    y: float
    target_id: int
    tower_id: int
    kind: str

    # Snapshot of the firing level at launch time.
    damage: float
    effect: EffectKind
    special: float | None
    speed: float
