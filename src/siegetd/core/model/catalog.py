from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


EffectKind = Literal["single", "splash", "chain", "slow", "dot"]
EnemyAbility = Literal["fast", "armored", "heals_nearby", "immune_to_slow"]


@dataclass(frozen=True, slots=True)
class TowerLevel:
    damage: float
    range: float
    fire_rate: float
    cost: int
    # splash radius, slow basis or chain count depending on the effect kind
    special: float | None = None

    @property
    def fire_interval_ms(self) -> float:
        return 1000.0 / self.fire_rate


@dataclass(frozen=True, slots=True)
class TowerKind:
    kind: str
    name: str
    description: str
    effect: EffectKind
    levels: tuple[TowerLevel, ...]

    @property
    def max_level(self) -> int:
        return len(self.levels) - 1

    def level(self, index: int) -> TowerLevel:
        return self.levels[index]


@dataclass(frozen=True, slots=True)
class EnemyKind:
    kind: str
    name: str
    base_health: float
    base_speed: float
    base_reward: int
    health_scaling: float
    size: float
    ability: EnemyAbility | None = None

    def health_at_wave(self, wave: int) -> int:
        return int(self.base_health * self.health_scaling ** (wave - 1))

    def reward_at_wave(self, wave: int) -> int:
        return int(self.base_reward + wave * 2)


TOWER_KINDS: dict[str, TowerKind] = {
    "cannon": TowerKind(
        kind="cannon",
        name="Cannon",
        description="Balanced damage dealer with splash",
        effect="splash",
        levels=(
            TowerLevel(damage=30, range=100, fire_rate=1.2, cost=100, special=30),
            TowerLevel(damage=50, range=120, fire_rate=1.5, cost=150, special=40),
            TowerLevel(damage=80, range=140, fire_rate=1.8, cost=250, special=50),
        ),
    ),
    "laser": TowerKind(
        kind="laser",
        name="Laser",
        description="High single-target DPS",
        effect="single",
        levels=(
            TowerLevel(damage=15, range=130, fire_rate=4, cost=120),
            TowerLevel(damage=25, range=150, fire_rate=5, cost=180),
            TowerLevel(damage=40, range=170, fire_rate=6, cost=300),
        ),
    ),
    "frost": TowerKind(
        kind="frost",
        name="Frost",
        description="Slows enemies in range",
        effect="slow",
        levels=(
            TowerLevel(damage=10, range=90, fire_rate=2, cost=80, special=30),
            TowerLevel(damage=18, range=110, fire_rate=2.5, cost=130, special=45),
            TowerLevel(damage=28, range=130, fire_rate=3, cost=220, special=60),
        ),
    ),
    "missile": TowerKind(
        kind="missile",
        name="Missile",
        description="Long range, high damage",
        effect="single",
        levels=(
            TowerLevel(damage=100, range=200, fire_rate=0.5, cost=200),
            TowerLevel(damage=180, range=240, fire_rate=0.6, cost=300),
            TowerLevel(damage=300, range=280, fire_rate=0.7, cost=500),
        ),
    ),
    "tesla": TowerKind(
        kind="tesla",
        name="Tesla",
        description="Chain lightning between enemies",
        effect="chain",
        levels=(
            TowerLevel(damage=20, range=100, fire_rate=1.5, cost=180, special=3),
            TowerLevel(damage=35, range=120, fire_rate=1.8, cost=280, special=4),
            TowerLevel(damage=55, range=140, fire_rate=2.2, cost=450, special=5),
        ),
    ),
}


ENEMY_KINDS: dict[str, EnemyKind] = {
    "gooner": EnemyKind(
        kind="gooner",
        name="Gooner",
        base_health=100,
        base_speed=50,
        base_reward=10,
        health_scaling=1.15,
        size=12,
    ),
    "edgelord": EnemyKind(
        kind="edgelord",
        name="Edgelord",
        base_health=50,
        base_speed=110,
        base_reward=8,
        health_scaling=1.12,
        size=9,
        ability="fast",
    ),
    "chonker": EnemyKind(
        kind="chonker",
        name="Chonker",
        base_health=500,
        base_speed=22,
        base_reward=30,
        health_scaling=1.2,
        size=22,
        ability="armored",
    ),
    "copium": EnemyKind(
        kind="copium",
        name="Copium Dealer",
        base_health=80,
        base_speed=40,
        base_reward=25,
        health_scaling=1.1,
        size=11,
        ability="heals_nearby",
    ),
    "final_boss": EnemyKind(
        kind="final_boss",
        name="Sigma Overlord",
        base_health=3000,
        base_speed=18,
        base_reward=300,
        health_scaling=1.5,
        size=32,
        ability="immune_to_slow",
    ),
}


def get_tower_kind(kind: str) -> TowerKind:
    try:
        return TOWER_KINDS[kind]
    except KeyError as exc:
        raise KeyError(f"Unknown tower kind: {kind!r}") from exc


def get_enemy_kind(kind: str) -> EnemyKind:
    try:
        return ENEMY_KINDS[kind]
    except KeyError as exc:
        raise KeyError(f"Unknown enemy kind: {kind!r}") from exc


def list_tower_kinds() -> tuple[TowerKind, ...]:
    return tuple(TOWER_KINDS.values())


def total_cost(tower_kind: TowerKind, level: int) -> int:
    """Sum of the costs paid for levels 0..level."""
    return sum(int(lvl.cost) for lvl in tower_kind.levels[: level + 1])
