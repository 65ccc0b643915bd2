from __future__ import annotations
from dataclasses import dataclass, field

from ..config import DEFAULT_CONFIG, GameConfig
from .entities import SpawnEntry
from .registry import EntityRegistry


@dataclass(slots=True)
class GameState:
    money: int = 400
    lives: int = 20
    wave: int = 0
    wave_in_progress: bool = False
    speed: float = 1.0

    # simulation clock, in speed-scaled milliseconds
    now_ms: float = 0.0

    combo: int = 0
    last_kill_ms: float = 0.0
    total_kills: int = 0
    waves_completed: int = 0

    spawn_queue: list[SpawnEntry] = field(default_factory=list)
    spawn_timer_ms: float = 0.0

    registry: EntityRegistry = field(default_factory=EntityRegistry)
    config: GameConfig = DEFAULT_CONFIG

    rng_state: int = 1
    rng_calls: int = 0

    game_over: bool = False

    @classmethod
    def from_config(cls, config: GameConfig) -> GameState:
        return cls(
            money=int(config.starting_money),
            lives=int(config.starting_lives),
            speed=min(config.speeds, key=lambda s: (abs(s - 1.0), s)),
            config=config,
        )
