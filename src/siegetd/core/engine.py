# src/siegetd/core/engine.py
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Literal

from .config import DEFAULT_CONFIG, GameConfig
from .model.catalog import get_enemy_kind, get_tower_kind
from .model.map import MapData, default_map
from .model.results import CommandResult, accepted
from .model.state import GameState
from .rng import seed_state
from .rules.economy import check_wave_complete, step_combo
from .rules.enemy_motion import step_enemies
from .rules.placement import place_tower, sell_tower, upgrade_tower
from .rules.projectiles import step_projectiles
from .rules.tower_attack import step_towers, tower_center
from .rules.wave_spawner import start_wave, step_spawner
from .rules.waves import wave_preview


logger = logging.getLogger(__name__)

ActionType = Literal[
    "START_WAVE",
    "PLACE_TOWER",
    "SELL_TOWER",
    "UPGRADE_TOWER",
    "SET_SPEED",
]


@dataclass(frozen=True, slots=True)
class GameSummary:
    waves_survived: int
    waves_completed: int
    total_kills: int
    money: int
    lives: int


class Engine:
    """
    Moteur headless : aucune dépendance de présentation.

    Un appel à step() = une passe complète, dans un ordre fixe :
    spawner -> mouvement (+ soins) -> tours -> projectiles -> combo -> fin de vague.
    Le dt externe est multiplié par la vitesse de jeu avant toute règle.
    """
    FRAME_MS = 1000.0 / 60.0

    def __init__(
        self,
        map_data: MapData | None = None,
        config: GameConfig = DEFAULT_CONFIG,
        *,
        seed: int | None = None,
    ):
        self.map = map_data if map_data is not None else default_map()
        self.config = config
        self.seed = seed
        self.state = GameState.from_config(config)
        seed_state(self.state, seed)

    def reset(self, *, seed: int | None = None) -> None:
        if seed is not None:
            self.seed = seed
        self.state = GameState.from_config(self.config)
        seed_state(self.state, self.seed)

    # commandes

    def place_tower(self, kind: str, cell: tuple[int, int]) -> CommandResult:
        result = place_tower(self.state, self.map, int(cell[0]), int(cell[1]), tower_kind=str(kind))
        return self._log_result("place_tower", result, kind=kind, cell=cell)

    def sell_tower(self, cell: tuple[int, int]) -> CommandResult:
        result = sell_tower(self.state, int(cell[0]), int(cell[1]))
        return self._log_result("sell_tower", result, cell=cell)

    def upgrade_tower(self, cell: tuple[int, int]) -> CommandResult:
        result = upgrade_tower(self.state, int(cell[0]), int(cell[1]))
        return self._log_result("upgrade_tower", result, cell=cell)

    def start_wave(self) -> CommandResult:
        result = start_wave(self.state, self.map)
        if result.ok:
            logger.info(
                "wave=%s started enemies=%s money=%s lives=%s",
                self.state.wave,
                len(self.state.spawn_queue),
                self.state.money,
                self.state.lives,
            )
        return self._log_result("start_wave", result)

    def set_speed(self, multiplier: float) -> CommandResult:
        speeds = self.config.speeds
        # nearest supported value, the slower one on ties
        self.state.speed = min(speeds, key=lambda s: (abs(s - float(multiplier)), s))
        return accepted()

    def step_speed(self, delta: int) -> CommandResult:
        speeds = self.config.speeds
        try:
            idx = speeds.index(self.state.speed)
        except ValueError:
            idx = 0
        idx = max(0, min(len(speeds) - 1, idx + int(delta)))
        self.state.speed = speeds[idx]
        return accepted()

    def act(self, action_type: ActionType, payload: dict[str, Any] | None = None) -> CommandResult:
        payload = payload or {}
        if action_type == "START_WAVE":
            return self.start_wave()
        if action_type == "SET_SPEED":
            return self.set_speed(float(payload.get("speed", 1.0)))
        if action_type in ("PLACE_TOWER", "SELL_TOWER", "UPGRADE_TOWER"):
            cell_x = payload.get("cell_x")
            cell_y = payload.get("cell_y")
            if cell_x is None or cell_y is None:
                raise ValueError(f"{action_type} needs cell_x and cell_y")
            cell = (int(cell_x), int(cell_y))
            if action_type == "PLACE_TOWER":
                return self.place_tower(str(payload.get("kind", "cannon")), cell)
            if action_type == "SELL_TOWER":
                return self.sell_tower(cell)
            return self.upgrade_tower(cell)

        raise ValueError(f"Unknown action_type={action_type!r}")

    # horloge

    def step(self, dt_ms: float) -> str | None:
        """
        Une passe de simulation pour dt_ms réels écoulés (mis à l'échelle par la vitesse).
        """
        s = self.state
        if s.game_over:
            return None

        dt = max(0.0, float(dt_ms)) * s.speed
        s.now_ms += dt

        step_spawner(s, self.map, dt)
        step_enemies(s, self.map, dt)
        if s.game_over:
            logger.info(
                "game over wave=%s kills=%s money=%s",
                s.wave,
                s.total_kills,
                s.money,
            )
            return "game lost"

        step_towers(s, self.map)
        step_projectiles(s, dt)
        step_combo(s)
        bonus = check_wave_complete(s)
        if bonus is not None:
            logger.info("wave=%s complete bonus=%s money=%s", s.wave, bonus, s.money)
            return "wave complete"
        return None

    # lecture seule

    def summary(self) -> GameSummary:
        s = self.state
        return GameSummary(
            waves_survived=s.wave,
            waves_completed=s.waves_completed,
            total_kills=s.total_kills,
            money=s.money,
            lives=s.lives,
        )

    def observe(self) -> dict[str, Any]:
        s = self.state
        registry = s.registry
        return {
            "money": s.money,
            "lives": s.lives,
            "wave": s.wave,
            "combo": s.combo,
            "speed": s.speed,
            "wave_in_progress": s.wave_in_progress,
            "game_over": s.game_over,
            "total_kills": s.total_kills,
            "now_ms": s.now_ms,
            "pending_spawns": len(s.spawn_queue),
            "next_wave": wave_preview(s.wave + 1),
            "towers": [
                {
                    "id": t.id,
                    "kind": t.kind,
                    "cell": (t.cell_x, t.cell_y),
                    "x": tower_center(t, self.map)[0],
                    "y": tower_center(t, self.map)[1],
                    "level": t.level,
                    "max_level": get_tower_kind(t.kind).max_level,
                    "kills": t.kills,
                }
                for t in registry.towers.values()
            ],
            "enemies": [
                {
                    "id": e.id,
                    "kind": e.kind,
                    "x": e.x,
                    "y": e.y,
                    "size": get_enemy_kind(e.kind).size,
                    "health_fraction": e.health_fraction,
                    "slowed": e.slow_until_ms > s.now_ms,
                }
                for e in registry.enemies.values()
            ],
            "projectiles": [
                {
                    "id": p.id,
                    "kind": p.kind,
                    "x": p.x,
                    "y": p.y,
                    "target_id": p.target_id,
                }
                for p in registry.projectiles.values()
            ],
        }

    def _log_result(self, command: str, result: CommandResult, **context: Any) -> CommandResult:
        if not result.ok:
            logger.debug("%s rejected reason=%s context=%s", command, result.reason, context)
        return result
