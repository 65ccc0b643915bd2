from __future__ import annotations

from pathlib import Path
import logging
from typing import Any

import gymnasium as gym
import numpy as np

from siegetd.core.config import DEFAULT_CONFIG, GameConfig
from siegetd.core.engine import Engine
from siegetd.core.model.map import MapData, default_map, load_map_json

from .actions import (
    Action,
    Noop,
    StartWave,
    action_space_spec,
    apply_action,
    flatten,
    unflatten,
)
from .masking import compute_action_mask
from .obs import build_observation, observation_size
from .rewards import RewardConfig, compute_reward, reward_state_from


logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def resolve_map_path(map_path: str) -> Path:
    p = Path(map_path)
    if p.suffix:
        return p if p.is_absolute() else REPO_ROOT / p
    if p.parent == Path("."):
        return REPO_ROOT / "data/maps" / f"{p.name}.json"
    return REPO_ROOT / p.with_suffix(".json")


def load_map(map_path: str | None) -> MapData:
    if map_path is None:
        return default_map()
    return load_map_json(resolve_map_path(map_path))


class SiegeTDEnv(gym.Env):
    """
    Build-phase environment: each step is one build command, except StartWave
    which simulates the whole wave before returning.
    """

    metadata = {"render_modes": []}

    def __init__(
        self,
        *,
        map_path: str | None = None,
        config: GameConfig = DEFAULT_CONFIG,
        max_wave_ticks: int = 20000,
        max_build_actions: int | None = 100,
        strict_invalid_actions: bool = False,
        reward_config: RewardConfig | None = None,
    ) -> None:
        super().__init__()
        self.map_path = map_path
        self.config = config
        self.max_wave_ticks = int(max_wave_ticks)
        self.max_build_actions = max_build_actions
        self.strict_invalid_actions = strict_invalid_actions
        self.reward_config = reward_config or RewardConfig()

        self.map_data = load_map(map_path)
        self.action_spec = action_space_spec(self.map_data, speeds=config.speeds)
        self.action_space = gym.spaces.Discrete(self.action_spec.num_actions)
        self.observation_space = gym.spaces.Box(
            low=0.0,
            high=1.0,
            shape=(observation_size(self.action_spec, self.map_data),),
            dtype=np.float32,
        )

        self.engine: Engine | None = None
        self.episode_seed: int | None = None
        self.episode_actions: list[Action] = []
        self.build_actions_since_wave = 0
        self._last_action_mask: np.ndarray | None = None

    def reset(self, *, seed: int | None = None, options: dict[str, Any] | None = None) -> tuple[np.ndarray, dict]:
        super().reset(seed=seed)
        if options and options.get("map_path"):
            self.map_path = str(options["map_path"])
            self.map_data = load_map(self.map_path)
            self.action_spec = action_space_spec(self.map_data, speeds=self.config.speeds)
            self.action_space = gym.spaces.Discrete(self.action_spec.num_actions)
            self.observation_space = gym.spaces.Box(
                low=0.0,
                high=1.0,
                shape=(observation_size(self.action_spec, self.map_data),),
                dtype=np.float32,
            )

        self.episode_seed = int(self.np_random.integers(1, 2**31 - 1))
        self.engine = Engine(self.map_data, self.config, seed=self.episode_seed)
        self.episode_actions = []
        self.build_actions_since_wave = 0
        self._last_action_mask = self._compute_action_mask()
        logger.debug("reset map=%s seed=%s engine_seed=%s", self.map_data.name, seed, self.episode_seed)
        return build_observation(self.engine, self.action_spec), {
            "engine_seed": self.episode_seed,
            "action_mask": self._last_action_mask,
        }

    def _compute_action_mask(self) -> np.ndarray:
        if self.engine is None:
            raise RuntimeError("Environment not reset")
        mask = np.asarray(compute_action_mask(self.engine, self.action_spec), dtype=bool)
        if self._build_action_limit_reached():
            forced = np.zeros(len(mask), dtype=bool)
            start_idx = self.action_spec.offsets.start_wave
            forced[start_idx] = mask[start_idx]
            forced[self.action_spec.offsets.noop] = not mask[start_idx]
            return forced
        return mask

    def action_masks(self) -> np.ndarray:
        if self._last_action_mask is None:
            self._last_action_mask = self._compute_action_mask()
        return self._last_action_mask

    def _build_action_limit_reached(self) -> bool:
        if self.max_build_actions is None:
            return False
        return self.build_actions_since_wave >= self.max_build_actions

    def _resolve_action(self, action: Action | int) -> tuple[Action, bool]:
        spec = self.action_spec
        try:
            if isinstance(action, (int, np.integer)):
                action_id = int(action)
                action_obj = unflatten(action_id, spec)
            else:
                action_obj = action
                action_id = flatten(action_obj, spec)
        except (TypeError, ValueError) as exc:
            if self.strict_invalid_actions:
                raise ValueError(f"Invalid action {action!r}") from exc
            return Noop(), True

        if not bool(self._last_action_mask[action_id]):
            if self.strict_invalid_actions:
                raise ValueError(f"Action not valid in current state: {action_obj!r}")
            return Noop(), True
        return action_obj, False

    def step(self, action: Action | int) -> tuple[np.ndarray, float, bool, bool, dict[str, Any]]:
        if self.engine is None or self._last_action_mask is None:
            raise RuntimeError("Environment not reset")
        if self.engine.state.game_over:
            raise RuntimeError("step() called after the episode terminated")

        action_obj, invalid_action = self._resolve_action(action)
        prev_state = reward_state_from(self.engine.state)
        info: dict[str, Any] = {"invalid_action": invalid_action}
        truncated = False

        apply_action(self.engine, action_obj, self.action_spec)
        self.episode_actions.append(action_obj)
        if isinstance(action_obj, StartWave):
            wave_ticks, timeout = self._run_wave()
            info["wave_ticks"] = wave_ticks
            info["timeout"] = timeout
            truncated = timeout
            phase_transition = "WAVE_COMPLETE"
            self.build_actions_since_wave = 0
        else:
            phase_transition = "BUILD_ACTION"
            self.build_actions_since_wave += 1

        terminated = bool(self.engine.state.game_over)
        reward = compute_reward(
            prev_state,
            reward_state_from(self.engine.state),
            phase_transition=phase_transition,
            config=self.reward_config,
            invalid_action=invalid_action,
            episode_done=terminated,
        )

        self._last_action_mask = self._compute_action_mask()
        info["action_mask"] = self._last_action_mask
        if terminated:
            summary = self.engine.summary()
            logger.info(
                "episode_done wave=%s kills=%s money=%s",
                summary.waves_survived,
                summary.total_kills,
                summary.money,
            )
        return build_observation(self.engine, self.action_spec), reward, terminated, truncated, info

    def _run_wave(self) -> tuple[int, bool]:
        engine = self.engine
        ticks = 0
        while ticks < self.max_wave_ticks:
            outcome = engine.step(engine.FRAME_MS)
            ticks += 1
            if outcome is not None:
                break
        else:
            logger.error("Wave simulation exceeded max_wave_ticks=%s", self.max_wave_ticks)
            return ticks, True
        state = engine.state
        logger.info("wave_done wave=%s ticks=%s lives=%s money=%s", state.wave, ticks, state.lives, state.money)
        return ticks, False

    def render(self) -> None:
        return None
