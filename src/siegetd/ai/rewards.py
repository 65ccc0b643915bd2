from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RewardState:
    money: int
    lives: int
    wave: int
    total_kills: int


@dataclass(frozen=True, slots=True)
class RewardConfig:
    money_weight: float = 0.01
    kill_weight: float = 0.0
    life_loss_penalty: float = 100.0
    no_life_loss_bonus: float = 50.0
    terminal_loss_penalty: float = 1_000.0
    build_step_penalty: float = 0.0
    invalid_action_penalty: float = 0.0


def reward_state_from(state) -> RewardState:
    return RewardState(
        money=int(state.money),
        lives=int(state.lives),
        wave=int(state.wave),
        total_kills=int(state.total_kills),
    )


def compute_reward(
    prev_state: RewardState,
    new_state: RewardState,
    *,
    phase_transition: str,
    config: RewardConfig,
    invalid_action: bool = False,
    episode_done: bool = False,
) -> float:
    reward = 0.0
    if phase_transition == "BUILD_ACTION":
        reward += config.build_step_penalty
    elif phase_transition == "WAVE_COMPLETE":
        lives_lost = max(0, prev_state.lives - new_state.lives)
        reward += (new_state.money - prev_state.money) * config.money_weight
        reward += (new_state.total_kills - prev_state.total_kills) * config.kill_weight
        if lives_lost == 0:
            reward += config.no_life_loss_bonus
        reward -= lives_lost * config.life_loss_penalty
    if invalid_action:
        reward += config.invalid_action_penalty
    if episode_done:
        reward -= config.terminal_loss_penalty
    return float(reward)
