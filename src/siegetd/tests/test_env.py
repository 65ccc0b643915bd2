import numpy as np
import pytest

pytest.importorskip("gymnasium")

from siegetd.ai.actions import Place, StartWave, flatten  # noqa: E402
from siegetd.ai.env import SiegeTDEnv, resolve_map_path  # noqa: E402
from siegetd.ai.policies.baseline import GreedyPolicy  # noqa: E402
from siegetd.app.run_headless import play  # noqa: E402
from siegetd.core.engine import Engine  # noqa: E402


def test_reset_returns_observation_and_mask() -> None:
    env = SiegeTDEnv()
    obs, info = env.reset(seed=123)

    assert env.observation_space.contains(obs)
    assert info["action_mask"].shape == (env.action_space.n,)
    assert info["action_mask"][env.action_spec.offsets.start_wave]
    assert env.engine.state.money == 400


def test_reset_is_reproducible() -> None:
    env = SiegeTDEnv()
    _, first = env.reset(seed=42)
    _, second = env.reset(seed=42)
    assert first["engine_seed"] == second["engine_seed"]


def test_build_action_costs_money_without_reward() -> None:
    env = SiegeTDEnv()
    env.reset(seed=1)
    cell = env.action_spec.cell_index[(5, 5)]
    action_id = flatten(Place(tower_type=0, cell=cell), env.action_spec)

    obs, reward, terminated, truncated, info = env.step(action_id)

    assert reward == 0.0
    assert not terminated and not truncated
    assert not info["invalid_action"]
    assert env.engine.state.money == 300
    assert env.engine.state.registry.tower_at(5, 5) is not None


def test_masked_action_becomes_noop() -> None:
    env = SiegeTDEnv()
    env.reset(seed=1)
    empty_cell = env.action_spec.cell_index[(5, 5)]
    sell_id = env.action_spec.offsets.sell + empty_cell

    _, _, _, _, info = env.step(sell_id)
    assert info["invalid_action"]
    assert env.engine.state.money == 400


def test_strict_mode_raises_on_masked_action() -> None:
    env = SiegeTDEnv(strict_invalid_actions=True)
    env.reset(seed=1)
    with pytest.raises(ValueError):
        env.step(env.action_spec.offsets.upgrade)


def test_start_wave_runs_whole_wave() -> None:
    env = SiegeTDEnv()
    env.reset(seed=3)

    obs, reward, terminated, truncated, info = env.step(StartWave())

    state = env.engine.state
    assert not terminated and not truncated
    assert info["wave_ticks"] > 0
    assert not state.wave_in_progress
    assert state.waves_completed == 1
    assert state.lives == 14
    # bonus 65 * 0.01 minus six lives lost
    assert reward == pytest.approx(0.65 - 600.0)
    assert isinstance(obs, np.ndarray)


def test_wave_timeout_truncates() -> None:
    env = SiegeTDEnv(max_wave_ticks=5)
    env.reset(seed=3)
    _, _, terminated, truncated, info = env.step(StartWave())
    assert truncated and not terminated
    assert info["timeout"]


def test_map_name_resolves_to_data_dir() -> None:
    path = resolve_map_path("canyon")
    assert path.name == "canyon.json"
    assert path.is_file()
    env = SiegeTDEnv(map_path="straight")
    assert env.map_data.name == "straight"


def test_greedy_play_survives_first_waves() -> None:
    engine = Engine(seed=9)
    play(engine, GreedyPolicy(), waves=3)
    summary = engine.summary()
    assert summary.waves_survived == 3
    assert summary.waves_completed == 3
    assert summary.total_kills > 0
