import numpy as np
import pytest

from siegetd.ai.actions import (
    Noop,
    Place,
    Sell,
    SetSpeed,
    StartWave,
    Upgrade,
    action_space_spec,
    apply_action,
    flatten,
    unflatten,
)
from siegetd.ai.masking import compute_action_mask
from siegetd.ai.obs import SCALAR_KEYS, build_observation, observation_size
from siegetd.ai.policies.baseline import GreedyPolicy, cells_by_route_distance, make_policy
from siegetd.core.engine import Engine
from siegetd.core.model.map import buildable_cells


def _make_engine(**state_overrides) -> tuple[Engine, object]:
    engine = Engine(seed=5)
    for key, value in state_overrides.items():
        setattr(engine.state, key, value)
    return engine, action_space_spec(engine.map)


def test_action_space_layout() -> None:
    engine, spec = _make_engine()
    cells = len(buildable_cells(engine.map))
    assert len(spec.cell_positions) == cells
    assert spec.tower_kinds == ("cannon", "laser", "frost", "missile", "tesla")
    assert spec.tower_costs == (100, 120, 80, 200, 180)
    assert spec.num_actions == 2 + 5 * cells + cells + cells + 4
    assert spec.cell_positions[0] == (0, 0)
    assert spec.cell_positions[1] == (1, 0)


@pytest.mark.parametrize(
    "action",
    [Noop(), StartWave(), Place(tower_type=3, cell=17), Upgrade(cell=4), Sell(cell=0), SetSpeed(speed=2)],
)
def test_flatten_unflatten(action) -> None:
    _, spec = _make_engine()
    action_id = flatten(action, spec)
    assert unflatten(action_id, spec) == action


def test_out_of_range_actions_raise() -> None:
    _, spec = _make_engine()
    with pytest.raises(ValueError):
        unflatten(spec.num_actions, spec)
    with pytest.raises(ValueError):
        flatten(Place(tower_type=9, cell=0), spec)
    with pytest.raises(ValueError):
        flatten(SetSpeed(speed=4), spec)


def test_initial_mask() -> None:
    engine, spec = _make_engine()
    mask = compute_action_mask(engine, spec)
    cells = len(spec.cell_positions)

    assert len(mask) == spec.num_actions
    assert mask[spec.offsets.noop]
    assert mask[spec.offsets.start_wave]
    # every kind costs at most 400
    assert all(mask[spec.offsets.place: spec.offsets.upgrade])
    assert not any(mask[spec.offsets.upgrade: spec.offsets.set_speed])
    assert all(mask[spec.offsets.set_speed:])
    assert spec.offsets.upgrade - spec.offsets.place == 5 * cells


def test_mask_follows_money_and_towers() -> None:
    engine, spec = _make_engine(money=100)
    cell_idx = spec.cell_index[(5, 5)]
    cells = len(spec.cell_positions)

    mask = compute_action_mask(engine, spec)
    assert mask[spec.offsets.place + 0 * cells + cell_idx]  # cannon 100
    assert not mask[spec.offsets.place + 1 * cells + cell_idx]  # laser 120

    apply_action(engine, Place(tower_type=0, cell=cell_idx), spec)
    mask = compute_action_mask(engine, spec)
    assert mask[spec.offsets.sell + cell_idx]
    assert not mask[spec.offsets.upgrade + cell_idx]
    assert not mask[spec.offsets.place + 2 * cells + cell_idx]


def test_mask_after_game_over_only_allows_noop() -> None:
    engine, spec = _make_engine(game_over=True)
    mask = compute_action_mask(engine, spec)
    assert mask[spec.offsets.noop]
    assert sum(mask) == 1


def test_mask_blocks_start_wave_while_running() -> None:
    engine, spec = _make_engine()
    engine.start_wave()
    assert not compute_action_mask(engine, spec)[spec.offsets.start_wave]


def test_observation_vector() -> None:
    engine, spec = _make_engine()
    engine.place_tower("laser", (5, 5))
    obs = build_observation(engine, spec)

    assert obs.dtype == np.float32
    assert obs.shape == (observation_size(spec, engine.map),)
    assert np.all(obs >= 0.0) and np.all(obs <= 1.0)
    cell_block = len(SCALAR_KEYS) + spec.cell_index[(5, 5)] * 3
    assert obs[cell_block] == 1.0
    assert obs[cell_block + 2] == pytest.approx(0.25)


def test_greedy_places_cheapest_tower_next_to_route() -> None:
    engine, spec = _make_engine()
    policy = GreedyPolicy()
    policy.reset(engine, spec)

    action = policy.next_action(engine, spec)
    assert isinstance(action, Place)
    assert spec.tower_kinds[action.tower_type] == "frost"
    assert action.cell == cells_by_route_distance(engine.map, spec)[0]
    cell_x, cell_y = spec.cell_positions[action.cell]
    neighbours = [(cell_x + 1, cell_y), (cell_x - 1, cell_y), (cell_x, cell_y + 1), (cell_x, cell_y - 1)]
    assert any(engine.map.is_blocked(*cell) for cell in neighbours)


def test_greedy_starts_wave_when_broke() -> None:
    engine, spec = _make_engine(money=0)
    assert isinstance(GreedyPolicy().next_action(engine, spec), StartWave)


def test_greedy_upgrades_when_capped() -> None:
    engine, spec = _make_engine(money=1000)
    engine.place_tower("frost", (5, 5))
    action = GreedyPolicy(max_towers=1).next_action(engine, spec)
    assert action == Upgrade(cell=spec.cell_index[(5, 5)])


def test_unknown_policy_name() -> None:
    with pytest.raises(ValueError):
        make_policy("minimax")
