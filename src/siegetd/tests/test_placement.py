import pytest

from siegetd.core.engine import Engine
from siegetd.core.model.entities import Enemy
from siegetd.core.model.map import MapData, default_map
from siegetd.core.model.state import GameState
from siegetd.core.rules.placement import (
    can_place_tower,
    open_cells,
    place_tower,
    placement_error,
    sell_tower,
    upgrade_tower,
)


def test_place_then_sell_refunds_seventy_percent() -> None:
    m = default_map()
    s = GameState(money=400)

    placed = place_tower(s, m, 5, 5, "cannon")
    assert placed.ok
    assert placed.amount == 100
    assert s.money == 300
    assert s.registry.tower_at(5, 5) is not None

    sold = sell_tower(s, 5, 5)
    assert sold.ok
    assert sold.amount == 70
    assert s.money == 370
    assert s.registry.tower_at(5, 5) is None
    assert s.registry.towers == {}


def test_sell_refund_covers_upgrades() -> None:
    m = default_map()
    s = GameState(money=1000)
    place_tower(s, m, 5, 5, "frost")
    assert upgrade_tower(s, 5, 5).amount == 130

    assert sell_tower(s, 5, 5).amount == int((80 + 130) * 0.7)


@pytest.mark.parametrize(
    ("kind", "refund"),
    [("cannon", 70), ("laser", 84), ("frost", 56), ("missile", 140), ("tesla", 126)],
)
def test_sell_refund_is_exact_for_every_kind(kind: str, refund: int) -> None:
    m = default_map()
    s = GameState(money=400)
    cost = place_tower(s, m, 5, 5, kind).amount

    assert sell_tower(s, 5, 5).amount == refund == (cost * 7) // 10
    assert s.money == 400 - cost + refund


def test_upgrade_until_max_level() -> None:
    m = default_map()
    s = GameState(money=10_000)
    place_tower(s, m, 5, 5, "laser")

    assert upgrade_tower(s, 5, 5).ok
    assert upgrade_tower(s, 5, 5).ok
    assert s.registry.tower_at(5, 5).level == 2
    result = upgrade_tower(s, 5, 5)
    assert not result.ok
    assert result.reason == "max_level"
    assert s.money == 10_000 - 120 - 180 - 300


def test_upgrade_without_funds_is_rejected() -> None:
    m = default_map()
    s = GameState(money=100)
    place_tower(s, m, 5, 5, "cannon")
    result = upgrade_tower(s, 5, 5)
    assert result.reason == "insufficient_funds"
    assert s.money == 0
    assert s.registry.tower_at(5, 5).level == 0


@pytest.mark.parametrize(
    ("cell", "kind", "money", "reason"),
    [
        ((3, 4), "cannon", 400, "blocked"),
        ((20, 0), "cannon", 400, "out_of_bounds"),
        ((-1, 3), "cannon", 400, "out_of_bounds"),
        ((5, 5), "missile", 150, "insufficient_funds"),
        ((5, 5), "ballista", 400, "unknown_kind"),
    ],
)
def test_placement_rejections(cell: tuple[int, int], kind: str, money: int, reason: str) -> None:
    m = default_map()
    s = GameState(money=money)
    result = place_tower(s, m, cell[0], cell[1], kind)
    assert not result.ok
    assert result.reason == reason
    assert s.money == money
    assert s.registry.towers == {}


def test_occupied_cell_is_rejected() -> None:
    m = default_map()
    s = GameState(money=1000)
    place_tower(s, m, 5, 5, "cannon")
    assert placement_error(s, m, 5, 5, "laser") == "occupied"
    assert not can_place_tower(s, m, 5, 5, "laser")
    assert s.money == 900


def test_commands_rejected_after_game_over() -> None:
    m = default_map()
    s = GameState(money=1000)
    place_tower(s, m, 5, 5, "cannon")
    s.game_over = True

    assert place_tower(s, m, 6, 5, "cannon").reason == "game_over"
    assert upgrade_tower(s, 5, 5).reason == "game_over"
    assert sell_tower(s, 5, 5).reason == "game_over"


def test_sell_empty_cell_is_rejected() -> None:
    s = GameState()
    assert sell_tower(s, 5, 5).reason == "no_tower"
    assert upgrade_tower(s, 5, 5).reason == "no_tower"


def test_open_cells_excludes_route_and_towers() -> None:
    m = default_map()
    s = GameState(money=400)
    before = open_cells(s, m)
    assert (3, 4) not in before
    assert (5, 5) in before

    place_tower(s, m, 5, 5, "cannon")
    after = open_cells(s, m)
    assert (5, 5) not in after
    assert len(after) == len(before) - 1


# engine commands


def test_engine_act_dispatches_commands() -> None:
    engine = Engine()
    result = engine.act("PLACE_TOWER", {"cell_x": 5, "cell_y": 5, "kind": "laser"})
    assert result.ok
    assert engine.act("UPGRADE_TOWER", {"cell_x": 5, "cell_y": 5}).ok
    assert engine.act("SELL_TOWER", {"cell_x": 5, "cell_y": 5}).amount == int(300 * 0.7)
    assert engine.act("START_WAVE").ok
    assert engine.state.wave == 1


def test_engine_act_rejects_malformed_requests() -> None:
    engine = Engine()
    with pytest.raises(ValueError):
        engine.act("PLACE_TOWER", {"cell_x": 5})
    with pytest.raises(ValueError):
        engine.act("NUKE")


@pytest.mark.parametrize(
    ("requested", "expected"),
    [
        (0.1, 0.5),
        (1.4, 1.0),
        (1.5, 1.0),
        (2.5, 2.0),
        (9.0, 3.0),
    ],
)
def test_set_speed_snaps_to_supported_value(requested: float, expected: float) -> None:
    engine = Engine()
    assert engine.set_speed(requested).ok
    assert engine.state.speed == expected


def test_step_speed_is_clamped() -> None:
    engine = Engine()
    assert engine.state.speed == 1.0
    engine.step_speed(1)
    assert engine.state.speed == 2.0
    engine.step_speed(5)
    assert engine.state.speed == 3.0
    engine.step_speed(-10)
    assert engine.state.speed == 0.5


def test_speed_scales_simulation_clock() -> None:
    engine = Engine()
    engine.set_speed(2.0)
    engine.step(100.0)
    assert engine.state.now_ms == pytest.approx(200.0)


def _make_strip_engine(speed: float, x: float = -24.0) -> tuple[Engine, Enemy]:
    engine = Engine(MapData(name="strip", cols=12, rows=5, tile_size=48, waypoints=((-1, 2), (12, 2))))
    engine.set_speed(speed)
    registry = engine.state.registry
    enemy = registry.add_enemy(
        Enemy(
            id=registry.issue_id(),
            kind="gooner",
            x=x,
            y=120.0,
            health=10_000.0,
            max_health=10_000.0,
            reward=1,
            progress=(x + 24.0) / 624.0,
        )
    )
    return engine, enemy


def test_speed_scales_enemy_motion() -> None:
    slow_engine, slow_enemy = _make_strip_engine(1.0)
    fast_engine, fast_enemy = _make_strip_engine(2.0)

    slow_engine.step(500.0)
    fast_engine.step(500.0)

    assert slow_enemy.x == pytest.approx(1.0)
    assert fast_enemy.x == pytest.approx(26.0)
    assert fast_enemy.progress == pytest.approx(2 * slow_enemy.progress)


def test_speed_scales_tower_cooldown() -> None:
    # laser level 0 fires every 250 ms of simulation time
    slow_engine, _ = _make_strip_engine(1.0, x=168.0)
    fast_engine, _ = _make_strip_engine(2.0, x=168.0)
    for engine in (slow_engine, fast_engine):
        assert engine.place_tower("laser", (3, 1)).ok

    slow_engine.step(1.0)
    fast_engine.step(1.0)
    slow_tower = slow_engine.state.registry.tower_at(3, 1)
    fast_tower = fast_engine.state.registry.tower_at(3, 1)
    assert slow_tower.last_fired_ms == pytest.approx(1.0)
    assert fast_tower.last_fired_ms == pytest.approx(2.0)

    slow_engine.step(130.0)
    fast_engine.step(130.0)
    assert slow_tower.last_fired_ms == pytest.approx(1.0)
    assert fast_tower.last_fired_ms == pytest.approx(262.0)


def test_observe_reports_snapshot() -> None:
    engine = Engine(seed=3)
    engine.place_tower("tesla", (5, 5))
    engine.start_wave()
    snapshot = engine.observe()

    assert snapshot["money"] == 400 - 180
    assert snapshot["lives"] == 20
    assert snapshot["wave"] == 1
    assert snapshot["wave_in_progress"] is True
    assert snapshot["pending_spawns"] == 6
    assert snapshot["next_wave"]["wave"] == 2
    assert snapshot["towers"][0]["cell"] == (5, 5)
    assert snapshot["towers"][0]["x"] == pytest.approx(5 * 48 + 24)
    assert snapshot["enemies"] == []
    assert snapshot["projectiles"] == []


def test_reset_restores_starting_values() -> None:
    engine = Engine(seed=11)
    engine.place_tower("cannon", (5, 5))
    engine.start_wave()
    engine.reset()

    s = engine.state
    assert (s.money, s.lives, s.wave) == (400, 20, 0)
    assert s.registry.towers == {}
    assert s.rng_state == 11
