from __future__ import annotations
import argparse
import logging

from siegetd.ai.actions import StartWave, action_space_spec, apply_action
from siegetd.ai.env import load_map
from siegetd.ai.policies.baseline import make_policy
from siegetd.core.config import load_game_config
from siegetd.core.engine import Engine


logger = logging.getLogger(__name__)

MAX_BUILD_ACTIONS = 200
MAX_WAVE_TICKS = 200_000


def play(engine: Engine, policy, *, waves: int) -> None:
    spec = action_space_spec(engine.map, speeds=engine.config.speeds)
    policy.reset(engine, spec)
    state = engine.state
    while state.wave < waves and not state.game_over:
        for _ in range(MAX_BUILD_ACTIONS):
            action = policy.next_action(engine, spec)
            if isinstance(action, StartWave):
                break
            apply_action(engine, action, spec)
        engine.start_wave()

        for _ in range(MAX_WAVE_TICKS):
            if engine.step(engine.FRAME_MS) is not None:
                break
        else:
            logger.error("wave=%s did not finish within %s ticks", state.wave, MAX_WAVE_TICKS)
            return


def main() -> int:
    ap = argparse.ArgumentParser(description="Run waves headless with a baseline policy.")
    ap.add_argument("--waves", type=int, default=10)
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--map", default=None, help="Map name (e.g. canyon) or path to json")
    ap.add_argument("--config", default=None, help="JSON config file")
    ap.add_argument("--set", action="append", default=[], dest="overrides", help="Override key=value")
    ap.add_argument("--policy", choices=("greedy", "random"), default="greedy")
    ap.add_argument("--max-towers", type=int, default=None)
    ap.add_argument("--speed", type=float, default=None)
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_game_config(args.config, args.overrides)
    engine = Engine(load_map(args.map), config, seed=args.seed)
    if args.speed is not None:
        engine.set_speed(args.speed)

    policy = make_policy(args.policy, seed=args.seed, max_towers=args.max_towers)
    play(engine, policy, waves=max(0, args.waves))

    summary = engine.summary()
    print(
        f"waves={summary.waves_survived} completed={summary.waves_completed} "
        f"kills={summary.total_kills} money={summary.money} lives={summary.lives}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
