import argparse
import random

from gymnasium.utils.env_checker import check_env

from siegetd.ai.env import SiegeTDEnv


def _choose_action(mask, rng: random.Random) -> int:
    valid = [idx for idx, allowed in enumerate(mask) if bool(allowed)]
    if not valid:
        raise RuntimeError("No valid actions available")
    return rng.choice(valid)


def main() -> int:
    ap = argparse.ArgumentParser(description="Run gymnasium's env checker, then a short random rollout.")
    ap.add_argument("--map", default=None, help="Map name (e.g. canyon) or path to json")
    ap.add_argument("--seed", type=int, default=123)
    ap.add_argument("--steps", type=int, default=20)
    ap.add_argument("--max-build-actions", type=int, default=100)
    ap.add_argument("--max-wave-ticks", type=int, default=20_000)
    args = ap.parse_args()

    env = SiegeTDEnv(
        map_path=args.map,
        max_build_actions=args.max_build_actions,
        max_wave_ticks=args.max_wave_ticks,
    )
    check_env(env, skip_render_check=True)

    rng = random.Random(args.seed)
    env.reset(seed=args.seed)
    for step_idx in range(args.steps):
        action = _choose_action(env.action_masks(), rng)
        _, _, terminated, truncated, _ = env.step(action)
        if terminated or truncated:
            env.reset(seed=args.seed + step_idx + 1)
    print(f"ok steps={args.steps} actions={env.action_space.n}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
