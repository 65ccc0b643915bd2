from __future__ import annotations

from dataclasses import dataclass, fields, replace
import json
from pathlib import Path
from typing import Any


_SUPPORTED_SCHEMA_VERSIONS = {1}
_ALLOWED_KEYS: dict[str, Any] = {
    "schema_version": None,
    "economy": {
        "starting_money": None,
        "starting_lives": None,
        "sell_refund": None,
        "combo_window_ms": None,
        "combo_bonus": None,
    },
    "combat": {
        "projectile_speed": None,
        "hit_radius": None,
        "splash_falloff": None,
        "chain_radius": None,
        "chain_falloff": None,
        "slow_duration_ms": None,
        "slow_factor": None,
        "heal_radius": None,
        "heal_per_ms": None,
    },
    "clock": {
        "speeds": None,
    },
}


@dataclass(frozen=True, slots=True)
class GameConfig:
    # economy
    starting_money: int = 400
    starting_lives: int = 20
    sell_refund: float = 0.7
    combo_window_ms: float = 1500.0
    combo_bonus: float = 0.1

    # combat
    projectile_speed: float = 500.0
    hit_radius: float = 12.0
    splash_falloff: float = 0.5
    chain_radius: float = 100.0
    chain_falloff: float = 0.7
    slow_duration_ms: float = 2000.0
    slow_factor: float = 0.5
    heal_radius: float = 80.0
    heal_per_ms: float = 0.5 / 16.0

    # clock
    speeds: tuple[float, ...] = (0.5, 1.0, 2.0, 3.0)


DEFAULT_CONFIG = GameConfig()


def load_json_config(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        payload = json.load(f)
    if not isinstance(payload, dict):
        raise ValueError(f"config root must be a JSON object: {p}")
    _validate_config(payload)
    return payload


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in out and isinstance(out[key], dict) and isinstance(value, dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = value
    return out


def apply_overrides(cfg: dict[str, Any], overrides_list: list[str] | None) -> dict[str, Any]:
    if not overrides_list:
        return cfg

    out = cfg
    for item in overrides_list:
        if "=" not in item:
            raise ValueError(f"override must contain '=': {item}")
        path_str, value_str = item.split("=", 1)
        if not path_str:
            raise ValueError(f"override path empty: {item}")
        keys = path_str.split(".")
        if any(not key for key in keys):
            raise ValueError(f"override path has empty segment: {item}")
        value = _cast_scalar(value_str)

        cursor = out
        for key in keys[:-1]:
            if key not in cursor or not isinstance(cursor[key], dict):
                cursor[key] = {}
            cursor = cursor[key]
        cursor[keys[-1]] = value
    _validate_config(out)
    return out


def config_from_dict(cfg: dict[str, Any], base: GameConfig = DEFAULT_CONFIG) -> GameConfig:
    """Flatten the economy/combat/clock sections onto a GameConfig."""
    known = {f.name for f in fields(GameConfig)}
    values: dict[str, Any] = {}
    for section in ("economy", "combat", "clock"):
        for key, value in (cfg.get(section) or {}).items():
            if key in known:
                values[key] = value
    if "speeds" in values:
        speeds = values["speeds"]
        if not isinstance(speeds, (list, tuple)) or not speeds:
            raise ValueError("clock.speeds must be a non-empty list of numbers")
        values["speeds"] = tuple(sorted(float(s) for s in speeds))
        if values["speeds"][0] <= 0:
            raise ValueError("clock.speeds entries must be numbers > 0")
    return replace(base, **values)


def load_game_config(path: str | Path | None = None, overrides: list[str] | None = None) -> GameConfig:
    cfg: dict[str, Any] = {"schema_version": 1}
    if path is not None:
        cfg = load_json_config(path)
    cfg = apply_overrides(cfg, overrides)
    return config_from_dict(cfg)


def _cast_scalar(value: str) -> Any:
    lowered = value.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    if "," in value:
        return [_cast_scalar(part) for part in value.split(",") if part.strip()]
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_config(cfg: dict[str, Any]) -> None:
    unknown = _find_unknown_keys(cfg, _ALLOWED_KEYS, path="")
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ValueError(f"unknown config keys: {unknown_str}")

    schema_version = cfg.get("schema_version", 1)
    if schema_version not in _SUPPORTED_SCHEMA_VERSIONS:
        raise ValueError(f"unsupported schema_version: {schema_version}")

    for section in ("economy", "combat"):
        section_cfg = cfg.get(section)
        if section_cfg is None:
            continue
        if not isinstance(section_cfg, dict):
            raise ValueError(f"config '{section}' must be a JSON object")
        for key, value in section_cfg.items():
            if not _is_number(value):
                raise ValueError(f"config '{section}.{key}' must be a number")
            if value < 0:
                raise ValueError(f"config '{section}.{key}' must be >= 0")

    clock = cfg.get("clock")
    if clock is not None:
        if not isinstance(clock, dict):
            raise ValueError("config 'clock' must be a JSON object")
        speeds = clock.get("speeds")
        if speeds is not None:
            if not isinstance(speeds, list) or not speeds:
                raise ValueError("clock.speeds must be a non-empty list of numbers")
            for speed in speeds:
                if not _is_number(speed) or speed <= 0:
                    raise ValueError("clock.speeds entries must be numbers > 0")

    economy = cfg.get("economy") or {}
    if economy.get("starting_lives") == 0:
        raise ValueError("economy.starting_lives must be >= 1")


def _find_unknown_keys(value: Any, allowed: Any, *, path: str) -> list[str]:
    if not isinstance(value, dict) or not isinstance(allowed, dict):
        return []
    unknown: list[str] = []
    for key, sub_value in value.items():
        if key not in allowed:
            unknown.append(f"{path}{key}" if path else key)
            continue
        sub_allowed = allowed[key]
        if isinstance(sub_value, dict) and isinstance(sub_allowed, dict):
            child_path = f"{path}{key}."
            unknown.extend(_find_unknown_keys(sub_value, sub_allowed, path=child_path))
    return unknown
