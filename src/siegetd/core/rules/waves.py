# src/siegetd/core/rules/waves.py
from __future__ import annotations

from dataclasses import dataclass

BOSS_PERIOD = 10


@dataclass(frozen=True, slots=True)
class WaveGroup:
    kind: str
    count: int
    delay_ms: float


@dataclass(frozen=True, slots=True)
class WaveComposition:
    number: int
    groups: tuple[WaveGroup, ...]
    bonus: int

    @property
    def enemy_count(self) -> int:
        return sum(group.count for group in self.groups)


def generate_wave(n: int) -> WaveComposition:
    """
    Composition of wave n (1-based). Pure: same n, same groups and bonus.

    - gooners always, more of them and faster spawns as n grows
    - edgelords from wave 3, chonkers from 5, copium dealers from 8
    - one boss per elapsed period on every BOSS_PERIOD-th wave
    """
    if n < 1:
        raise ValueError(f"Wave numbers start at 1, got {n}")

    groups: list[WaveGroup] = [
        WaveGroup("gooner", 5 + int(n * 1.5), float(max(400, 800 - n * 20))),
    ]
    if n >= 3:
        groups.append(WaveGroup("edgelord", 2 + int(n * 0.8), 300.0))
    if n >= 5:
        groups.append(WaveGroup("chonker", 1 + int((n - 4) * 0.5), 1500.0))
    if n >= 8:
        groups.append(WaveGroup("copium", 1 + int((n - 7) * 0.3), 2000.0))
    if n % BOSS_PERIOD == 0:
        groups.append(WaveGroup("final_boss", n // BOSS_PERIOD, 3000.0))

    return WaveComposition(number=n, groups=tuple(groups), bonus=50 + n * 15)


def wave_preview(n: int) -> dict:
    wave = generate_wave(n)
    return {
        "wave": wave.number,
        "bonus": wave.bonus,
        "groups": [
            {"kind": group.kind, "count": group.count, "delay_ms": group.delay_ms}
            for group in wave.groups
        ],
    }
