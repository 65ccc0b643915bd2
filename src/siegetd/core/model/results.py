from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


RejectReason = Literal[
    "insufficient_funds",
    "out_of_bounds",
    "blocked",
    "occupied",
    "already_in_progress",
    "max_level",
    "no_tower",
    "unknown_kind",
    "game_over",
]


@dataclass(frozen=True, slots=True)
class CommandResult:
    ok: bool
    reason: RejectReason | None = None
    # refund for sell, cost paid for place/upgrade
    amount: int = 0

    def __bool__(self) -> bool:
        return self.ok


def accepted(amount: int = 0) -> CommandResult:
    return CommandResult(ok=True, amount=int(amount))


def rejected(reason: RejectReason) -> CommandResult:
    return CommandResult(ok=False, reason=reason)
