from __future__ import annotations

import logging
from dataclasses import dataclass

from .ledger import Round, RoundState

log = logging.getLogger("lottery.upkeep")


@dataclass(frozen=True)
class UpkeepCheck:
    upkeep_needed: bool
    time_passed: bool
    is_open: bool
    has_balance: bool
    has_players: bool
    balance: int
    player_count: int
    state: RoundState


def check_upkeep(round_: Round, now: float) -> UpkeepCheck:
    """Decides whether a draw may begin. Reads only; never mutates the round."""
    time_passed = (now - round_.last_draw_timestamp) >= round_.interval_s
    is_open = round_.state is RoundState.OPEN
    has_balance = round_.balance > 0
    has_players = len(round_.players) > 0
    check = UpkeepCheck(
        upkeep_needed=time_passed and is_open and has_balance and has_players,
        time_passed=time_passed,
        is_open=is_open,
        has_balance=has_balance,
        has_players=has_players,
        balance=round_.balance,
        player_count=len(round_.players),
        state=round_.state,
    )
    log.debug("Upkeep check: %s", check)
    return check
