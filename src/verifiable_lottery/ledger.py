from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from .errors import InsufficientContribution, RoundClosed

log = logging.getLogger("lottery.ledger")


class RoundState(str, Enum):
    OPEN = "OPEN"
    DRAWING = "DRAWING"


@dataclass
class Round:
    entry_fee: int
    interval_s: int
    last_draw_timestamp: float
    state: RoundState = RoundState.OPEN
    # Entry order decides index-based winner selection; duplicates allowed.
    players: List[str] = field(default_factory=list)
    balance: int = 0


class EntryLedger:
    """Participants of the live round. Callers serialize access."""

    def __init__(self, round_: Round) -> None:
        self.round = round_

    def enter(self, participant: str, contribution: int) -> None:
        if contribution < self.round.entry_fee:
            raise InsufficientContribution(contribution, self.round.entry_fee)
        if self.round.state is not RoundState.OPEN:
            raise RoundClosed(self.round.state.value)
        self.round.players.append(participant)
        self.round.balance += int(contribution)
        log.info("Entered: %s (%d players)", participant, len(self.round.players))

    def reset(self, now: float) -> None:
        self.round.players = []
        self.round.balance = 0
        self.round.last_draw_timestamp = now


def load_participants(path: str) -> List[str]:
    """One participant per line; blank lines and `#` comments are skipped."""
    out: List[str] = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            p = line.strip()
            if not p or p.startswith("#"):
                continue
            out.append(p)
    return out
