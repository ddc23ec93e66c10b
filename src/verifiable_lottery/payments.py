from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Iterable, Protocol, Set

log = logging.getLogger("lottery.payments")


class PaymentRail(Protocol):
    def transfer(self, recipient: str, amount: int) -> bool:
        """Moves `amount` to `recipient`. Returns False or raises on failure."""
        ...


class InMemoryPaymentRail:
    """Ledger of delivered payouts; recipients in `rejecting` refuse funds."""

    def __init__(self, rejecting: Iterable[str] = ()) -> None:
        self.balances: Dict[str, int] = defaultdict(int)
        self.rejecting: Set[str] = set(rejecting)

    def transfer(self, recipient: str, amount: int) -> bool:
        if recipient in self.rejecting:
            log.debug("Recipient %s rejected %d", recipient, amount)
            return False
        self.balances[recipient] += int(amount)
        return True

    def balance_of(self, recipient: str) -> int:
        return self.balances.get(recipient, 0)
