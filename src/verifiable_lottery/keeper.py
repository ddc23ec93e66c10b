from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from .coordinator import Lottery
from .errors import LotteryError, OracleError, UpkeepNotNeeded
from .oracle import HttpOracleClient, RandomnessOracle

log = logging.getLogger("lottery.keeper")


class Keeper:
    """Periodically drives a lottery: expiry, oracle polling, then upkeep."""

    def __init__(
        self,
        lottery: Lottery,
        oracle: Optional[RandomnessOracle] = None,
        poll_interval_s: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.lottery = lottery
        self.oracle = oracle
        self.poll_interval_s = (
            poll_interval_s if poll_interval_s is not None else lottery.settings.poll_interval_s
        )
        self.sleep = sleep

    def tick(self) -> Optional[str]:
        """One keeper pass. Returns the request id when a draw was started."""
        self.lottery.expire_pending_request()

        if isinstance(self.oracle, HttpOracleClient):
            try:
                self.oracle.poll()
            except LotteryError as e:
                log.warning("Oracle poll failed: %s", e)

        if not self.lottery.check_upkeep():
            return None
        try:
            return self.lottery.perform_upkeep()
        except UpkeepNotNeeded as e:
            # Another caller started the draw between our check and perform.
            log.info("Upkeep lost race: %s", e)
            return None
        except OracleError as e:
            log.warning("Randomness request failed: %s", e)
            return None

    def run(self, max_ticks: int | None = None, stop_event: threading.Event | None = None) -> int:
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            if stop_event is not None and stop_event.is_set():
                break
            self.tick()
            ticks += 1
            if max_ticks is None or ticks < max_ticks:
                self.sleep(self.poll_interval_s)
        return ticks
