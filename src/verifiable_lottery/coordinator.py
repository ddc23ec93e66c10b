from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .config import Settings, to_display
from .draw import pick_winner
from .errors import PayoutFailed, UnknownRequest, UpkeepNotNeeded
from .events import (
    EnteredLottery,
    EventBus,
    PickedWinner,
    RequestedWinner,
    RequestExpired,
)
from .history import HistoryRecorder, LotteryRecord
from .ledger import EntryLedger, Round, RoundState
from .oracle import RandomnessOracle
from .payments import PaymentRail
from .upkeep import UpkeepCheck, check_upkeep

log = logging.getLogger("lottery.coordinator")


@dataclass(frozen=True)
class PendingRequest:
    request_id: str
    issued_at: float


class Lottery:
    """
    One lottery instance: the live round, its history and the draw state machine.

    OPEN -> DRAWING on perform_upkeep, DRAWING -> OPEN when the randomness for
    the outstanding request is delivered and the winner has been paid. Every
    state-changing call runs under a single lock, so an upkeep check and the
    state flip it guards can never interleave with another caller. The lock is
    released while the oracle request is in flight; the round is already
    DRAWING then, and a fulfillment waits until the request id is known.
    """

    def __init__(
        self,
        settings: Settings,
        oracle: RandomnessOracle,
        payment_rail: PaymentRail,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self._clock = clock
        self._lock = threading.Lock()
        self._request_done = threading.Condition(self._lock)
        self._requesting = False
        self._round = Round(
            entry_fee=settings.entry_fee,
            interval_s=settings.interval_s,
            last_draw_timestamp=clock(),
        )
        self._ledger = EntryLedger(self._round)
        self._history = HistoryRecorder()
        self._pending: Optional[PendingRequest] = None
        self._recent_winner: Optional[str] = None
        self._rail = payment_rail
        self._oracle = oracle
        self._oracle.bind(self.fulfill_random_words)
        self.events = EventBus()

    def enter(self, participant: str, contribution: int) -> None:
        with self._lock:
            self._ledger.enter(participant, contribution)
        self.events.emit(EnteredLottery(participant))

    def upkeep_status(self) -> UpkeepCheck:
        with self._lock:
            return check_upkeep(self._round, self._clock())

    def check_upkeep(self) -> bool:
        return self.upkeep_status().upkeep_needed

    def perform_upkeep(self) -> str:
        with self._lock:
            now = self._clock()
            check = check_upkeep(self._round, now)
            if not check.upkeep_needed:
                raise UpkeepNotNeeded(check.balance, check.player_count, check.state.value)

            self._round.state = RoundState.DRAWING
            self._requesting = True

        try:
            request_id = self._oracle.request_random_words(self.settings.oracle)
        except Exception:
            with self._lock:
                # Nothing else could have touched a DRAWING round meanwhile.
                self._round.state = RoundState.OPEN
                self._requesting = False
                self._request_done.notify_all()
            raise

        with self._lock:
            self._pending = PendingRequest(request_id=request_id, issued_at=now)
            self._requesting = False
            self._request_done.notify_all()
            log.info(
                "Draw requested: %s (%d players, pot %s)",
                request_id,
                check.player_count,
                to_display(check.balance),
            )

        self.events.emit(RequestedWinner(request_id))
        return request_id

    def fulfill_random_words(self, request_id: str, random_words: Sequence[int]) -> LotteryRecord:
        with self._lock:
            while self._requesting:
                self._request_done.wait()
            pending = self._pending
            if pending is None or pending.request_id != request_id:
                log.warning("Rejected fulfillment for unknown request %s", request_id)
                raise UnknownRequest(request_id)
            if not random_words:
                raise RuntimeError(f"Fulfillment for {request_id} carries no random words.")

            # Stage: nothing below mutates the round until the payout succeeds.
            players = list(self._round.players)
            word = int(random_words[0])
            idx, winner = pick_winner(players, word)
            amount = self._round.balance
            now = self._clock()

            try:
                delivered = self._rail.transfer(winner, amount)
            except Exception as e:
                log.warning("Payout to %s failed: %s", winner, e)
                raise PayoutFailed(winner, amount, str(e)) from e
            if not delivered:
                log.warning("Payout to %s rejected; round stays DRAWING", winner)
                raise PayoutFailed(winner, amount, "recipient rejected the transfer")

            # Commit.
            self._recent_winner = winner
            self._ledger.reset(now)
            self._round.state = RoundState.OPEN
            self._pending = None
            record = LotteryRecord(
                round_index=self._history.next_index(),
                timestamp=now,
                winner=winner,
                payout_amount=amount,
                request_id=request_id,
                random_word=word,
                entrants=tuple(players),
            )
            self._history.record_round(record)
            log.info(
                "Round %d won by %s (index %d of %d), paid %s",
                record.round_index,
                winner,
                idx,
                len(players),
                to_display(amount),
            )

        self.events.emit(PickedWinner(winner))
        return record

    def expire_pending_request(self) -> Optional[str]:
        """
        Drops a request the oracle has not answered within `request_timeout_s`.

        The round reopens with its players and pot intact, so the next upkeep
        issues a fresh request. A late callback for the dropped id is then
        rejected as unknown. Does nothing when no timeout is configured.
        """
        timeout = self.settings.request_timeout_s
        if timeout is None:
            return None
        with self._lock:
            pending = self._pending
            if pending is None or self._clock() - pending.issued_at < timeout:
                return None
            self._pending = None
            self._round.state = RoundState.OPEN
            log.warning("Request %s expired after %ss; round reopened", pending.request_id, timeout)

        self._oracle.cancel(pending.request_id)
        self.events.emit(RequestExpired(pending.request_id))
        return pending.request_id

    # Read-only queries.

    def get_entry_fee(self) -> int:
        return self._round.entry_fee

    def get_interval(self) -> int:
        return self._round.interval_s

    def get_lottery_state(self) -> RoundState:
        with self._lock:
            return self._round.state

    def get_player(self, index: int) -> str:
        with self._lock:
            if index < 0 or index >= len(self._round.players):
                raise IndexError(f"No player at index {index}")
            return self._round.players[index]

    def get_number_of_players(self) -> int:
        with self._lock:
            return len(self._round.players)

    def get_recent_winner(self) -> Optional[str]:
        with self._lock:
            return self._recent_winner

    def get_last_timestamp(self) -> float:
        with self._lock:
            return self._round.last_draw_timestamp

    def get_balance(self) -> int:
        with self._lock:
            return self._round.balance

    def get_pending_request(self) -> Optional[PendingRequest]:
        with self._lock:
            return self._pending

    def get_round_count(self) -> int:
        with self._lock:
            return len(self._history)

    def get_past_lottery(self, round_index: int) -> LotteryRecord:
        with self._lock:
            return self._history.get_round(round_index)

    def get_past_lotteries(self) -> List[LotteryRecord]:
        with self._lock:
            return self._history.list_rounds()
