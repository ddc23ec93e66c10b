"""Failures a caller of the lottery can observe."""

from __future__ import annotations


class LotteryError(RuntimeError):
    """Base class for every lottery failure."""


class InsufficientContribution(LotteryError):
    def __init__(self, contribution: int, entry_fee: int) -> None:
        super().__init__(f"Contribution {contribution} is below the entry fee {entry_fee}.")
        self.contribution = contribution
        self.entry_fee = entry_fee


class RoundClosed(LotteryError):
    def __init__(self, state: str) -> None:
        super().__init__(f"Round is not open (state={state}).")
        self.state = state


class UpkeepNotNeeded(LotteryError):
    """Carries the snapshot that made the upkeep check fail."""

    def __init__(self, balance: int, player_count: int, state: str) -> None:
        super().__init__(
            f"Upkeep not needed: balance={balance} players={player_count} state={state}"
        )
        self.balance = balance
        self.player_count = player_count
        self.state = state


class UnknownRequest(LotteryError):
    def __init__(self, request_id: str) -> None:
        super().__init__(f"No such request: {request_id}")
        self.request_id = request_id


class PayoutFailed(LotteryError):
    def __init__(self, winner: str, amount: int, reason: str = "") -> None:
        msg = f"Payout of {amount} to {winner} failed"
        super().__init__(f"{msg}: {reason}" if reason else f"{msg}.")
        self.winner = winner
        self.amount = amount
        self.reason = reason


class OracleError(LotteryError):
    """Transport or RPC failure talking to the randomness provider."""
