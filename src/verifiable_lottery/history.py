from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class LotteryRecord:
    round_index: int
    timestamp: float
    winner: str
    payout_amount: int
    request_id: str
    random_word: int
    entrants: Tuple[str, ...]


class HistoryRecorder:
    """Append-only log of finished rounds, indexed from 1."""

    def __init__(self) -> None:
        self._records: Dict[int, LotteryRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def next_index(self) -> int:
        return len(self._records) + 1

    def record_round(self, entry: LotteryRecord) -> None:
        if entry.round_index != self.next_index():
            raise RuntimeError(
                f"Round {entry.round_index} out of order: expected {self.next_index()}"
            )
        self._records[entry.round_index] = entry

    def get_round(self, round_index: int) -> LotteryRecord:
        try:
            return self._records[round_index]
        except KeyError:
            raise KeyError(f"No round {round_index} (rounds start at 1)") from None

    def list_rounds(self) -> List[LotteryRecord]:
        return [self._records[i] for i in range(1, len(self._records) + 1)]
