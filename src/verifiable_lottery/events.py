from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Union

log = logging.getLogger("lottery.events")


@dataclass(frozen=True)
class EnteredLottery:
    participant: str


@dataclass(frozen=True)
class RequestedWinner:
    request_id: str


@dataclass(frozen=True)
class PickedWinner:
    winner: str


@dataclass(frozen=True)
class RequestExpired:
    request_id: str


Event = Union[EnteredLottery, RequestedWinner, PickedWinner, RequestExpired]
Listener = Callable[[Event], None]


class EventBus:
    def __init__(self) -> None:
        self._listeners: List[Listener] = []
        self.history: List[Event] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def emit(self, event: Event) -> None:
        self.history.append(event)
        log.debug("Event %s", event)
        # Events follow committed changes; listener errors are logged, never raised.
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                log.exception("Listener %r failed on %s", listener, event)
