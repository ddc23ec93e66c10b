import pytest

from verifiable_lottery.config import Settings
from verifiable_lottery.coordinator import Lottery
from verifiable_lottery.oracle import LocalVrfOracle
from verifiable_lottery.payments import InMemoryPaymentRail

ENTRY_FEE = 10**16  # 0.01
INTERVAL_S = 3600
PLAYERS = ["alice", "bob", "carol"]


class FakeClock:
    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(entry_fee=ENTRY_FEE, interval_s=INTERVAL_S)


@pytest.fixture
def oracle(clock):
    return LocalVrfOracle("test-secret", clock=clock)


@pytest.fixture
def rail():
    return InMemoryPaymentRail()


@pytest.fixture
def lottery(settings, oracle, rail, clock):
    return Lottery(settings, oracle, rail, clock=clock)


@pytest.fixture
def ready_lottery(lottery, clock):
    """Three paid entries and the interval elapsed: upkeep is due."""
    for p in PLAYERS:
        lottery.enter(p, ENTRY_FEE)
    clock.advance(INTERVAL_S + 1)
    return lottery
