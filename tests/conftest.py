import pytest

from virtual_clock.core.clock import VirtualClock
from virtual_clock.io.persistence import MemoryStorage
from virtual_clock.state.store import ClockStore


class FakeRealClock:
    """Deterministic real-time source in ms; only moves when advanced."""

    def __init__(self, start: float = 1_700_000_000_000.0):
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def real():
    return FakeRealClock()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def clock(real, storage):
    return VirtualClock(store=ClockStore(storage), real_now=real)
