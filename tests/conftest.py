import pytest

from qr_event.infrastructure.otp.memory_store import InMemoryOTPStore


class FakeClock:
    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def now_ms(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryOTPStore(clock=clock, default_ttl_ms=60_000)
