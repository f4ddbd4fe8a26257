import pytest

from iris_core.config import OTPConfig
from iris_core.otp import OTPService
from iris_core.rate_limit import InMemoryStore, OTPRateTracker


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = 0):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def secret_key():
    return "test-secret-key"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(secret_key, clock):
    return OTPService(secret_key, clock=clock)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def tracker(store, clock):
    return OTPRateTracker(store=store, config=OTPConfig(), clock=clock)
