import pytest

from soluna.config.schema import RateLimitConfig
from soluna.gateway.middleware.rate_limit import RateLimiter


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    # Reference config: 1 token every 2s, burst of 10.
    return RateLimiter(RateLimitConfig(tokens_per_interval=1, interval_ms=2000, bucket_size=10), clock=clock)
