from soluna.config.schema import RateLimitConfig
from soluna.gateway.middleware.rate_limit import RateLimiter


def test_first_request_is_admitted_and_charged(limiter):
    """An unseen client is admitted and starts one token down."""
    assert limiter.get_remaining_tokens("new-client") == 10
    assert limiter.is_allowed("new-client")
    assert limiter.get_remaining_tokens("new-client") == 9
    assert "new-client" in limiter


def test_rate_limiter_blocks_excess_requests(limiter):
    """Burst capacity is spent exactly once with no time passing."""
    results = [limiter.is_allowed("user1") for _ in range(10)]
    assert results == [True] * 10

    assert not limiter.is_allowed("user1"), "11th request should be blocked"
    assert limiter.get_remaining_tokens("user1") == 0


def test_reference_scenario(limiter, clock):
    for _ in range(10):
        assert limiter.is_allowed("1.2.3.4")
    assert not limiter.is_allowed("1.2.3.4")
    assert limiter.get_reset_time_seconds("1.2.3.4") == 2

    clock.advance(2000)
    assert limiter.is_allowed("1.2.3.4")


def test_rate_limiter_refills_tokens(clock):
    """Waiting one interval grants exactly tokens_per_interval more requests."""
    limiter = RateLimiter(RateLimitConfig(tokens_per_interval=3, interval_ms=1000, bucket_size=5), clock=clock)
    for _ in range(5):
        assert limiter.is_allowed("user1")
    assert not limiter.is_allowed("user1")

    clock.advance(1000)
    assert [limiter.is_allowed("user1") for _ in range(4)] == [True, True, True, False]


def test_refill_is_clamped_to_bucket_size(limiter, clock):
    limiter.is_allowed("user1")
    clock.advance(24 * 60 * 60 * 1000)

    results = [limiter.is_allowed("user1") for _ in range(11)]

    assert results.count(True) == 10
    assert results[-1] is False


def test_rate_limiter_per_key_isolation(limiter):
    """Test that rate limits are isolated per key."""
    for _ in range(10):
        limiter.is_allowed("user1")
    assert not limiter.is_allowed("user1")

    assert limiter.is_allowed("user2"), "User2 should have separate limit"
    assert limiter.get_remaining_tokens("user2") == 9
    assert limiter.get_remaining_tokens("user1") == 0


def test_empty_identifier_is_an_ordinary_key(limiter):
    assert limiter.is_allowed("")
    assert limiter.get_remaining_tokens("") == 9
    assert limiter.get_remaining_tokens("other") == 10


def test_partial_interval_is_discarded_by_default(limiter, clock):
    for _ in range(10):
        limiter.is_allowed("user1")

    # Two checks 1.5s apart each restart the interval, so 3s in total yields nothing.
    clock.advance(1500)
    assert not limiter.is_allowed("user1")
    clock.advance(1500)
    assert not limiter.is_allowed("user1")

    clock.advance(2000)
    assert limiter.is_allowed("user1")


def test_partial_interval_is_carried_when_enabled(clock):
    cfg = RateLimitConfig(tokens_per_interval=1, interval_ms=2000, bucket_size=10, carry_partial_interval=True)
    limiter = RateLimiter(cfg, clock=clock)
    for _ in range(10):
        limiter.is_allowed("user1")

    clock.advance(1500)
    assert not limiter.is_allowed("user1")
    clock.advance(1500)
    assert limiter.is_allowed("user1")
    # 1000ms of progress remains toward the next token.
    clock.advance(1000)
    assert limiter.is_allowed("user1")


def test_remaining_tokens_does_not_refill(limiter, clock):
    for _ in range(10):
        limiter.is_allowed("user1")
    clock.advance(10_000)

    assert limiter.get_remaining_tokens("user1") == 0
    assert limiter.get_reset_time_seconds("user1") == 2


def test_reset_time_is_zero_when_tokens_available(limiter):
    assert limiter.get_reset_time_seconds("unknown-client") == 0
    limiter.is_allowed("user1")
    assert limiter.get_reset_time_seconds("user1") == 0


def test_reset_time_rounds_up_to_whole_seconds(clock):
    limiter = RateLimiter(RateLimitConfig(tokens_per_interval=2, interval_ms=2500, bucket_size=1), clock=clock)
    assert limiter.is_allowed("user1")
    # One token at 2 per 2500ms is 1250ms away.
    assert limiter.get_reset_time_seconds("user1") == 2


def test_clock_going_backwards_never_rewinds_last_refill(limiter, clock):
    for _ in range(10):
        limiter.is_allowed("user1")
    clock.advance(-5000)
    assert not limiter.is_allowed("user1")

    clock.advance(5000 + 2000)
    assert limiter.is_allowed("user1")


def test_bucket_size_of_one(clock):
    limiter = RateLimiter(RateLimitConfig(bucket_size=1), clock=clock)
    assert limiter.is_allowed("user1")
    assert not limiter.is_allowed("user1")
    assert limiter.get_reset_time_seconds("user1") == 2
