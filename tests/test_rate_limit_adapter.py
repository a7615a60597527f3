"""Unit tests for the sliding-window rate limiter adapter."""

import fakeredis
import pytest

from simple_throttle.adapters.rate_limit.sliding_window import SlidingWindowRateLimiter


def test_allows_up_to_limit_in_same_window(clock) -> None:
    limiter = SlidingWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is True
    result = limiter.consume("k")
    assert result.allowed is True
    assert result.remaining == 0


def test_blocks_when_over_limit(clock) -> None:
    limiter = SlidingWindowRateLimiter(limit=2, window_seconds=60, clock=clock)

    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is True

    blocked = limiter.consume("k")
    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.retry_after_seconds == 60
    assert blocked.reset_at == int(clock()) + 60


def test_frees_budget_as_requests_age_out(clock) -> None:
    limiter = SlidingWindowRateLimiter(limit=2, window_seconds=10, clock=clock)

    assert limiter.consume("k").allowed is True
    clock.advance(5)
    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is False

    # Only the first request has left the window.
    clock.advance(5)
    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is False


def test_isolated_by_key(clock) -> None:
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    assert limiter.consume("k1").allowed is True
    assert limiter.consume("k1").allowed is False

    assert limiter.consume("k2").allowed is True


def test_workers_sharing_a_store_share_the_budget(clock) -> None:
    server = fakeredis.FakeServer()
    worker_a = SlidingWindowRateLimiter(
        limit=2, window_seconds=60, store=fakeredis.FakeRedis(server=server), clock=clock
    )
    worker_b = SlidingWindowRateLimiter(
        limit=2, window_seconds=60, store=fakeredis.FakeRedis(server=server), clock=clock
    )

    assert worker_a.consume("k").allowed is True
    assert worker_b.consume("k").allowed is True
    assert worker_a.consume("k").allowed is False
    assert worker_b.consume("k").allowed is False


def test_cost_consumes_multiple_units(clock) -> None:
    limiter = SlidingWindowRateLimiter(limit=5, window_seconds=60, clock=clock)

    result = limiter.consume("k", cost=3)
    assert result.allowed is True
    assert result.remaining == 2
    assert limiter.consume("k", cost=3).allowed is False


def test_uses_namespaced_throttle_names(clock, store) -> None:
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=60, namespace="api", clock=clock)

    limiter.consume("abc")

    assert limiter.throttle_for("abc").name == "api.abc"
    assert store.llen("simple_throttle.api.abc") == 1


@pytest.mark.parametrize("window_seconds", [0, -5])
def test_invalid_constructor_args(window_seconds: float) -> None:
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(limit=1, window_seconds=window_seconds)


def test_invalid_consume_args() -> None:
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=60)

    with pytest.raises(ValueError):
        limiter.consume("")

    with pytest.raises(ValueError):
        limiter.consume("k", cost=0)
