"""
Tests for the sliding window limiter and client address resolution.
"""

from unittest.mock import Mock

from fastapi import Request

from backend.utils.rate_limit import InMemorySlidingWindowLimiter, client_address


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_mock_request(ip: str | None = "192.168.1.1", forwarded: str | None = None) -> Request:
    request = Mock(spec=Request)
    if ip is None:
        request.client = None
    else:
        request.client = Mock()
        request.client.host = ip
    request.headers = {"x-forwarded-for": forwarded} if forwarded else {}
    return request


def test_allows_up_to_max_requests_per_window():
    limiter = InMemorySlidingWindowLimiter(max_requests=10, window_seconds=60, clock=FakeClock())

    assert all(limiter.allow("10.0.0.1") for _ in range(10))
    allowed, retry_after = limiter.check("10.0.0.1")

    assert allowed is False
    assert retry_after == 61


def test_window_slides_as_old_requests_expire():
    clock = FakeClock()
    limiter = InMemorySlidingWindowLimiter(max_requests=2, window_seconds=60, clock=clock)

    assert limiter.allow("k")
    clock.now += 30
    assert limiter.allow("k")
    assert not limiter.allow("k")

    clock.now += 30
    assert limiter.allow("k")
    assert not limiter.allow("k")


def test_rejected_requests_do_not_extend_the_window():
    clock = FakeClock()
    limiter = InMemorySlidingWindowLimiter(max_requests=1, window_seconds=60, clock=clock)

    assert limiter.allow("k")
    clock.now += 59
    assert not limiter.allow("k")
    clock.now += 1
    assert limiter.allow("k")


def test_keys_are_independent():
    limiter = InMemorySlidingWindowLimiter(max_requests=1, window_seconds=60, clock=FakeClock())

    assert limiter.allow("a")
    assert limiter.allow("b")
    assert not limiter.allow("a")


def test_remaining_and_reset():
    limiter = InMemorySlidingWindowLimiter(max_requests=3, window_seconds=60, clock=FakeClock())

    assert limiter.remaining("k") == 3
    limiter.allow("k")
    assert limiter.remaining("k") == 2

    limiter.reset("k")
    assert limiter.remaining("k") == 3

    limiter.allow("k")
    limiter.allow("other")
    limiter.reset()
    assert limiter.remaining("k") == 3
    assert limiter.remaining("other") == 3


def test_client_address_uses_last_forwarded_hop_when_trusted():
    request = make_mock_request("10.0.0.2", forwarded="198.51.100.1, 203.0.113.9")

    assert client_address(request, trust_proxy=True) == "203.0.113.9"


def test_client_address_ignores_forwarded_header_when_untrusted():
    request = make_mock_request("10.0.0.2", forwarded="203.0.113.9")

    assert client_address(request, trust_proxy=False) == "10.0.0.2"


def test_client_address_without_peer():
    assert client_address(make_mock_request(None), trust_proxy=True) == "unknown"
