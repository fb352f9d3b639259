"""
Unit tests for the sliding window rate limiter
"""
from unittest.mock import patch

from starlette.requests import Request

from smartstore.core.config import settings
from smartstore.core.rate_limit import RateLimiter, get_client_ip


class TestRateLimiter:

    def test_allows_up_to_limit(self):
        limiter = RateLimiter()

        results = [limiter.is_allowed("ip:1", max_requests=3)[0] for _ in range(4)]

        assert results == [True, True, True, False]

    def test_remaining_counts_down(self):
        limiter = RateLimiter()

        _, remaining_first, _ = limiter.is_allowed("ip:1", max_requests=3)
        _, remaining_second, _ = limiter.is_allowed("ip:1", max_requests=3)

        assert (remaining_first, remaining_second) == (2, 1)

    def test_identifiers_are_independent(self):
        limiter = RateLimiter()
        limiter.is_allowed("ip:1", max_requests=1)

        assert limiter.is_allowed("ip:2", max_requests=1)[0]

    @patch("smartstore.core.rate_limit.time.time")
    def test_window_slides(self, mock_time):
        mock_time.return_value = 1000.0
        limiter = RateLimiter()
        limiter.is_allowed("ip:1", max_requests=1)

        mock_time.return_value = 1030.0
        allowed, _, retry_after = limiter.is_allowed("ip:1", max_requests=1)
        assert not allowed
        assert retry_after == 31

        mock_time.return_value = 1061.0
        assert limiter.is_allowed("ip:1", max_requests=1)[0]


def make_request(peer, forwarded_for=None):
    headers = [(b"x-forwarded-for", forwarded_for.encode())] if forwarded_for else []
    return Request({"type": "http", "method": "POST", "path": "/", "headers": headers, "client": (peer, 5000)})


class TestClientIp:
    """X-Forwarded-For is only trusted from configured proxies"""

    def test_header_is_ignored_by_default(self):
        with patch.object(settings, "TRUSTED_PROXIES", ""):
            assert get_client_ip(make_request("203.0.113.9", "1.2.3.4")) == "203.0.113.9"

    def test_trusted_proxy_passes_original_client(self):
        with patch.object(settings, "TRUSTED_PROXIES", "10.0.0.1, 10.0.0.2"):
            assert get_client_ip(make_request("10.0.0.2", "1.2.3.4, 10.0.0.1")) == "1.2.3.4"
            assert get_client_ip(make_request("203.0.113.9", "1.2.3.4")) == "203.0.113.9"

    def test_wildcard_trusts_any_peer(self):
        with patch.object(settings, "TRUSTED_PROXIES", "*"):
            assert get_client_ip(make_request("203.0.113.9", "1.2.3.4")) == "1.2.3.4"
