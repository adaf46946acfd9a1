"""
Unit tests for the in-memory rate limiter dependency.
"""
import pytest
from fastapi import HTTPException
from types import SimpleNamespace

from talentdesk.core.rate_limit import RateLimiter, get_client_ip, rate_limit_store


def _request(ip="10.0.0.1", forwarded=None):
    headers = {"X-Forwarded-For": forwarded} if forwarded else {}
    return SimpleNamespace(headers=headers, client=SimpleNamespace(host=ip))


def test_forwarded_header_wins():
    assert get_client_ip(_request(forwarded="203.0.113.5, 10.0.0.1")) == "203.0.113.5"
    assert get_client_ip(_request()) == "10.0.0.1"


def test_limit_enforced_per_scope_and_ip():
    limiter = RateLimiter("test", max_requests=2)

    limiter(_request())
    limiter(_request())
    with pytest.raises(HTTPException) as exc_info:
        limiter(_request())
    assert exc_info.value.status_code == 429

    limiter(_request(ip="10.0.0.2"))
    RateLimiter("other", max_requests=2)(_request())


def test_idle_clients_are_evicted():
    limiter = RateLimiter("evict", max_requests=5, window_seconds=60)
    rate_limit_store[("evict", "10.0.0.9")] = [0.0]
    rate_limit_store[("other-scope", "10.0.0.9")] = [0.0]

    limiter(_request())

    assert ("evict", "10.0.0.9") not in rate_limit_store
    assert ("evict", "10.0.0.1") in rate_limit_store
    assert ("other-scope", "10.0.0.9") in rate_limit_store
