"""
Tests for per-IP rate limiting: the auth and API-wide limits, and the
Redis-backed counter.
"""

from unittest.mock import MagicMock

import pytest
import redis

from we3vision.core.config import settings
from we3vision.core.exceptions import RateLimitError
from we3vision.core.rate_limiter import (
    API_LIMIT_MESSAGE,
    AUTH_LIMIT_MESSAGE,
    RateLimiter,
    rate_limiter,
)


@pytest.fixture
def limits_on(monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    rate_limiter.reset()
    yield
    rate_limiter.reset()


def login(client, ip="203.0.113.7"):
    return client.post(
        "/api/auth/login",
        json={"email": "nobody@example.com", "password": "WrongPass123!"},
        headers={"X-Forwarded-For": ip},
    )


class TestAuthLimit:

    def test_eleventh_auth_request_is_throttled(self, client, limits_on):
        for _ in range(settings.RATE_LIMIT_AUTH_REQUESTS):
            assert login(client).status_code == 401

        response = login(client)

        assert response.status_code == 429
        assert response.json() == {"status": "error", "message": AUTH_LIMIT_MESSAGE}
        assert int(response.headers["Retry-After"]) > 0

    def test_limit_is_per_ip(self, client, limits_on):
        for _ in range(settings.RATE_LIMIT_AUTH_REQUESTS):
            login(client)

        assert login(client).status_code == 429
        assert login(client, ip="198.51.100.1").status_code == 401

    def test_other_routes_unaffected_by_auth_limit(self, client, limits_on):
        for _ in range(settings.RATE_LIMIT_AUTH_REQUESTS + 1):
            login(client)

        response = client.get("/api/assets/", headers={"X-Forwarded-For": "203.0.113.7"})

        assert response.status_code == 200

    def test_disabled_limiter_lets_everything_through(self, client):
        for _ in range(settings.RATE_LIMIT_AUTH_REQUESTS + 2):
            assert login(client).status_code == 401


class TestApiLimit:

    def test_api_wide_limit(self, client, limits_on, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_API_REQUESTS", 3)

        statuses = [client.get("/api/assets/").status_code for _ in range(4)]

        assert statuses == [200, 200, 200, 429]
        assert client.get("/api/assets/").json()["message"] == API_LIMIT_MESSAGE

    def test_root_is_not_throttled(self, client, limits_on, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_API_REQUESTS", 1)

        statuses = [client.get("/").status_code for _ in range(3)]

        assert statuses == [200, 200, 200]


class TestRateLimiterBackends:

    def test_memory_window_resets(self):
        clock = {"now": 1000.0}
        limiter = RateLimiter(clock=lambda: clock["now"])

        limiter.check_rate_limit("k", max_requests=1, window_seconds=60, error_message="slow down")
        with pytest.raises(RateLimitError) as exc_info:
            limiter.check_rate_limit("k", max_requests=1, window_seconds=60, error_message="slow down")
        assert exc_info.value.message == "slow down"
        assert exc_info.value.retry_after == 60

        clock["now"] += 60
        limiter.check_rate_limit("k", max_requests=1, window_seconds=60, error_message="slow down")

    def test_redis_counter_sets_expiry_on_first_hit(self):
        limiter = RateLimiter()
        limiter.redis_client = MagicMock()
        limiter.redis_client.incr.return_value = 1

        limiter.check_rate_limit("ratelimit:auth:1.2.3.4", max_requests=10, window_seconds=60, error_message="x")

        limiter.redis_client.incr.assert_called_once_with("ratelimit:auth:1.2.3.4")
        limiter.redis_client.expire.assert_called_once_with("ratelimit:auth:1.2.3.4", 60)

    def test_redis_counter_over_limit(self):
        limiter = RateLimiter()
        limiter.redis_client = MagicMock()
        limiter.redis_client.incr.return_value = 11
        limiter.redis_client.ttl.return_value = 42

        with pytest.raises(RateLimitError) as exc_info:
            limiter.check_rate_limit("key", max_requests=10, window_seconds=60, error_message="x")

        assert exc_info.value.retry_after == 42
        limiter.redis_client.expire.assert_not_called()

    def test_redis_outage_fails_open(self):
        limiter = RateLimiter()
        limiter.redis_client = MagicMock()
        limiter.redis_client.incr.side_effect = redis.ConnectionError("connection refused")

        limiter.check_rate_limit("key", max_requests=0, window_seconds=60, error_message="x")
