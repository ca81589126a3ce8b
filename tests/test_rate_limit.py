"""Per-tenant token bucket, run against an in-memory Redis stand-in."""
from types import SimpleNamespace

import pytest
import redis
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from projectpro.config import get_settings
from projectpro.middleware import rate_limit
from projectpro.middleware.rate_limit import RateLimitMiddleware


class FakeRedis:
    """The handful of Redis calls the limiter makes, kept in a dict."""

    def __init__(self, down=False):
        self.values = {}
        self.down = down

    def ping(self):
        if self.down:
            raise redis.ConnectionError("connection refused")
        return True

    def get(self, key):
        if self.down:
            raise redis.ConnectionError("connection refused")
        return self.values.get(key)

    def pipeline(self):
        return FakePipeline(self)


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.pending = []

    def setex(self, key, ttl, value):
        self.pending.append((key, str(value)))

    def execute(self):
        self.client.values.update(self.pending)
        self.pending = []


TENANTS = {
    "acme": SimpleNamespace(id="acme", rate_limit_per_minute=None, rate_limit_burst=None),
    "tight": SimpleNamespace(id="tight", rate_limit_per_minute=1, rate_limit_burst=2),
}


def _client(redis_client, enabled=True):
    app = FastAPI()

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    app.add_middleware(RateLimitMiddleware, redis_client=redis_client, enabled=enabled)

    # Stands in for TenantMiddleware, which runs before the limiter
    @app.middleware("http")
    async def resolve_tenant(request: Request, call_next):
        request.state.tenant = TENANTS.get(request.headers.get("X-Tenant-ID"))
        return await call_next(request)

    return TestClient(app)


@pytest.fixture
def clock(monkeypatch):
    now = {"t": 1_000_000.0}
    monkeypatch.setattr(rate_limit.time, "time", lambda: now["t"])
    return now


class TestTokenBucket:
    def test_burst_then_refill(self, clock):
        limiter = RateLimitMiddleware(FastAPI(), redis_client=FakeRedis(), enabled=True)

        assert limiter.check_rate_limit("acme", 60, 3) == (True, 0)
        assert limiter.check_rate_limit("acme", 60, 3) == (True, 0)
        assert limiter.check_rate_limit("acme", 60, 3) == (True, 0)
        allowed, retry_after = limiter.check_rate_limit("acme", 60, 3)
        assert not allowed
        assert retry_after == 2

        # One token per second at 60 per minute
        clock["t"] += 1
        assert limiter.check_rate_limit("acme", 60, 3) == (True, 0)
        assert limiter.check_rate_limit("acme", 60, 3)[0] is False

    def test_refill_is_capped_at_burst(self, clock):
        limiter = RateLimitMiddleware(FastAPI(), redis_client=FakeRedis(), enabled=True)
        for _ in range(2):
            limiter.check_rate_limit("acme", 60, 2)

        clock["t"] += 3600
        assert limiter.check_rate_limit("acme", 60, 2)[0]
        assert limiter.check_rate_limit("acme", 60, 2)[0]
        assert limiter.check_rate_limit("acme", 60, 2)[0] is False

    def test_buckets_are_per_tenant(self, clock):
        limiter = RateLimitMiddleware(FastAPI(), redis_client=FakeRedis(), enabled=True)
        assert limiter.check_rate_limit("acme", 60, 1)[0]
        assert limiter.check_rate_limit("acme", 60, 1)[0] is False
        assert limiter.check_rate_limit("globex", 60, 1)[0]

    def test_redis_errors_let_requests_through(self):
        fake = FakeRedis()
        limiter = RateLimitMiddleware(FastAPI(), redis_client=fake, enabled=True)
        fake.down = True
        assert limiter.check_rate_limit("acme", 1, 1) == (True, 0)
        assert limiter.check_rate_limit("acme", 1, 1) == (True, 0)


class TestMiddleware:
    def test_tenant_override_returns_429_with_retry_after(self, clock):
        client = _client(FakeRedis())
        headers = {"X-Tenant-ID": "tight"}

        assert client.get("/ping", headers=headers).status_code == 200
        assert client.get("/ping", headers=headers).status_code == 200

        blocked = client.get("/ping", headers=headers)
        assert blocked.status_code == 429
        assert blocked.json()["type"] == "rate_limit_exceeded"
        # One token per minute
        assert blocked.headers["Retry-After"] == "60"
        assert blocked.json()["retry_after"] == 60

    def test_tenant_without_override_uses_settings(self, clock):
        client = _client(FakeRedis())
        headers = {"X-Tenant-ID": "acme"}
        burst = get_settings().RATE_LIMIT_BURST

        for _ in range(burst):
            assert client.get("/ping", headers=headers).status_code == 200
        assert client.get("/ping", headers=headers).status_code == 429

        # Another tenant has its own bucket
        assert client.get("/ping", headers={"X-Tenant-ID": "tight"}).status_code == 200

    def test_requests_without_tenant_are_not_limited(self):
        client = _client(FakeRedis())
        for _ in range(5):
            assert client.get("/ping").status_code == 200

    def test_unreachable_redis_at_startup_disables_limiting(self):
        client = _client(FakeRedis(down=True))
        for _ in range(5):
            assert client.get("/ping", headers={"X-Tenant-ID": "tight"}).status_code == 200

    def test_redis_failure_mid_flight_fails_open(self):
        fake = FakeRedis()
        client = _client(fake)
        headers = {"X-Tenant-ID": "tight"}
        client.get("/ping", headers=headers)
        client.get("/ping", headers=headers)

        fake.down = True
        assert client.get("/ping", headers=headers).status_code == 200

    def test_disabled_by_configuration(self):
        client = _client(FakeRedis(), enabled=False)
        for _ in range(5):
            assert client.get("/ping", headers={"X-Tenant-ID": "tight"}).status_code == 200
