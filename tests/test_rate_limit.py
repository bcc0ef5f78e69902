"""Rate limiter tests against an in-memory stand-in for the Redis client."""
import pytest
import redis
from fastapi import FastAPI
from fastapi.testclient import TestClient

from safestart.middleware.rate_limit import RateLimitMiddleware


class FakePipeline:
    def __init__(self, store):
        self.store = store
        self.ops = []

    def incr(self, key):
        self.ops.append(("incr", key))

    def ttl(self, key):
        self.ops.append(("ttl", key))

    def execute(self):
        results = []
        for op, key in self.ops:
            if op == "incr":
                self.store.counts[key] = self.store.counts.get(key, 0) + 1
                results.append(self.store.counts[key])
            else:
                results.append(self.store.ttls.get(key, -1))
        self.ops = []
        return results


class FakeRedis:
    def __init__(self, fail=False):
        self.counts = {}
        self.ttls = {}
        self.fail = fail

    def ping(self):
        return True

    def pipeline(self):
        if self.fail:
            raise redis.ConnectionError("down")
        return FakePipeline(self)

    def expire(self, key, seconds):
        self.ttls[key] = seconds


def _app(fake):
    app = FastAPI()

    @app.post("/api/v1/auth/login")
    async def login():
        return {"success": True}

    @app.get("/api/v1/vehicles")
    async def vehicles():
        return {"success": True}

    @app.get("/health")
    async def health():
        return {"status": "OK"}

    app.add_middleware(RateLimitMiddleware, redis_client=fake)
    return app


@pytest.fixture
def limited(monkeypatch):
    """Middleware enabled with a 2-request auth bucket and a 3-request api bucket."""
    from safestart.middleware import rate_limit

    monkeypatch.setattr(rate_limit.settings, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limit.settings, "AUTH_RATE_LIMIT", 2)
    monkeypatch.setattr(rate_limit.settings, "API_RATE_LIMIT", 3)

    def build(fake=None):
        fake = fake or FakeRedis()
        return TestClient(_app(fake)), fake

    return build


@pytest.mark.parametrize("path,bucket", [
    ("/api/v1/auth/login", "auth"),
    ("/api/v1/auth/forgot-password", "auth"),
    ("/api/v1/vehicles", "api"),
    ("/health", None),
    ("/docs", None),
])
def test_bucket_for(path, bucket):
    assert RateLimitMiddleware.bucket_for(path) == bucket


def test_auth_bucket_blocks_after_limit(limited):
    client, fake = limited()

    assert client.post("/api/v1/auth/login").status_code == 200
    assert client.post("/api/v1/auth/login").status_code == 200

    blocked = client.post("/api/v1/auth/login")
    assert blocked.status_code == 429
    assert blocked.json()["success"] is False
    assert int(blocked.headers["Retry-After"]) > 0

    # the api bucket is counted separately
    assert client.get("/api/v1/vehicles").status_code == 200


def test_window_is_set_on_first_hit(limited):
    client, fake = limited()
    client.get("/api/v1/vehicles")

    assert list(fake.ttls.values()) == [900]


def test_clients_are_counted_per_ip(limited):
    client, _ = limited()
    for _ in range(2):
        client.post("/api/v1/auth/login", headers={"X-Forwarded-For": "10.0.0.1"})

    assert client.post("/api/v1/auth/login", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429
    assert client.post("/api/v1/auth/login", headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 200


def test_unbucketed_paths_are_not_counted(limited):
    client, fake = limited()
    for _ in range(5):
        assert client.get("/health").status_code == 200
    assert fake.counts == {}


def test_fails_open_when_redis_errors(limited):
    client, _ = limited(FakeRedis(fail=True))
    for _ in range(5):
        assert client.post("/api/v1/auth/login").status_code == 200


def test_disabled_by_configuration():
    fake = FakeRedis()
    client = TestClient(_app(fake))
    for _ in range(10):
        assert client.post("/api/v1/auth/login").status_code == 200
    assert fake.counts == {}
