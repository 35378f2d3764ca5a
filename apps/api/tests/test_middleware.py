from __future__ import annotations

import dataclasses
from collections import Counter

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from freefood.core.config import settings
from freefood.middleware import rate_limit
from freefood.middleware.rate_limit import _parse_rate


@pytest.fixture
def limited(monkeypatch):
    counts: Counter = Counter()

    def fake_count(key: str, window_seconds: int) -> int:
        counts[key] += 1
        return counts[key]

    monkeypatch.setattr(
        rate_limit,
        "settings",
        dataclasses.replace(settings, rate_limit_enabled=True, rate_limit_default="2/minute"),
    )
    monkeypatch.setattr(rate_limit, "count_in_window", fake_count)
    return counts


def test_parse_rate():
    assert _parse_rate("30/minute") == (30, 60)
    assert _parse_rate(" 5/Second ") == (5, 1)
    with pytest.raises(ValueError):
        _parse_rate("lots")
    with pytest.raises(ValueError):
        _parse_rate("3/fortnight")


def test_writes_are_limited_reads_are_not(client: TestClient, limited):
    for _ in range(2):
        assert client.post("/api/events", json={"event_name": "Pizza"}).status_code == 201

    blocked = client.post("/api/events", json={"event_name": "Pizza"})
    assert blocked.status_code == 429
    assert blocked.json()["error"] == "rate limit exceeded"
    assert "Retry-After" in blocked.headers

    assert client.get("/api/events").status_code == 200
    assert len(client.get("/api/events").json()) == 2


def test_rate_limit_fails_open(client: TestClient, monkeypatch):
    def unavailable(key: str, window_seconds: int) -> int:
        raise RedisConnectionError("connection refused")

    monkeypatch.setattr(rate_limit, "settings", dataclasses.replace(settings, rate_limit_enabled=True))
    monkeypatch.setattr(rate_limit, "count_in_window", unavailable)

    assert client.post("/api/events", json={"event_name": "Pizza"}).status_code == 201


def test_malformed_request_id_is_replaced(client: TestClient):
    resp = client.get("/api/health", headers={"X-Request-ID": "bad id with spaces"})
    assert resp.headers["x-request-id"] != "bad id with spaces"
    assert len(resp.headers["x-request-id"]) == 32


def test_security_headers(client: TestClient):
    resp = client.get("/api/health")
    assert resp.headers["x-content-type-options"] == "nosniff"
    assert "img-src 'self' data:" in resp.headers["content-security-policy"]
    assert "strict-transport-security" not in resp.headers
