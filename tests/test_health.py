"""
tests/test_health.py -- Integration tests for GET /api/v1/health and /health/deep.

Covers:
  - 200 response with status, version, uptime and timestamp
  - No authentication required
  - Deep check reports the repository and degrades when it fails
"""

from __future__ import annotations


def test_health_returns_200(api_client):
    """Health endpoint returns 200 with status, version, uptime and timestamp."""
    client, _, _ = api_client
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["version"] == "1.0.0"
    assert data["uptime"] >= 0
    assert "timestamp" in data


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    client, _, _ = api_client
    resp = client.get("/api/v1/health", headers={})
    assert resp.status_code == 200


def test_deep_health_reports_repository(api_client):
    client, _, _ = api_client
    data = client.get("/api/v1/health/deep").json()
    assert data["status"] == "ok"
    assert data["checks"] == {"repository": "ok"}


def test_deep_health_degrades_on_store_failure(api_client, monkeypatch):
    """A failing store turns the deep check into 'degraded' instead of a 500."""
    client, store, _ = api_client

    async def broken():
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(store, "count", broken)
    resp = client.get("/api/v1/health/deep")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["checks"]["repository"] == "error"
