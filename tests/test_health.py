"""
tests/test_health.py -- Integration tests for GET /health.

Covers:
  - 200 response with {"status": "ok"}
  - No authentication required
  - CORS headers present
"""

from __future__ import annotations


def test_health_returns_ok(api_client):
    client, _, _ = api_client
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    client, _, _ = api_client
    resp = client.get("/health", headers={})
    assert resp.status_code == 200


def test_health_carries_cors_headers(api_client):
    client, _, _ = api_client
    resp = client.get("/health")
    assert resp.headers["access-control-allow-origin"] == "*"
