"""Tests for the health endpoint and response-wide behaviour."""

import pytest

from legatepro.core.config import settings


@pytest.mark.asyncio
async def test_health_ok(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "env": "test", "version": settings.VERSION}


@pytest.mark.asyncio
async def test_security_headers(client):
    response = await client.get("/health")
    assert response.headers["cache-control"] == "no-store"
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"
    assert response.headers["referrer-policy"] == "same-origin"


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client):
    response = await client.get("/api/nope")
    assert response.status_code == 404
    body = response.json()
    assert body["ok"] is False
    assert body["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_malformed_estate_id_is_400(client_for, owner):
    async with client_for(owner) as c:
        response = await c.get("/api/estates/not-a-uuid")
    assert response.status_code == 400
    assert response.json()["ok"] is False
