"""
Integration tests for session listing, security alerts and dashboard
"""

import pytest
from httpx import AsyncClient

from tests.fixtures.factories import bearer, build_session


@pytest.mark.asyncio
async def test_list_active_sessions(client: AsyncClient, seed_user, login):
    """Test the caller sees their active sessions with the current one flagged"""
    await seed_user(email="driver@example.com")
    first = await login("driver@example.com", user_agent="phone")
    second = await login("driver@example.com", user_agent="laptop")

    response = await client.get("/sessions", headers=bearer(second["access_token"]))

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert [s["id"] for s in data["active_sessions"]] == [
        second["session_id"],
        first["session_id"],
    ]
    assert data["active_sessions"][0]["is_current"] is True
    assert data["active_sessions"][0]["user_agent"] == "laptop"
    assert "refresh_token_hash" not in data["active_sessions"][0]


@pytest.mark.asyncio
async def test_security_alerts_for_many_locations(
    client: AsyncClient, seed_user, login, db_session
):
    """Test sessions from more than two IP addresses raise an alert"""
    user = await seed_user(email="driver@example.com")
    pair = await login("driver@example.com")
    for ip in ("203.0.113.5", "198.51.100.7"):
        db_session.add(build_session(user.id, ip_address=ip))
    await db_session.commit()

    response = await client.get("/sessions/security-alerts", headers=bearer(pair["access_token"]))

    assert response.status_code == 200
    data = response.json()
    assert data["has_concerns"] is True
    assert data["count"] == 1
    assert data["security_alerts"][0]["alert_type"] == "multiple_locations"


@pytest.mark.asyncio
async def test_no_alerts_for_single_device(client: AsyncClient, seed_user, login):
    await seed_user(email="driver@example.com")
    pair = await login("driver@example.com")

    response = await client.get("/sessions/security-alerts", headers=bearer(pair["access_token"]))

    assert response.json() == {"security_alerts": [], "count": 0, "has_concerns": False}


@pytest.mark.asyncio
async def test_dashboard(client: AsyncClient, seed_user, login):
    """Test the dashboard warns one session before the limit"""
    await seed_user(email="driver@example.com")
    await login("driver@example.com")
    pair = await login("driver@example.com")

    response = await client.get("/sessions/dashboard", headers=bearer(pair["access_token"]))

    assert response.status_code == 200
    data = response.json()
    assert data["session_limit"] == 3
    assert len(data["active_sessions"]) == 2
    assert len(data["recent_sessions"]) == 2
    assert data["warnings"] == {"approaching_limit": True, "security_concerns": False}
