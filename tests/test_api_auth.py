"""Tests for authentication endpoints and session handling."""
import pytest
from httpx import AsyncClient

from portal.db.enums import Role

TEST_PASSWORD = "Password1"


@pytest.mark.asyncio
async def test_protected_endpoint_requires_session(client: AsyncClient):
    response = await client.get("/auth/me")
    assert response.status_code == 401
    assert response.json()["code"] == "unauthenticated"


@pytest.mark.asyncio
async def test_login_sets_session_cookie(client: AsyncClient, reporter):
    response = await client.post(
        "/auth/login", json={"email": reporter.email, "password": TEST_PASSWORD}
    )
    assert response.status_code == 200
    assert response.json()["user_id"] == str(reporter.id)
    assert "portal_session" in response.cookies

    me = await client.get("/auth/me")
    assert me.status_code == 200
    assert me.json()["role"] == "reporter"


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, reporter):
    response = await client.post(
        "/auth/login", json={"email": reporter.email, "password": "Nope12345"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_pending_account(client: AsyncClient, make_user):
    pending = make_user(Role.REPORTER, is_active=False, is_approved=False, pending_approval=True)

    response = await client.post(
        "/auth/login", json={"email": pending.email, "password": TEST_PASSWORD}
    )

    assert response.status_code == 403
    assert response.json()["reason"] == "pending_approval"


@pytest.mark.asyncio
async def test_login_requires_csrf_header(make_client, reporter):
    client = make_client(csrf=False)
    response = await client.post(
        "/auth/login", json={"email": reporter.email, "password": TEST_PASSWORD}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_logout_clears_cookie(client: AsyncClient, reporter):
    await client.post("/auth/login", json={"email": reporter.email, "password": TEST_PASSWORD})

    response = await client.post("/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"status": "logged_out"}
    assert (await client.get("/auth/me")).status_code == 401


@pytest.mark.asyncio
async def test_revoked_session_is_rejected(db, make_client, reporter):
    client = make_client(reporter)
    assert (await client.get("/auth/me")).status_code == 200

    reporter.token_version += 1
    db.commit()

    response = await client.get("/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Session revoked"


@pytest.mark.asyncio
async def test_disabled_account_is_rejected(db, make_client, reporter):
    client = make_client(reporter)
    reporter.is_active = False
    db.commit()

    assert (await client.get("/auth/me")).status_code == 401


@pytest.mark.asyncio
async def test_garbage_cookie(make_client):
    client = make_client()
    client.cookies.set("portal_session", "not-a-jwt")

    response = await client.get("/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid session"


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
