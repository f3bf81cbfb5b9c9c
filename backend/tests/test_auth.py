"""
Tests for /api/v1/auth – login, refresh, /me, change-password.
"""
import pytest

from app.core.security import create_access_token, decode_token, ACCESS_TOKEN, REFRESH_TOKEN
from tests.conftest import auth_headers


BASE = "/api/v1/auth"


# ── Login ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_login_valid(client, admin_user):
    resp = await client.post(f"{BASE}/login", json={
        "email": "admin@test.com",
        "password": "testpass123",
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["token_type"] == "bearer"

    access = decode_token(data["access_token"], expected_type=ACCESS_TOKEN)
    assert access["sub"] == str(admin_user.id)
    assert access["tenant_id"] == str(admin_user.tenant_id)
    assert access["role"] == "admin"
    assert decode_token(data["refresh_token"], expected_type=REFRESH_TOKEN)["sub"] == str(admin_user.id)


@pytest.mark.asyncio
async def test_login_wrong_password(client, admin_user):
    resp = await client.post(f"{BASE}/login", json={
        "email": "admin@test.com",
        "password": "wrongpassword",
    })
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_login_unknown_email(client, tenant):
    resp = await client.post(f"{BASE}/login", json={
        "email": "nobody@test.com",
        "password": "testpass123",
    })
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_login_inactive_user(client, db, admin_user):
    admin_user.is_active = False
    await db.commit()

    resp = await client.post(f"{BASE}/login", json={
        "email": "admin@test.com",
        "password": "testpass123",
    })
    assert resp.status_code == 400


# ── Refresh ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_refresh_valid(client, admin_user):
    login = await client.post(f"{BASE}/login", json={
        "email": "admin@test.com",
        "password": "testpass123",
    })
    refresh_token = login.json()["refresh_token"]

    resp = await client.post(f"{BASE}/refresh", json={"refresh_token": refresh_token})
    assert resp.status_code == 200
    data = resp.json()
    assert data["access_token"]
    assert data["refresh_token"]


@pytest.mark.asyncio
async def test_refresh_invalid_token(client, tenant):
    resp = await client.post(f"{BASE}/refresh", json={"refresh_token": "invalid.token.here"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(client, admin_token):
    resp = await client.post(f"{BASE}/refresh", json={"refresh_token": admin_token})
    assert resp.status_code == 401


# ── /me ───────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_me_returns_user_info(client, admin_user, admin_token):
    resp = await client.get(f"{BASE}/me", headers=auth_headers(admin_token))
    assert resp.status_code == 200
    data = resp.json()
    assert data["email"] == "admin@test.com"
    assert data["role"] == "admin"
    assert data["name"] == "Admin"
    assert data["id"] == str(admin_user.id)
    assert data["tenant_id"] == str(admin_user.tenant_id)


@pytest.mark.asyncio
async def test_me_without_token(client, tenant):
    resp = await client.get(f"{BASE}/me")
    assert resp.status_code in (401, 403)  # HTTPBearer answers a missing header with 403


@pytest.mark.asyncio
async def test_me_with_garbage_token(client, tenant):
    resp = await client.get(f"{BASE}/me", headers=auth_headers("not-a-jwt"))
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_deactivated_user(client, db, admin_user, admin_token):
    admin_user.is_active = False
    await db.commit()

    resp = await client.get(f"{BASE}/me", headers=auth_headers(admin_token))
    assert resp.status_code == 401


# ── Roles ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_manager_cannot_manage_connection(client, manager_token):
    resp = await client.get("/api/v1/quickbooks/connection", headers=auth_headers(manager_token))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_unknown_role_is_forbidden(client, db, manager_user):
    manager_user.role = "viewer"
    await db.commit()
    token = create_access_token(manager_user.id, manager_user.tenant_id, "viewer")

    resp = await client.get("/api/v1/pay-periods", headers=auth_headers(token))
    assert resp.status_code == 403


# ── Change-Password ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_change_password_success(client, admin_user, admin_token):
    resp = await client.post(
        f"{BASE}/change-password",
        json={"current_password": "testpass123", "new_password": "newpass456"},
        headers=auth_headers(admin_token),
    )
    assert resp.status_code == 204

    login_old = await client.post(f"{BASE}/login", json={
        "email": "admin@test.com", "password": "testpass123",
    })
    assert login_old.status_code == 401

    login_new = await client.post(f"{BASE}/login", json={
        "email": "admin@test.com", "password": "newpass456",
    })
    assert login_new.status_code == 200


@pytest.mark.asyncio
async def test_change_password_wrong_current(client, admin_user, admin_token):
    resp = await client.post(
        f"{BASE}/change-password",
        json={"current_password": "wrongpass", "new_password": "newpass456"},
        headers=auth_headers(admin_token),
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_change_password_too_short(client, admin_user, admin_token):
    resp = await client.post(
        f"{BASE}/change-password",
        json={"current_password": "testpass123", "new_password": "short"},
        headers=auth_headers(admin_token),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_login_records_last_login(client, admin_user):
    login = await client.post(f"{BASE}/login", json={
        "email": "admin@test.com", "password": "testpass123",
    })
    resp = await client.get(f"{BASE}/me", headers=auth_headers(login.json()["access_token"]))
    assert resp.json()["last_login_at"] is not None
