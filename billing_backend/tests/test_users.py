"""
Tests for admin user management.
"""

import pytest
from sqlalchemy import select

from billing_backend.app.models.activity_log import ActivityLog


@pytest.mark.asyncio
async def test_list_users_admin_only(client, admin_headers, staff_headers):
    response = await client.get("/api/users", headers=staff_headers)
    assert response.status_code == 403

    response = await client.get("/api/users", headers=admin_headers)
    assert response.status_code == 200
    usernames = [u["username"] for u in response.json()["data"]]
    # ordered by role, then full name
    assert usernames == ["admin", "staff"]
    assert "password_hash" not in response.json()["data"][0]


@pytest.mark.asyncio
async def test_create_user_and_login(client, admin_headers):
    payload = {"username": "kasir2", "password": "rahasia1", "full_name": "Kasir Dua"}
    response = await client.post("/api/users", json=payload, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["data"]["role"] == "staff"

    login = await client.post("/api/auth/login", json={"username": "kasir2", "password": "rahasia1"})
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_create_duplicate_username(client, admin_headers, staff_user):
    payload = {"username": "staff", "password": "rahasia1", "full_name": "Other"}
    response = await client.post("/api/users", json=payload, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["details"]["username"] == "staff"


@pytest.mark.asyncio
async def test_create_user_losing_insert_race_is_conflict(client, admin_headers, staff_user, mocker):
    # The pre-insert lookup misses, as when a concurrent create commits in between
    mocker.patch(
        "billing_backend.app.services.user_service.get_user_by_username",
        return_value=None
    )
    payload = {"username": "staff", "password": "rahasia1", "full_name": "Other"}

    response = await client.post("/api/users", json=payload, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_CONFLICT_001"

    response = await client.get("/api/users", headers=admin_headers)
    assert [u["username"] for u in response.json()["data"]].count("staff") == 1


@pytest.mark.asyncio
async def test_create_user_short_password(client, admin_headers):
    payload = {"username": "kasir3", "password": "123", "full_name": "Kasir Tiga"}
    response = await client.post("/api/users", json=payload, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_user_password_optional(client, admin_headers, staff_user):
    payload = {"full_name": "Staff Baru", "role": "staff", "is_active": True}
    response = await client.put(f"/api/users/{staff_user.id}", json=payload, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["full_name"] == "Staff Baru"

    # Old password still works
    login = await client.post("/api/auth/login", json={"username": "staff", "password": "staff123"})
    assert login.status_code == 200

    payload["password"] = "newpass99"
    await client.put(f"/api/users/{staff_user.id}", json=payload, headers=admin_headers)
    login = await client.post("/api/auth/login", json={"username": "staff", "password": "newpass99"})
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_deactivate_user_blocks_login(client, admin_headers, staff_user):
    payload = {"full_name": "Staff Kasir", "role": "staff", "is_active": False}
    await client.put(f"/api/users/{staff_user.id}", json=payload, headers=admin_headers)

    login = await client.post("/api/auth/login", json={"username": "staff", "password": "staff123"})
    assert login.status_code == 401
    assert login.json()["error_code"] == "ERR_AUTH_002"


@pytest.mark.asyncio
async def test_admin_cannot_delete_self(client, admin_headers, admin_user):
    response = await client.delete(f"/api/users/{admin_user.id}", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_delete_missing_user(client, admin_headers):
    response = await client.delete("/api/users/999", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_user_keeps_activity_history(client, admin_headers, staff_user, db_session):
    await client.post("/api/auth/login", json={"username": "staff", "password": "staff123"})

    response = await client.delete(f"/api/users/{staff_user.id}", headers=admin_headers)
    assert response.status_code == 200

    result = await db_session.execute(select(ActivityLog).where(ActivityLog.action == "LOGIN"))
    entry = result.scalar_one()
    assert entry.user_id is None
