"""
Tests for the admin activity log.
"""

import pytest
from sqlalchemy import select, func

from billing_backend.app.models.activity_log import ActivityLog
from billing_backend.app.schemas.customer import CustomerCreate
from billing_backend.app.services import customer_service, transaction_service


@pytest.mark.asyncio
async def test_activity_log_lists_actions_with_username(client, admin_headers, staff_user):
    await client.post("/api/auth/login", json={"username": "staff", "password": "staff123"})
    await client.post(
        "/api/customers",
        json={"name": "Andi", "category": "internet", "phone": "0811"},
        headers=admin_headers
    )

    response = await client.get("/api/activity-logs", headers=admin_headers)
    assert response.status_code == 200
    logs = response.json()["data"]

    assert [(l["action"], l["username"]) for l in logs] == [
        ("CREATE_CUSTOMER", "admin"),
        ("LOGIN", "staff"),
    ]
    assert logs[1]["ip_address"]


@pytest.mark.asyncio
async def test_activity_log_filters(client, admin_headers, staff_user):
    await client.post("/api/auth/login", json={"username": "staff", "password": "staff123"})
    await client.post("/api/auth/login", json={"username": "admin", "password": "admin123"})

    response = await client.get("/api/activity-logs", params={"action": "LOGIN", "limit": 1}, headers=admin_headers)
    assert len(response.json()["data"]) == 1

    response = await client.get("/api/activity-logs", params={"user_id": staff_user.id}, headers=admin_headers)
    assert {l["username"] for l in response.json()["data"]} == {"staff"}


@pytest.mark.asyncio
async def test_activity_log_admin_only(client, staff_headers):
    response = await client.get("/api/activity-logs", headers=staff_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_internal_calls_without_actor_are_not_logged(db_session, make_transaction):
    customer = await customer_service.create_customer(
        db_session, CustomerCreate(name="Andi", category="internet", phone="0811")
    )
    invoice = await make_transaction(customer, 150000)
    receipt = await transaction_service.mark_settled(db_session, invoice.id)

    assert customer.id is not None
    assert receipt.created_by is None

    result = await db_session.execute(select(func.count(ActivityLog.id)))
    assert result.scalar() == 0
