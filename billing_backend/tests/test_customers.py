"""
Tests for customer management and the debtor query.
"""

import pytest

from billing_backend.app.models.enums import CustomerCategory, TransactionDirection, TransactionStatus


@pytest.mark.asyncio
async def test_create_customer_publishes_event(client, staff_headers, broker, drain):
    channel = broker.subscribe()
    await drain(channel)

    payload = {
        "name": "Budi Santoso",
        "category": "internet",
        "phone": "081234567890",
        "pppoe_username": "budi",
        "pppoe_password": "budi123",
        "address": "Jl. Melati 5"
    }
    response = await client.post("/api/customers", json=payload, headers=staff_headers)
    assert response.status_code == 201
    created = response.json()["data"]
    assert created["name"] == "Budi Santoso"
    assert created["is_active"] is True

    events = await drain(channel)
    assert [e["type"] for e in events] == ["customer_updated"]
    assert events[0]["data"]["id"] == created["id"]


@pytest.mark.asyncio
async def test_create_customer_accepts_legacy_field_names(client, staff_headers):
    payload = {"nama": "Siti", "tipe": "gas", "whatsapp": "08111", "alamat": "Gg. Mawar", "aktif": False}
    response = await client.post("/api/customers", json=payload, headers=staff_headers)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["category"] == "gas"
    assert data["address"] == "Gg. Mawar"
    assert data["is_active"] is False


@pytest.mark.asyncio
async def test_create_customer_invalid_category(client, staff_headers):
    payload = {"name": "X", "category": "water", "phone": "0811"}
    response = await client.post("/api/customers", json=payload, headers=staff_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_customers_require_auth(client):
    response = await client.get("/api/customers")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_list_customers_filters_are_combined(client, staff_headers, make_customer):
    await make_customer("Andi", CustomerCategory.INTERNET, phone="0811000")
    await make_customer("Budi", CustomerCategory.GAS, phone="0822000")
    await make_customer("Bunga", CustomerCategory.INTERNET, phone="0833000", is_active=False)

    response = await client.get("/api/customers", headers=staff_headers)
    assert [c["name"] for c in response.json()["data"]] == ["Andi", "Budi", "Bunga"]

    response = await client.get("/api/customers", params={"category": "internet"}, headers=staff_headers)
    assert [c["name"] for c in response.json()["data"]] == ["Andi", "Bunga"]

    response = await client.get(
        "/api/customers", params={"category": "internet", "is_active": "true"}, headers=staff_headers
    )
    assert [c["name"] for c in response.json()["data"]] == ["Andi"]

    response = await client.get("/api/customers", params={"search": "bu"}, headers=staff_headers)
    assert [c["name"] for c in response.json()["data"]] == ["Budi", "Bunga"]

    response = await client.get("/api/customers", params={"search": "0822"}, headers=staff_headers)
    assert [c["name"] for c in response.json()["data"]] == ["Budi"]


@pytest.mark.asyncio
async def test_get_missing_customer(client, staff_headers):
    response = await client.get("/api/customers/404", headers=staff_headers)
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_update_customer(client, staff_headers, make_customer):
    customer = await make_customer("Andi")
    payload = {"name": "Andi Wijaya", "category": "internet", "phone": "0899", "is_active": False}

    response = await client.put(f"/api/customers/{customer.id}", json=payload, headers=staff_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Andi Wijaya"
    assert data["is_active"] is False


@pytest.mark.asyncio
async def test_update_without_active_flag_keeps_customer_inactive(client, staff_headers, make_customer):
    customer = await make_customer("Dewi", is_active=False)
    payload = {"name": "Dewi Lestari", "category": "internet", "phone": "0812"}

    response = await client.put(f"/api/customers/{customer.id}", json=payload, headers=staff_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Dewi Lestari"
    assert data["is_active"] is False

    response = await client.get("/api/customers", params={"is_active": False}, headers=staff_headers)
    assert [c["id"] for c in response.json()["data"]] == [customer.id]


@pytest.mark.asyncio
async def test_debtors_only_active_with_positive_pending(client, staff_headers, make_customer, make_transaction):
    andi = await make_customer("Andi")
    budi = await make_customer("Budi")
    citra = await make_customer("Citra", is_active=False)
    dedi = await make_customer("Dedi")

    await make_transaction(andi, 150000)
    await make_transaction(andi, 50000)
    await make_transaction(budi, 22000, status=TransactionStatus.SETTLED)
    await make_transaction(citra, 150000)
    await make_transaction(dedi, 22000, direction=TransactionDirection.EXPENSE)

    response = await client.get("/api/customers/with-pending", headers=staff_headers)
    assert response.status_code == 200
    debtors = response.json()["data"]

    # Pending amounts count regardless of direction
    assert [(d["name"], d["total_debt"]) for d in debtors] == [("Andi", 200000), ("Dedi", 22000)]


@pytest.mark.asyncio
async def test_delete_customer_with_transactions_is_restricted(
    client, staff_headers, make_customer, make_transaction
):
    customer = await make_customer("Andi")
    await make_transaction(customer, 150000)

    response = await client.delete(f"/api/customers/{customer.id}", headers=staff_headers)
    assert response.status_code == 400
    assert response.json()["details"]["transactions"] == 1

    response = await client.get(f"/api/customers/{customer.id}", headers=staff_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_delete_customer(client, staff_headers, make_customer, broker, drain):
    customer = await make_customer("Andi")
    channel = broker.subscribe()
    await drain(channel)

    response = await client.delete(f"/api/customers/{customer.id}", headers=staff_headers)
    assert response.status_code == 200

    events = await drain(channel)
    assert events[0]["type"] == "customer_updated"
    assert events[0]["data"] is None

    response = await client.get(f"/api/customers/{customer.id}", headers=staff_headers)
    assert response.status_code == 404
