# -*- coding: utf-8 -*-
"""
backend/tests/modules/donations/routes/test_donation_routes.py

Tests HTTP de /api/donations con app real (lifespan + SQLite en memoria)
y gateway falso vía dependency_overrides.

Autor: Equipo Colab ONGs
Fecha: 2026-03-18
"""

import uuid
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.modules.donations.enums import PaymentStatus
from app.modules.donations.errors import PaymentGatewayError
from app.modules.donations.models import Donation

BASE = "/api/donations"


async def _count(app) -> int:
    async with app.state.session_factory() as session:
        return (await session.execute(select(func.count(Donation.id)))).scalar_one()


async def _set_status(app, donation_id: str, status: PaymentStatus) -> None:
    async with app.state.session_factory() as session:
        donation = await session.get(Donation, uuid.UUID(donation_id))
        donation.payment_status = status
        await session.commit()


# --------------------------------------------------------------------------- #
# Creación
# --------------------------------------------------------------------------- #
@pytest.mark.asyncio
async def test_create_single_donation(async_client, donation_payload, fake_gateway):
    fake_gateway.preference_ids = ["pay-1"]

    res = await async_client.post(f"{BASE}/single", json=donation_payload)

    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    data = body["data"]
    assert data["externalId"] == "pay-1"
    assert data["paymentUrl"] == "https://pay/pay-1"
    assert data["created"] is True
    donation = data["donation"]
    assert donation["amount"] == 25.0
    assert donation["paymentStatus"] == "pending"
    assert donation["donationType"] == "single"
    assert donation["donorName"] == "Maria"
    assert donation["externalPaymentId"] == "pay-1"
    assert donation["metadata"]["externalReference"] == donation["externalReference"]


@pytest.mark.asyncio
async def test_donate_alias_is_idempotent(app, async_client, donation_payload, fake_gateway):
    fake_gateway.preference_ids = ["pay-1"]

    first = await async_client.post(f"{BASE}/single", json=donation_payload)
    second = await async_client.post(f"{BASE}/donate", json=donation_payload)

    assert first.status_code == second.status_code == 201
    assert second.json()["data"]["created"] is False
    assert second.json()["data"]["donation"]["id"] == first.json()["data"]["donation"]["id"]
    assert await _count(app) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "changes, field",
    [
        ({"amount": 0}, "amount"),
        ({"amount": 0.004}, "amount"),
        ({"amount": 10000000000}, "amount"),
        ({"donorEmail": "not-an-email"}, "donorEmail"),
        ({"donorName": ""}, "donorName"),
    ],
)
async def test_create_single_donation_validation(app, async_client, donation_payload, fake_gateway, changes, field):
    donation_payload.update(changes)

    res = await async_client.post(f"{BASE}/single", json=donation_payload)

    assert res.status_code == 400
    detail = res.json()["detail"]
    assert detail["error"] == "invalid_donation"
    assert detail["field"] == field
    assert fake_gateway.calls == []
    assert await _count(app) == 0


@pytest.mark.asyncio
async def test_create_single_donation_oversized_field(app, async_client, donation_payload, fake_gateway):
    donation_payload["donorName"] = "x" * 256

    res = await async_client.post(f"{BASE}/single", json=donation_payload)

    # Rechazo de esquema (422) antes de tocar el servicio
    assert res.status_code == 422
    assert fake_gateway.calls == []
    assert await _count(app) == 0


@pytest.mark.asyncio
async def test_create_single_donation_gateway_error(app, async_client, donation_payload, fake_gateway):
    fake_gateway.fail_with = PaymentGatewayError(
        "createPaymentPreference", "invalid access token", status_code=401
    )

    res = await async_client.post(f"{BASE}/single", json=donation_payload)

    assert res.status_code == 502
    detail = res.json()["detail"]
    assert detail["error"] == "payment_gateway_error"
    assert "createPaymentPreference" in detail["message"]
    assert await _count(app) == 0


@pytest.mark.asyncio
async def test_create_recurring_donation(async_client, donation_payload, fake_gateway):
    donation_payload["frequency"] = "yearly"

    res = await async_client.post(f"{BASE}/recurring", json=donation_payload)

    assert res.status_code == 201
    data = res.json()["data"]
    assert data["subscriptionId"] == "sub-1"
    assert data["subscriptionUrl"] == "https://sub/sub-1"
    assert data["donation"]["donationType"] == "recurring"
    assert data["donation"]["frequency"] == "yearly"
    assert data["donation"]["providerPlanId"] == "plan-1"


@pytest.mark.asyncio
async def test_create_recurring_donation_invalid_frequency(async_client, donation_payload):
    donation_payload["frequency"] = "daily"

    res = await async_client.post(f"{BASE}/recurring", json=donation_payload)

    assert res.status_code == 400
    assert res.json()["detail"]["field"] == "frequency"


# --------------------------------------------------------------------------- #
# Suscripciones
# --------------------------------------------------------------------------- #
@pytest.mark.asyncio
async def test_subscription_status_and_cancel(async_client, donation_payload, fake_gateway):
    await async_client.post(f"{BASE}/recurring", json=donation_payload)
    fake_gateway.subscriptions["sub-1"]["status"] = "authorized"

    res = await async_client.get(f"{BASE}/recurring/sub-1/status")
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "approved"
    assert res.json()["data"]["providerStatus"] == "authorized"

    res = await async_client.delete(f"{BASE}/recurring/sub-1")
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "cancelled"
    assert fake_gateway.subscriptions["sub-1"]["status"] == "cancelled"


@pytest.mark.asyncio
async def test_subscription_status_unknown_is_gateway_error(async_client):
    res = await async_client.get(f"{BASE}/recurring/nope/status")
    assert res.status_code == 502


@pytest.mark.asyncio
async def test_update_subscription_requires_service_token(async_client, auth_headers, donation_payload):
    await async_client.post(f"{BASE}/recurring", json=donation_payload)

    res = await async_client.put(f"{BASE}/recurring/sub-1", json={"status": "paused"})
    assert res.status_code == 401

    res = await async_client.put(
        f"{BASE}/recurring/sub-1",
        json={"status": "paused"},
        headers={"Authorization": "Bearer wrong"},
    )
    assert res.status_code == 403

    res = await async_client.put(f"{BASE}/recurring/sub-1", json={"amount": 40}, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["data"]["amount"] == 40.0


@pytest.mark.asyncio
async def test_cancel_recurring_donation_by_organization(async_client, auth_headers, donation_payload):
    created = await async_client.post(f"{BASE}/recurring", json=donation_payload)
    donation_id = created.json()["data"]["donation"]["id"]

    res = await async_client.delete(
        f"{BASE}/{donation_id}/cancel", params={"organization_id": "org-2"}, headers=auth_headers
    )
    assert res.status_code == 403

    res = await async_client.delete(
        f"{BASE}/{donation_id}/cancel", params={"organization_id": "org-1"}, headers=auth_headers
    )
    assert res.status_code == 200
    assert res.json()["data"]["paymentStatus"] == "cancelled"


# --------------------------------------------------------------------------- #
# Consultas
# --------------------------------------------------------------------------- #
@pytest.mark.asyncio
async def test_public_list_only_shows_approved(app, async_client, donation_payload, fake_gateway):
    fake_gateway.preference_ids = ["p-1", "p-2"]
    approved = await async_client.post(f"{BASE}/single", json={**donation_payload, "isAnonymous": True})
    await async_client.post(f"{BASE}/single", json=donation_payload)
    await _set_status(app, approved.json()["data"]["donation"]["id"], PaymentStatus.APPROVED)

    res = await async_client.get(f"{BASE}/public", params={"limit": 500})

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["total"] == 1
    assert data["limit"] == 100
    item = data["items"][0]
    assert item["donorName"] == "Doador Anônimo"
    assert "donorEmail" not in item


@pytest.mark.asyncio
async def test_general_statistics(app, async_client, donation_payload, fake_gateway):
    fake_gateway.preference_ids = ["p-1", "p-2"]
    first = await async_client.post(f"{BASE}/single", json=donation_payload)
    await async_client.post(f"{BASE}/single", json={**donation_payload, "amount": 75})
    await _set_status(app, first.json()["data"]["donation"]["id"], PaymentStatus.APPROVED)

    res = await async_client.get(f"{BASE}/stats")

    assert res.status_code == 200
    stats = res.json()["data"]
    assert stats["totalDonations"] == 2
    assert stats["totalAmount"] == 100.0
    assert stats["averageAmount"] == 50.0
    assert stats["approvedDonations"] == 1
    assert stats["approvedAmount"] == 25.0


@pytest.mark.asyncio
async def test_organization_endpoints(async_client, auth_headers, donation_payload, fake_gateway):
    fake_gateway.preference_ids = ["p-1", "p-2"]
    await async_client.post(f"{BASE}/single", json=donation_payload)
    await async_client.post(f"{BASE}/single", json={**donation_payload, "organizationId": "org-2"})
    await async_client.post(f"{BASE}/recurring", json=donation_payload)

    assert (await async_client.get(f"{BASE}/organization/org-1")).status_code == 401

    res = await async_client.get(f"{BASE}/organization/org-1", headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["data"]["total"] == 2

    res = await async_client.get(
        f"{BASE}/organization/org-1", params={"type": "recurring"}, headers=auth_headers
    )
    assert res.json()["data"]["total"] == 1

    res = await async_client.get(f"{BASE}/organization/org-1/statistics", headers=auth_headers)
    stats = res.json()["data"]
    assert stats["totalDonations"] == 2
    assert stats["singleDonations"] == 1
    assert stats["recurringDonations"] == 1
    assert Decimal(str(stats["totalAmount"])) == Decimal("50")


@pytest.mark.asyncio
async def test_get_and_delete_donation(app, async_client, auth_headers, donation_payload):
    created = await async_client.post(f"{BASE}/single", json=donation_payload)
    donation_id = created.json()["data"]["donation"]["id"]

    assert (await async_client.get(f"{BASE}/{donation_id}")).status_code == 401

    res = await async_client.get(f"{BASE}/{donation_id}", headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["data"]["donorEmail"] == "maria@x.com"

    res = await async_client.delete(f"{BASE}/{donation_id}", headers=auth_headers)
    assert res.status_code == 200
    assert await _count(app) == 0

    res = await async_client.get(f"{BASE}/{donation_id}", headers=auth_headers)
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_get_donation_invalid_uuid(async_client, auth_headers):
    res = await async_client.get(f"{BASE}/not-a-uuid", headers=auth_headers)
    assert res.status_code == 422
