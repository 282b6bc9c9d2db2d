# -*- coding: utf-8 -*-
"""
backend/tests/modules/donations/adapters/test_mercadopago_adapter.py

Tests del MercadoPagoAdapter contra una API simulada (httpx.MockTransport).
Verifica:
- Preference: body enviado, mapeo de respuesta, error sin reintento
- Suscripción: reintentos acotados del plan (1,2,4,8 s), fallback directo,
  reintento sin payer_email por "different countries"
- Prefijo de error MercadoPagoAdapter/<op> failed:
- process_webhook / cancel_subscription / health_check

Autor: Equipo Colab ONGs
Fecha: 2026-03-18
"""

import json
from decimal import Decimal

import httpx
import pytest

from app.modules.donations.adapters import MercadoPagoAdapter, PayerInfo
from app.modules.donations.enums import DonationFrequency, PaymentStatus
from app.modules.donations.errors import PaymentGatewayError

PLAN_NOT_READY = {"message": "Template with id plan-1 does not exist", "status": 404}


class FakeMercadoPago:
    """
    Router mínimo para MockTransport: cada (método, path) tiene una cola de
    respuestas (status, json); la última se repite.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def on(self, method, path, *responses):
        self.routes[(method, path)] = list(responses)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"message": "route not mocked"})
        status, payload = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(status, json=payload)

    def bodies(self, method, path):
        return [b for m, p, b in self.requests if m == method and p == path]


@pytest.fixture
def api():
    return FakeMercadoPago()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
async def adapter(api, sleeps):
    async def fake_sleep(delay):
        sleeps.append(delay)

    client = httpx.AsyncClient(
        transport=httpx.MockTransport(api.handler),
        base_url="https://api.mercadopago.com",
    )
    mp = MercadoPagoAdapter(
        client,
        notification_url="https://backend.test/api/donations/webhook",
        back_urls={"success": "https://front/ok", "failure": "https://front/err", "pending": "https://front/pend"},
        sleep=fake_sleep,
    )
    yield mp
    await mp.aclose()


@pytest.fixture
def payer():
    return PayerInfo(name="Maria", email="maria@x.com", phone="(11) 98765-4321", document="12345678900")


# --------------------------------------------------------------------------- #
# Preference
# --------------------------------------------------------------------------- #
@pytest.mark.asyncio
async def test_create_payment_preference_maps_response(adapter, api, payer):
    api.on("POST", "/checkout/preferences", (201, {
        "id": "pay-1",
        "init_point": "https://pay/1",
        "sandbox_init_point": "https://sandbox.pay/1",
        "external_reference": "ref-1",
    }))

    pref = await adapter.create_payment_preference(
        amount=Decimal("25.00"), payer=payer, external_reference="ref-1"
    )

    assert pref.external_id == "pay-1"
    assert pref.payment_url == "https://pay/1"
    assert pref.sandbox_url == "https://sandbox.pay/1"

    body = api.bodies("POST", "/checkout/preferences")[0]
    assert body["items"][0]["unit_price"] == 25.0
    assert body["items"][0]["currency_id"] == "BRL"
    assert body["payer"]["email"] == "maria@x.com"
    assert body["payer"]["phone"] == {"area_code": "11", "number": "987654321"}
    assert body["payer"]["identification"] == {"type": "CPF", "number": "12345678900"}
    assert body["back_urls"]["success"] == "https://front/ok"
    assert body["external_reference"] == "ref-1"
    assert body["notification_url"] == "https://backend.test/api/donations/webhook"


@pytest.mark.asyncio
async def test_create_payment_preference_error_is_prefixed_and_not_retried(adapter, api, payer, sleeps):
    api.on("POST", "/checkout/preferences", (400, {"message": "invalid unit_price"}))

    with pytest.raises(PaymentGatewayError) as exc_info:
        await adapter.create_payment_preference(amount=Decimal("1"), payer=payer, external_reference="r")

    err = exc_info.value
    assert str(err) == "MercadoPagoAdapter/createPaymentPreference failed: invalid unit_price"
    assert err.status_code == 400
    assert len(api.requests) == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_transport_error_becomes_gateway_error(payer):
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(boom), base_url="https://api.mercadopago.com")
    mp = MercadoPagoAdapter(client)
    try:
        with pytest.raises(PaymentGatewayError) as exc_info:
            await mp.create_payment_preference(amount=Decimal("10"), payer=payer, external_reference="r")
    finally:
        await mp.aclose()

    assert exc_info.value.status_code is None
    assert str(exc_info.value).startswith("MercadoPagoAdapter/createPaymentPreference failed: ConnectError")


# --------------------------------------------------------------------------- #
# Suscripción
# --------------------------------------------------------------------------- #
@pytest.mark.asyncio
async def test_subscription_retries_until_plan_is_ready(adapter, api, payer, sleeps):
    api.on("POST", "/preapproval_plan", (201, {"id": "plan-1", "auto_recurring": {"frequency_type": "months"}}))
    api.on(
        "POST",
        "/preapproval",
        (404, PLAN_NOT_READY),
        (404, PLAN_NOT_READY),
        (404, PLAN_NOT_READY),
        (404, PLAN_NOT_READY),
        (201, {"id": "sub-1", "init_point": "https://sub/1", "status": "pending"}),
    )

    result = await adapter.create_subscription(
        amount=Decimal("30"),
        frequency=DonationFrequency.MONTHLY,
        payer=payer,
        external_reference="ref-2",
    )

    assert result.external_id == "sub-1"
    assert result.plan_id == "plan-1"
    assert result.subscription_url == "https://sub/1"
    assert sleeps == [1, 2, 4, 8]

    attempts = api.bodies("POST", "/preapproval")
    assert len(attempts) == 5
    assert all(b["preapproval_plan_id"] == "plan-1" for b in attempts)
    assert attempts[0]["payer_email"] == "maria@x.com"


@pytest.mark.asyncio
async def test_plan_retry_is_bounded_and_reraises_last_error(adapter, api, sleeps):
    api.on("POST", "/preapproval", (404, PLAN_NOT_READY))

    with pytest.raises(PaymentGatewayError) as exc_info:
        await adapter._create_preapproval_with_retry({"preapproval_plan_id": "plan-1"})

    assert exc_info.value.status_code == 404
    assert "does not exist" in exc_info.value.provider_message
    assert len(api.requests) == 5
    assert sleeps == [1, 2, 4, 8]


@pytest.mark.asyncio
async def test_other_preapproval_errors_are_not_retried(adapter, api, sleeps):
    api.on("POST", "/preapproval", (400, {"message": "payer_email invalid"}))

    with pytest.raises(PaymentGatewayError):
        await adapter._create_preapproval_with_retry({"preapproval_plan_id": "plan-1"})

    assert len(api.requests) == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_falls_back_to_direct_preapproval_when_plan_fails(adapter, api, payer):
    api.on("POST", "/preapproval_plan", (500, {"message": "internal error"}))
    api.on("POST", "/preapproval", (201, {"id": "sub-direct", "init_point": "https://sub/d"}))

    result = await adapter.create_subscription(
        amount=Decimal("15.5"),
        frequency="weekly",
        payer=payer,
        external_reference="ref-3",
    )

    assert result.external_id == "sub-direct"
    assert result.plan_id is None

    body = api.bodies("POST", "/preapproval")[0]
    assert "preapproval_plan_id" not in body
    assert body["auto_recurring"] == {
        "frequency": 1,
        "frequency_type": "weeks",
        "transaction_amount": 15.5,
        "currency_id": "BRL",
    }
    assert body["payer_email"] == "maria@x.com"


@pytest.mark.asyncio
async def test_different_countries_retries_without_payer_email(adapter, api, payer):
    api.on("POST", "/preapproval_plan", (500, {"message": "internal error"}))
    api.on(
        "POST",
        "/preapproval",
        (400, {"message": "Cannot operate between different countries"}),
        (201, {"id": "sub-4"}),
    )

    result = await adapter.create_subscription(
        amount=Decimal("10"), frequency="yearly", payer=payer, external_reference="ref-4"
    )

    assert result.external_id == "sub-4"
    first, second = api.bodies("POST", "/preapproval")
    assert first["payer_email"] == "maria@x.com"
    assert "payer_email" not in second


@pytest.mark.asyncio
async def test_fallback_failure_is_reported_as_create_subscription(adapter, api, payer):
    api.on("POST", "/preapproval_plan", (500, {"message": "internal error"}))
    api.on("POST", "/preapproval", (401, {"message": "invalid access token"}))

    with pytest.raises(PaymentGatewayError) as exc_info:
        await adapter.create_subscription(
            amount=Decimal("10"), frequency="monthly", payer=payer, external_reference="ref-5"
        )

    assert str(exc_info.value) == "MercadoPagoAdapter/createSubscription failed: invalid access token"
    assert exc_info.value.status_code == 401


# --------------------------------------------------------------------------- #
# Consultas / webhooks / cancelación
# --------------------------------------------------------------------------- #
@pytest.mark.asyncio
async def test_process_webhook_refetches_payment(adapter, api):
    api.on("GET", "/v1/payments/pay-1", (200, {
        "id": "pay-1",
        "status": "approved",
        "transaction_amount": 25.0,
        "payment_method_id": "pix",
        "external_reference": "ref-1",
    }))

    result = await adapter.process_webhook({"type": "payment", "data": {"id": "pay-1"}})

    assert result.type == "payment"
    assert result.id == "pay-1"
    assert result.raw_status == "approved"
    assert result.status is PaymentStatus.APPROVED
    assert result.payment_method == "pix"
    assert result.external_reference == "ref-1"


@pytest.mark.asyncio
async def test_process_webhook_subscription(adapter, api):
    api.on("GET", "/preapproval/sub-1", (200, {
        "id": "sub-1",
        "status": "authorized",
        "auto_recurring": {"transaction_amount": 30.0, "frequency": 1, "frequency_type": "months"},
        "next_payment_date": "2026-04-18T10:00:00.000-03:00",
    }))

    result = await adapter.process_webhook({"type": "subscription_preapproval", "data": {"id": "sub-1"}})

    assert result.type == "subscription"
    assert result.status is PaymentStatus.APPROVED
    assert result.next_payment_date is not None


@pytest.mark.asyncio
async def test_process_webhook_unknown_type_makes_no_calls(adapter, api):
    result = await adapter.process_webhook({"type": "merchant_order", "data": {"id": "1"}})

    assert result.type == "unknown"
    assert result.data == {"type": "merchant_order", "data": {"id": "1"}}
    assert api.requests == []


@pytest.mark.asyncio
async def test_cancel_subscription_sends_cancelled_status(adapter, api):
    api.on("PUT", "/preapproval/sub-1", (200, {"id": "sub-1", "status": "cancelled"}))

    info = await adapter.cancel_subscription("sub-1")

    assert info.status == "cancelled"
    assert api.bodies("PUT", "/preapproval/sub-1") == [{"status": "cancelled"}]


@pytest.mark.asyncio
async def test_cancel_subscription_error_uses_cancel_operation(adapter, api):
    api.on("PUT", "/preapproval/sub-x", (404, {"message": "preapproval not found"}))

    with pytest.raises(PaymentGatewayError) as exc_info:
        await adapter.cancel_subscription("sub-x")

    assert str(exc_info.value) == "MercadoPagoAdapter/cancelSubscription failed: preapproval not found"


@pytest.mark.asyncio
async def test_update_subscription_requires_a_change(adapter):
    with pytest.raises(ValueError):
        await adapter.update_subscription("sub-1")


@pytest.mark.asyncio
async def test_health_check(adapter, api):
    api.on("GET", "/users/me", (200, {"id": 123, "site_id": "MLB"}))
    assert await adapter.health_check() == {"ok": True, "user_id": 123, "site_id": "MLB"}

    api.on("GET", "/users/me", (401, {"message": "invalid_token"}))
    result = await adapter.health_check()
    assert result["ok"] is False
    assert result["status_code"] == 401
