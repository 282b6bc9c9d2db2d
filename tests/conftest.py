# backend/tests/conftest.py
# -*- coding: utf-8 -*-
"""
Config global de tests para el backend de donaciones.

- PYTHON_ENV=test antes de importar `app` (SQLite en memoria, token dummy).
- Cada test con app recibe un engine nuevo (lifespan) y un gateway falso
  inyectado vía dependency_overrides: nunca se llama a Mercado Pago.
- Cliente httpx con ASGITransport + asgi-lifespan para startup/shutdown.
"""

import os
from collections.abc import AsyncIterator
from typing import Any, Dict, List, Mapping, Optional

import pytest
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

# -----------------------------------------------------------------------------
# 0) Entorno mínimo (antes de cualquier import de app.*)
# -----------------------------------------------------------------------------
os.environ["PYTHON_ENV"] = "test"
os.environ.setdefault("APP_SERVICE_TOKEN", "test-service-token")
os.environ.pop("MP_WEBHOOK_SECRET", None)

SERVICE_TOKEN = os.environ["APP_SERVICE_TOKEN"]

from app.modules.donations.adapters.dto import (  # noqa: E402
    PaymentInfo,
    PaymentPreference,
    ProcessedWebhook,
    SubscriptionInfo,
    SubscriptionResult,
)
from app.modules.donations.errors import PaymentGatewayError  # noqa: E402
from app.modules.donations.facades.status_normalizer import normalize_payment_status  # noqa: E402
from app.shared.config import build_settings  # noqa: E402
from app.shared.database import build_engine, build_session_factory, create_schema  # noqa: E402


# -----------------------------------------------------------------------------
# 1) Gateway falso (cumple PaymentGatewayProtocol)
# -----------------------------------------------------------------------------
class FakeGateway:
    """
    Doble del MercadoPagoAdapter con estado en memoria.

    - preference_ids / subscription_ids: ids que devolverá cada creación (en orden;
      el último se repite).
    - payments / subscriptions: estado "remoto" que leen process_webhook y
      get_*_status.
    - fail_with: si se asigna, todas las operaciones lanzan ese error.
    """

    def __init__(self) -> None:
        self.preference_ids: List[str] = ["pref-1"]
        self.subscription_ids: List[str] = ["sub-1"]
        self.payments: Dict[str, Dict[str, Any]] = {}
        self.subscriptions: Dict[str, Dict[str, Any]] = {}
        self.fail_with: Optional[Exception] = None
        self.calls: List[tuple] = []

    def _check(self, operation: str, **kwargs: Any) -> None:
        self.calls.append((operation, kwargs))
        if self.fail_with is not None:
            raise self.fail_with

    @staticmethod
    def _next(ids: List[str]) -> str:
        return ids.pop(0) if len(ids) > 1 else ids[0]

    async def create_payment_preference(self, *, amount, payer, external_reference, back_urls=None,
                                        title="Doação", description=None) -> PaymentPreference:
        self._check("createPaymentPreference", amount=amount, payer=payer,
                    external_reference=external_reference)
        pref_id = self._next(self.preference_ids)
        return PaymentPreference(
            external_id=pref_id,
            payment_url=f"https://pay/{pref_id}",
            sandbox_url=f"https://sandbox.pay/{pref_id}",
            external_reference=external_reference,
        )

    async def create_subscription(self, *, amount, frequency, payer, external_reference,
                                  reason=None, back_url=None) -> SubscriptionResult:
        self._check("createSubscription", amount=amount, frequency=frequency, payer=payer,
                    external_reference=external_reference)
        sub_id = self._next(self.subscription_ids)
        self.subscriptions.setdefault(sub_id, {"status": "pending", "amount": amount})
        return SubscriptionResult(
            external_id=sub_id,
            subscription_url=f"https://sub/{sub_id}",
            external_reference=external_reference,
            status="pending",
            plan_id="plan-1",
        )

    async def get_payment_status(self, payment_id: str) -> PaymentInfo:
        self._check("getPaymentStatus", payment_id=payment_id)
        data = self.payments.get(payment_id)
        if data is None:
            raise PaymentGatewayError("getPaymentStatus", "Payment not found", status_code=404)
        return PaymentInfo(external_id=payment_id, **data)

    async def get_subscription_status(self, subscription_id: str) -> SubscriptionInfo:
        self._check("getSubscriptionStatus", subscription_id=subscription_id)
        data = self.subscriptions.get(subscription_id)
        if data is None:
            raise PaymentGatewayError("getSubscriptionStatus", "preapproval not found", status_code=404)
        return SubscriptionInfo(external_id=subscription_id, **data)

    async def update_subscription(self, subscription_id: str, *, status=None, amount=None,
                                  frequency=None, reason=None, external_reference=None,
                                  operation="updateSubscription") -> SubscriptionInfo:
        self._check(operation, subscription_id=subscription_id, status=status, amount=amount)
        current = self.subscriptions.setdefault(subscription_id, {"status": "authorized"})
        if status:
            current["status"] = status
        if amount is not None:
            current["amount"] = amount
        return SubscriptionInfo(external_id=subscription_id, **current)

    async def cancel_subscription(self, subscription_id: str) -> SubscriptionInfo:
        return await self.update_subscription(
            subscription_id, status="cancelled", operation="cancelSubscription"
        )

    async def process_webhook(self, payload: Mapping[str, Any]) -> ProcessedWebhook:
        event_type = str(payload.get("type") or "").lower()
        data_id = (payload.get("data") or {}).get("id")
        if event_type == "payment" and data_id:
            info = await self.get_payment_status(str(data_id))
            return ProcessedWebhook(
                type="payment",
                id=info.external_id,
                raw_status=info.status,
                status=normalize_payment_status(info.status),
                external_reference=info.external_reference,
                payment_method=info.payment_method,
            )
        if event_type in ("preapproval", "subscription_preapproval") and data_id:
            sub = await self.get_subscription_status(str(data_id))
            return ProcessedWebhook(
                type="subscription",
                id=sub.external_id,
                raw_status=sub.status,
                status=normalize_payment_status(sub.status),
                next_payment_date=sub.next_payment_date,
            )
        return ProcessedWebhook(type="unknown", data=dict(payload))

    async def health_check(self) -> Dict[str, Any]:
        return {"ok": True, "user_id": 1, "site_id": "MLB"}

    async def aclose(self) -> None:
        return None


# -----------------------------------------------------------------------------
# 2) Settings / BD
# -----------------------------------------------------------------------------
@pytest.fixture
def settings():
    return build_settings("test")


@pytest.fixture
async def engine(settings):
    eng = build_engine(settings)
    await create_schema(eng)
    try:
        yield eng
    finally:
        await eng.dispose()


@pytest.fixture
async def db_session(engine):
    session_factory = build_session_factory(engine)
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def donation_payload() -> Dict[str, Any]:
    """Body camelCase tal como lo envía el frontend."""
    return {
        "organizationId": "org-1",
        "organizationName": "ONG Esperança",
        "amount": 25.00,
        "donorName": "Maria",
        "donorEmail": "maria@x.com",
        "donorPhone": "(11) 98765-4321",
        "message": "Força!",
    }


# -----------------------------------------------------------------------------
# 3) App FastAPI y cliente httpx
# -----------------------------------------------------------------------------
@pytest.fixture
def app_settings(settings):
    """Settings de la app; los tests los ajustan con model_copy antes de crear la app."""
    return settings


@pytest.fixture
def app(app_settings, fake_gateway):
    from app.main import create_app
    from app.modules.donations.routes.dependencies import get_optional_payment_gateway

    fastapi_app = create_app(app_settings)
    fastapi_app.dependency_overrides[get_optional_payment_gateway] = lambda: fake_gateway
    return fastapi_app


@pytest.fixture
async def async_client(app) -> AsyncIterator[AsyncClient]:
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {SERVICE_TOKEN}"}

