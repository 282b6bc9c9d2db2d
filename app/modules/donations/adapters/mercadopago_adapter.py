# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/adapters/mercadopago_adapter.py

Adaptador asíncrono (httpx) para la API REST de Mercado Pago.

Operaciones:
- POST /checkout/preferences          → donación única (Checkout Pro)
- POST /preapproval_plan + /preapproval → donación recurrente (dos pasos)
- POST /preapproval (auto_recurring inline) → fallback legado sin plan
- GET  /v1/payments/{id}, GET /preapproval/{id}
- PUT  /preapproval/{id}              → actualizar / cancelar
- GET  /users/me                      → health check del token

Reintentos:
- Solo el segundo paso del flujo recurrente se reintenta, con esperas
  0, 1, 2, 4, 8 s, y solo cuando el proveedor aún no "ve" el plan recién
  creado (404 "template ... does not exist").
- El fallback legado se reintenta una vez sin payer_email cuando el
  proveedor responde 400 "different countries".
- Todo lo demás se propaga de inmediato como PaymentGatewayError.

Autor: Equipo Colab ONGs
Fecha: 2026-03-14
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence, TYPE_CHECKING

import httpx

from app.modules.donations.adapters.dto import (
    PayerInfo,
    PaymentInfo,
    PaymentPreference,
    ProcessedWebhook,
    SubscriptionInfo,
    SubscriptionPlan,
    SubscriptionResult,
)
from app.modules.donations.enums import DonationFrequency
from app.modules.donations.errors import PaymentGatewayError
from app.modules.donations.facades.status_normalizer import normalize_payment_status
from app.modules.donations.metrics import observe_gateway_request, observe_plan_retry

if TYPE_CHECKING:
    from app.shared.config.settings_base import BaseAppSettings

logger = logging.getLogger(__name__)

MERCADOPAGO_API_URL = "https://api.mercadopago.com"

# Esperas (segundos) antes de cada intento de POST /preapproval con plan
PLAN_RETRY_DELAYS: tuple[float, ...] = (0, 1, 2, 4, 8)

PAYMENT_TOPICS = frozenset({"payment"})
SUBSCRIPTION_TOPICS = frozenset({"preapproval", "subscription_preapproval"})

SleepFunc = Callable[[float], Awaitable[Any]]


def _to_amount(value: Decimal | float | int) -> float:
    """La API espera números JSON; Decimal no es serializable por httpx."""
    return float(Decimal(str(value)).quantize(Decimal("0.01")))


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _extract_message(payload: Any, response: httpx.Response) -> str:
    """Mensaje legible del error de Mercado Pago (message > error > causa > texto)."""
    if isinstance(payload, dict):
        for key in ("message", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        causes = payload.get("cause")
        if isinstance(causes, list) and causes:
            first = causes[0]
            if isinstance(first, dict) and first.get("description"):
                return str(first["description"])
    text = (response.text or "").strip()
    return text[:500] if text else f"HTTP {response.status_code}"


def is_plan_not_ready_error(exc: PaymentGatewayError) -> bool:
    """404 del preapproval porque el plan recién creado aún no se propagó."""
    message = (exc.provider_message or "").lower()
    return exc.status_code == 404 and "template" in message and "does not exist" in message


def is_different_countries_error(exc: PaymentGatewayError) -> bool:
    """400 del preapproval directo cuando payer y collector son de países distintos."""
    message = (exc.provider_message or "").lower()
    return exc.status_code == 400 and "different countries" in message


class MercadoPagoAdapter:
    """Cliente de la API de Mercado Pago usado por DonationService."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        currency: str = "BRL",
        notification_url: Optional[str] = None,
        back_urls: Optional[Mapping[str, str]] = None,
        plan_retry_delays: Sequence[float] = PLAN_RETRY_DELAYS,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._client = client
        self.currency = currency
        self.notification_url = notification_url
        self.back_urls: Dict[str, str] = dict(back_urls or {})
        self.plan_retry_delays = tuple(plan_retry_delays)
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: BaseAppSettings) -> "MercadoPagoAdapter":
        """
        Crea el adaptador y su httpx.AsyncClient desde settings.

        El cliente es compartido por toda la app; se cierra con aclose()
        en el shutdown del lifespan.
        """
        token = ""
        if settings.mercadopago_access_token:
            token = settings.mercadopago_access_token.get_secret_value().strip()

        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        else:
            logger.warning("[MercadoPago] MP_ACCESS_TOKEN no configurado; el gateway responderá 401")

        client = httpx.AsyncClient(
            base_url=settings.mercadopago_base_url or MERCADOPAGO_API_URL,
            headers=headers,
            timeout=httpx.Timeout(settings.mercadopago_timeout_sec),
        )

        logger.info(
            "[MercadoPago] config: base_url=%s timeout=%ss currency=%s token=%s",
            settings.mercadopago_base_url,
            settings.mercadopago_timeout_sec,
            settings.mercadopago_currency,
            f"{token[:8]}***" if token else "<vacío>",
        )

        return cls(
            client,
            currency=settings.mercadopago_currency,
            notification_url=settings.get_notification_url(),
            back_urls=settings.get_back_urls(),
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------ #
    # Transporte
    # ------------------------------------------------------------------ #
    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as exc:
            observe_gateway_request(operation, "transport_error")
            logger.error("[MercadoPago] %s %s → %s", method, path, exc)
            raise PaymentGatewayError(operation, f"{type(exc).__name__}: {exc}") from exc

        payload = _safe_json(response)
        if response.is_error:
            observe_gateway_request(operation, "error")
            message = _extract_message(payload, response)
            logger.warning(
                "[MercadoPago] %s %s → %s %s",
                method,
                path,
                response.status_code,
                message,
            )
            raise PaymentGatewayError(
                operation,
                message,
                status_code=response.status_code,
                payload=payload,
            )

        observe_gateway_request(operation, "ok")
        return payload if isinstance(payload, dict) else {}

    @staticmethod
    def _require_id(operation: str, data: Mapping[str, Any]) -> str:
        resource_id = data.get("id")
        if resource_id in (None, ""):
            raise PaymentGatewayError(operation, "resposta sem id")
        return str(resource_id)

    # ------------------------------------------------------------------ #
    # Donación única
    # ------------------------------------------------------------------ #
    async def create_payment_preference(
        self,
        *,
        amount: Decimal,
        payer: PayerInfo,
        external_reference: str,
        back_urls: Optional[Mapping[str, str]] = None,
        title: str = "Doação",
        description: Optional[str] = None,
    ) -> PaymentPreference:
        """Crea una preference de Checkout Pro. Sin reintentos."""
        operation = "createPaymentPreference"
        body: Dict[str, Any] = {
            "items": [
                {
                    "id": external_reference,
                    "title": title,
                    "description": description or title,
                    "quantity": 1,
                    "currency_id": self.currency,
                    "unit_price": _to_amount(amount),
                }
            ],
            "payer": payer.to_preference_payer(),
            "back_urls": dict(back_urls or self.back_urls),
            "auto_return": "approved",
            "external_reference": external_reference,
            "payment_methods": {"installments": 12},
        }
        if self.notification_url:
            body["notification_url"] = self.notification_url

        data = await self._request(operation, "POST", "/checkout/preferences", json=body)
        preference = PaymentPreference(
            external_id=self._require_id(operation, data),
            payment_url=data.get("init_point"),
            sandbox_url=data.get("sandbox_init_point"),
            external_reference=data.get("external_reference") or external_reference,
        )
        logger.info("[MercadoPago] preference creada id=%s ref=%s", preference.external_id, external_reference)
        return preference

    # ------------------------------------------------------------------ #
    # Donación recurrente
    # ------------------------------------------------------------------ #
    def _auto_recurring(self, amount: Decimal, frequency: DonationFrequency) -> Dict[str, Any]:
        return {
            "frequency": 1,
            "frequency_type": frequency.frequency_type,
            "transaction_amount": _to_amount(amount),
            "currency_id": self.currency,
        }

    async def create_subscription_plan(
        self,
        *,
        amount: Decimal,
        frequency: DonationFrequency | str,
        reason: str,
        back_url: Optional[str] = None,
    ) -> SubscriptionPlan:
        operation = "createSubscriptionPlan"
        freq = DonationFrequency(frequency)
        body = {
            "reason": reason,
            "auto_recurring": self._auto_recurring(amount, freq),
            "back_url": back_url or self.back_urls.get("success"),
        }
        data = await self._request(operation, "POST", "/preapproval_plan", json=body)
        auto = data.get("auto_recurring") or {}
        return SubscriptionPlan(
            plan_id=self._require_id(operation, data),
            reason=data.get("reason"),
            amount=auto.get("transaction_amount"),
            frequency_type=auto.get("frequency_type"),
            init_point=data.get("init_point"),
            status=data.get("status"),
        )

    async def _create_preapproval_with_retry(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST /preapproval con plan, reintentando solo mientras el plan no exista
        para el proveedor. Agotados los intentos se relanza el último error.
        """
        last_error: Optional[PaymentGatewayError] = None
        total = len(self.plan_retry_delays)

        for attempt, delay in enumerate(self.plan_retry_delays, start=1):
            if delay:
                await self._sleep(delay)
            try:
                return await self._request("createPreapproval", "POST", "/preapproval", json=body)
            except PaymentGatewayError as exc:
                if not is_plan_not_ready_error(exc):
                    raise
                last_error = exc
                observe_plan_retry()
                logger.warning(
                    "[MercadoPago] plan %s aún no disponible (intento %d/%d)",
                    body.get("preapproval_plan_id"),
                    attempt,
                    total,
                )

        if last_error is None:
            raise PaymentGatewayError("createPreapproval", "nenhuma tentativa configurada")
        raise last_error

    async def _create_direct_preapproval(
        self,
        *,
        amount: Decimal,
        frequency: DonationFrequency,
        payer_email: str,
        reason: str,
        back_url: Optional[str],
        external_reference: str,
    ) -> Dict[str, Any]:
        """Fallback legado: preapproval con auto_recurring inline (sin plan)."""
        body: Dict[str, Any] = {
            "reason": reason,
            "external_reference": external_reference,
            "payer_email": payer_email,
            "back_url": back_url,
            "auto_recurring": self._auto_recurring(amount, frequency),
        }
        try:
            return await self._request("createPreapproval", "POST", "/preapproval", json=body)
        except PaymentGatewayError as exc:
            if not is_different_countries_error(exc):
                raise
            logger.warning("[MercadoPago] payer de otro país; reintentando preapproval sin payer_email")
            body.pop("payer_email", None)
            return await self._request("createPreapproval", "POST", "/preapproval", json=body)

    @staticmethod
    def _to_subscription_result(
        data: Mapping[str, Any],
        external_reference: str,
        plan_id: Optional[str] = None,
    ) -> SubscriptionResult:
        return SubscriptionResult(
            external_id=MercadoPagoAdapter._require_id("createSubscription", data),
            subscription_url=data.get("init_point"),
            sandbox_url=data.get("sandbox_init_point"),
            external_reference=data.get("external_reference") or external_reference,
            status=data.get("status"),
            plan_id=data.get("preapproval_plan_id") or plan_id,
            payer_id=str(data["payer_id"]) if data.get("payer_id") is not None else None,
            next_payment_date=data.get("next_payment_date"),
        )

    async def create_subscription(
        self,
        *,
        amount: Decimal,
        frequency: DonationFrequency | str,
        payer: PayerInfo,
        external_reference: str,
        reason: Optional[str] = None,
        back_url: Optional[str] = None,
    ) -> SubscriptionResult:
        """
        Flujo plan → preapproval; si falla por cualquier motivo se intenta
        el preapproval directo. El error que llega al llamador es el del
        fallback, atribuido a createSubscription.
        """
        freq = DonationFrequency(frequency)
        reason = reason or f"Doação recorrente ({freq.value})"
        back_url = back_url or self.back_urls.get("success")

        try:
            plan = await self.create_subscription_plan(
                amount=amount,
                frequency=freq,
                reason=reason,
                back_url=back_url,
            )
            data = await self._create_preapproval_with_retry(
                {
                    "preapproval_plan_id": plan.plan_id,
                    "reason": reason,
                    "payer_email": payer.email,
                    "back_url": back_url,
                    "external_reference": external_reference,
                }
            )
            result = self._to_subscription_result(data, external_reference, plan_id=plan.plan_id)
        except PaymentGatewayError as plan_error:
            logger.warning(
                "[MercadoPago] flujo plan→preapproval falló (%s); usando preapproval directo",
                plan_error,
            )
            try:
                data = await self._create_direct_preapproval(
                    amount=amount,
                    frequency=freq,
                    payer_email=payer.email,
                    reason=reason,
                    back_url=back_url,
                    external_reference=external_reference,
                )
                result = self._to_subscription_result(data, external_reference)
            except PaymentGatewayError as fallback_error:
                raise fallback_error.rewrap("createSubscription") from fallback_error

        logger.info(
            "[MercadoPago] suscripción creada id=%s plan=%s ref=%s",
            result.external_id,
            result.plan_id,
            external_reference,
        )
        return result

    # ------------------------------------------------------------------ #
    # Consultas
    # ------------------------------------------------------------------ #
    async def get_payment_status(self, payment_id: str) -> PaymentInfo:
        data = await self._request("getPaymentStatus", "GET", f"/v1/payments/{payment_id}")
        payer = data.get("payer") or {}
        return PaymentInfo(
            external_id=str(data.get("id") or payment_id),
            status=data.get("status"),
            status_detail=data.get("status_detail"),
            amount=data.get("transaction_amount"),
            currency_id=data.get("currency_id"),
            payment_method=data.get("payment_method_id"),
            payer_email=payer.get("email") if isinstance(payer, dict) else None,
            external_reference=data.get("external_reference"),
            date_created=data.get("date_created"),
            date_approved=data.get("date_approved"),
        )

    @staticmethod
    def _to_subscription_info(data: Mapping[str, Any], fallback_id: str) -> SubscriptionInfo:
        auto = data.get("auto_recurring") or {}
        return SubscriptionInfo(
            external_id=str(data.get("id") or fallback_id),
            status=data.get("status"),
            reason=data.get("reason"),
            amount=auto.get("transaction_amount"),
            frequency=auto.get("frequency"),
            frequency_type=auto.get("frequency_type"),
            currency_id=auto.get("currency_id"),
            payer_email=data.get("payer_email"),
            external_reference=data.get("external_reference"),
            next_payment_date=data.get("next_payment_date"),
            init_point=data.get("init_point"),
            last_modified=data.get("last_modified"),
        )

    async def get_subscription_status(self, subscription_id: str) -> SubscriptionInfo:
        data = await self._request("getSubscriptionStatus", "GET", f"/preapproval/{subscription_id}")
        return self._to_subscription_info(data, subscription_id)

    # ------------------------------------------------------------------ #
    # Actualización / cancelación
    # ------------------------------------------------------------------ #
    async def update_subscription(
        self,
        subscription_id: str,
        *,
        status: Optional[str] = None,
        amount: Optional[Decimal] = None,
        frequency: Optional[DonationFrequency | str] = None,
        reason: Optional[str] = None,
        external_reference: Optional[str] = None,
        operation: str = "updateSubscription",
    ) -> SubscriptionInfo:
        """PUT /preapproval/{id}: pausar, reactivar o cambiar monto/frecuencia."""
        body: Dict[str, Any] = {}
        if status:
            body["status"] = status
        if reason:
            body["reason"] = reason
        if external_reference:
            body["external_reference"] = external_reference

        auto_recurring: Dict[str, Any] = {}
        if amount is not None:
            auto_recurring["transaction_amount"] = _to_amount(amount)
            auto_recurring["currency_id"] = self.currency
        if frequency is not None:
            auto_recurring["frequency"] = 1
            auto_recurring["frequency_type"] = DonationFrequency(frequency).frequency_type
        if auto_recurring:
            body["auto_recurring"] = auto_recurring

        if not body:
            raise ValueError("update_subscription requiere al menos un campo a modificar")

        data = await self._request(operation, "PUT", f"/preapproval/{subscription_id}", json=body)
        return self._to_subscription_info(data, subscription_id)

    async def cancel_subscription(self, subscription_id: str) -> SubscriptionInfo:
        """Cancela el preapproval. Cancelar dos veces no está protegido."""
        info = await self.update_subscription(
            subscription_id,
            status="cancelled",
            operation="cancelSubscription",
        )
        logger.info("[MercadoPago] suscripción cancelada id=%s status=%s", subscription_id, info.status)
        return info

    # ------------------------------------------------------------------ #
    # Webhooks
    # ------------------------------------------------------------------ #
    async def process_webhook(self, payload: Mapping[str, Any]) -> ProcessedWebhook:
        """
        Re-consulta el recurso notificado. El body solo aporta tipo e id;
        estado y monto salen de la API.
        """
        event_type = str(payload.get("type") or payload.get("topic") or "").strip().lower()
        data = payload.get("data")
        resource_id = data.get("id") if isinstance(data, Mapping) else None

        if event_type in PAYMENT_TOPICS and resource_id:
            info = await self.get_payment_status(str(resource_id))
            return ProcessedWebhook(
                type="payment",
                id=info.external_id,
                raw_status=info.status,
                status=normalize_payment_status(info.status),
                amount=info.amount,
                external_reference=info.external_reference,
                payment_method=info.payment_method,
            )

        if event_type in SUBSCRIPTION_TOPICS and resource_id:
            sub = await self.get_subscription_status(str(resource_id))
            return ProcessedWebhook(
                type="subscription",
                id=sub.external_id,
                raw_status=sub.status,
                status=normalize_payment_status(sub.status),
                amount=sub.amount,
                external_reference=sub.external_reference,
                next_payment_date=sub.next_payment_date,
            )

        logger.info("[MercadoPago] webhook ignorado type=%r id=%r", event_type, resource_id)
        return ProcessedWebhook(type="unknown", data=dict(payload))

    # ------------------------------------------------------------------ #
    # Health
    # ------------------------------------------------------------------ #
    async def health_check(self) -> Dict[str, Any]:
        """Valida el access token contra GET /users/me."""
        try:
            data = await self._request("healthCheck", "GET", "/users/me")
        except PaymentGatewayError as exc:
            return {"ok": False, "error": str(exc), "status_code": exc.status_code}
        return {"ok": True, "user_id": data.get("id"), "site_id": data.get("site_id")}


__all__ = [
    "MercadoPagoAdapter",
    "MERCADOPAGO_API_URL",
    "PLAN_RETRY_DELAYS",
    "is_plan_not_ready_error",
    "is_different_countries_error",
]

# Fin del archivo backend/app/modules/donations/adapters/mercadopago_adapter.py
