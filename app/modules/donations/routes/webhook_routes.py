# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/routes/webhook_routes.py

Webhook de Mercado Pago.

Endpoint:
- POST /webhook

Contrato con el proveedor: SIEMPRE HTTP 200. Cualquier fallo (firma,
body inválido, error del gateway o de BD) se registra en logs y métricas
y se informa en el body con success=false; Mercado Pago no reintenta.

Firma: si MP_WEBHOOK_SECRET está configurado se exige x-signature válida;
sin secret las notificaciones se procesan sin verificar (el estado siempre
se re-consulta a la API, nunca se toma del body).

Autor: Equipo Colab ONGs
Fecha: 2026-03-17
"""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Request, status
from sqlalchemy.exc import SQLAlchemyError

from app.shared.config.settings_base import BaseAppSettings
from app.modules.donations.errors import WebhookSignatureError
from app.modules.donations.facades.webhooks import (
    WebhookNormalizationError,
    WebhookNotification,
    normalize_notification,
    parse_webhook_body,
    verify_mercadopago_signature,
)
from app.modules.donations.metrics import observe_webhook_outcome, observe_webhook_received
from app.modules.donations.routes.dependencies import (
    OptionalGatewayDep,
    SessionDep,
    SettingsDep,
    build_donation_service,
)
from app.modules.donations.schemas import WebhookAck

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Donations: webhooks"])


def verify_notification(
    request: Request,
    notification: WebhookNotification,
    settings: BaseAppSettings,
) -> None:
    """Lanza WebhookSignatureError si hay secret configurado y la firma no cuadra."""
    secret = settings.mercadopago_webhook_secret
    if not secret:
        return

    # El manifest usa data.id de la query string cuando viene
    data_id = request.query_params.get("data.id") or notification.data_id
    valid = verify_mercadopago_signature(
        signature_header=request.headers.get("x-signature"),
        request_id=request.headers.get("x-request-id"),
        data_id=data_id,
        secret=secret.get_secret_value(),
        tolerance_seconds=settings.mercadopago_webhook_tolerance_sec,
    )
    if not valid:
        raise WebhookSignatureError("x-signature inválida")


@router.post("/webhook", status_code=status.HTTP_200_OK, response_model=WebhookAck)
async def mercadopago_webhook(
    request: Request,
    session: SessionDep,
    gateway: OptionalGatewayDep,
    settings: SettingsDep,
) -> WebhookAck:
    start_time = time.perf_counter()

    try:
        body = parse_webhook_body(await request.body())
    except WebhookNormalizationError as e:
        logger.warning("Webhook MP con body inválido: %s", e)
        observe_webhook_received("invalid")
        observe_webhook_outcome("invalid_body", time.perf_counter() - start_time)
        return WebhookAck(success=False, message="Invalid notification body", outcome="invalid_body")

    notification = normalize_notification(body, request.query_params)
    observe_webhook_received(notification.type or "unknown")
    logger.info(
        "Webhook MP recibido type=%s data.id=%s action=%s",
        notification.type,
        notification.data_id,
        notification.action,
    )

    try:
        verify_notification(request, notification, settings)
    except WebhookSignatureError as e:
        observe_webhook_outcome("invalid_signature", time.perf_counter() - start_time)
        return WebhookAck(success=False, message=str(e), outcome="invalid_signature")

    if gateway is None:
        logger.error("Webhook MP sin gateway inicializado (data.id=%s)", notification.data_id)
        observe_webhook_outcome("unavailable", time.perf_counter() - start_time)
        return WebhookAck(success=False, message="Payment gateway not initialized", outcome="unavailable")

    service = build_donation_service(gateway, settings)
    outcome = await service.process_payment_webhook(session, notification.to_payload())
    if outcome.outcome in ("updated", "unchanged"):
        try:
            await session.commit()
        except SQLAlchemyError as e:
            logger.exception("Commit de webhook falló (%s id=%s)", outcome.event_type, outcome.resource_id)
            await session.rollback()
            observe_webhook_outcome("error", time.perf_counter() - start_time)
            return WebhookAck(success=False, message=f"Persistence error: {e}", outcome="error")

    observe_webhook_outcome(outcome.outcome, time.perf_counter() - start_time)

    if outcome.outcome == "error":
        return WebhookAck(success=False, message="Webhook processing failed", outcome=outcome.outcome)
    return WebhookAck(success=True, message="Webhook processed", outcome=outcome.outcome)


__all__ = ["router", "verify_notification"]

# Fin del archivo backend/app/modules/donations/routes/webhook_routes.py
