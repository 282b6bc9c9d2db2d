# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/facades/webhooks/verify.py

Verificación HMAC-SHA256 del header x-signature de Mercado Pago.

Formato del header:  x-signature: ts=1704908010,v1=<hex>
Manifest firmado:    id:<data.id>;request-id:<x-request-id>;ts:<ts>;
(las partes ausentes se omiten del manifest; data.id alfanumérico va en
minúsculas). La clave es el "secret" del panel de webhooks (MP_WEBHOOK_SECRET).

Autor: Equipo Colab ONGs
Fecha: 2026-03-15
"""
from __future__ import annotations

import hashlib
import hmac
import logging
import time
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


def parse_signature_header(signature_header: str) -> Tuple[Optional[str], Optional[str]]:
    """Extrae (ts, v1) de "ts=...,v1=..."; partes ausentes → None."""
    ts: Optional[str] = None
    v1: Optional[str] = None
    for item in signature_header.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            continue
        key = key.strip().lower()
        if key == "ts":
            ts = value.strip()
        elif key == "v1":
            v1 = value.strip()
    return ts, v1


def build_signature_manifest(
    data_id: Optional[str],
    request_id: Optional[str],
    ts: Optional[str],
) -> str:
    parts = []
    if data_id:
        parts.append(f"id:{data_id.lower() if data_id.isalnum() else data_id};")
    if request_id:
        parts.append(f"request-id:{request_id};")
    if ts:
        parts.append(f"ts:{ts};")
    return "".join(parts)


def compute_signature(secret: str, manifest: str) -> str:
    return hmac.new(secret.encode("utf-8"), manifest.encode("utf-8"), hashlib.sha256).hexdigest()


def _timestamp_seconds(ts: str) -> int:
    value = int(ts)
    # Mercado Pago ha enviado ts tanto en segundos como en milisegundos
    return value // 1000 if value > 10**11 else value


def verify_mercadopago_signature(
    *,
    signature_header: Optional[str],
    request_id: Optional[str],
    data_id: Optional[str],
    secret: Optional[str],
    tolerance_seconds: int = 300,
    now: Optional[float] = None,
) -> bool:
    """
    Verifica la firma de una notificación de Mercado Pago.

    Args:
        signature_header: Header x-signature
        request_id: Header x-request-id
        data_id: ID del recurso (query data.id o body data.id)
        secret: Secret del webhook
        tolerance_seconds: Antigüedad máxima del ts (0 desactiva el chequeo)
        now: Reloj inyectable para tests

    Returns:
        True si la firma es válida, False en caso contrario
    """
    if not secret:
        logger.error("Webhook MP rechazado: MP_WEBHOOK_SECRET no configurado")
        return False

    if not signature_header:
        logger.warning("Webhook MP rechazado: falta header x-signature")
        return False

    ts, v1 = parse_signature_header(signature_header)
    if not ts or not v1:
        logger.warning("Webhook MP rechazado: x-signature sin ts o v1")
        return False

    try:
        ts_seconds = _timestamp_seconds(ts)
    except ValueError:
        logger.warning("Webhook MP rechazado: ts no numérico (%r)", ts)
        return False

    if tolerance_seconds > 0:
        current = int(now if now is not None else time.time())
        if abs(current - ts_seconds) > tolerance_seconds:
            logger.warning(
                "Webhook MP rechazado: ts fuera de tolerancia. Diferencia: %ss, tolerancia: %ss",
                abs(current - ts_seconds),
                tolerance_seconds,
            )
            return False

    expected = compute_signature(secret, build_signature_manifest(data_id, request_id, ts))
    if not hmac.compare_digest(expected, v1.lower()):
        logger.warning("Webhook MP rechazado: firma no coincide (data.id=%s)", data_id)
        return False

    return True


__all__ = [
    "parse_signature_header",
    "build_signature_manifest",
    "compute_signature",
    "verify_mercadopago_signature",
]

# Fin del archivo backend/app/modules/donations/facades/webhooks/verify.py
