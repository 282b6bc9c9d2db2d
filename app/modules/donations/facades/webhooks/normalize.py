# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/facades/webhooks/normalize.py

Normalización de notificaciones de Mercado Pago.

Mercado Pago notifica de dos formas:
- Webhooks:  body {"type": "payment", "action": "...", "data": {"id": "123"}}
             y query ?type=payment&data.id=123
- IPN legado: query ?topic=payment&id=123 (body opcional con "resource")

Ambas se reducen a un WebhookNotification con `type` y `data_id`; el
payload canónico ({type, data: {id}}) es lo único que recibe el adaptador.

Autor: Equipo Colab ONGs
Fecha: 2026-03-15
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class WebhookNotification(BaseModel):
    """Notificación normalizada (tipo + id del recurso)."""

    type: str = Field(default="", description="payment | preapproval | ... ('' si no viene)")
    data_id: Optional[str] = Field(default=None, description="ID del recurso notificado")
    action: Optional[str] = None
    notification_id: Optional[str] = None
    live_mode: Optional[bool] = None
    raw: Dict[str, Any] = Field(default_factory=dict, description="Body original")

    def to_payload(self) -> Dict[str, Any]:
        """Payload canónico para MercadoPagoAdapter.process_webhook."""
        payload: Dict[str, Any] = {"type": self.type, "data": {"id": self.data_id}}
        if self.action:
            payload["action"] = self.action
        return payload


class WebhookNormalizationError(ValueError):
    """El body de la notificación no es JSON de objeto."""
    pass


def parse_webhook_body(raw_body: bytes) -> Dict[str, Any]:
    """Decodifica el body; vacío → {}. JSON inválido o no-objeto → error."""
    if not raw_body or not raw_body.strip():
        return {}
    try:
        data = json.loads(raw_body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise WebhookNormalizationError(f"JSON inválido: {e}") from e
    if not isinstance(data, dict):
        raise WebhookNormalizationError("El body debe ser un objeto JSON")
    return data


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _id_from_resource(resource: Any) -> Optional[str]:
    """IPN legado: "resource" puede ser una URL .../payments/123 o el id mismo."""
    text = _as_str(resource)
    if not text:
        return None
    return text.rstrip("/").rsplit("/", 1)[-1]


def normalize_notification(
    body: Mapping[str, Any],
    query_params: Optional[Mapping[str, Any]] = None,
) -> WebhookNotification:
    """Combina body y query string en una notificación normalizada."""
    query = query_params or {}

    event_type = (
        _as_str(body.get("type"))
        or _as_str(body.get("topic"))
        or _as_str(query.get("type"))
        or _as_str(query.get("topic"))
        or ""
    ).lower()

    data = body.get("data")
    data_id = _as_str(data.get("id")) if isinstance(data, Mapping) else None
    data_id = data_id or _as_str(query.get("data.id"))

    is_ipn = "topic" in body or "topic" in query
    if not data_id and is_ipn:
        data_id = _as_str(query.get("id")) or _id_from_resource(body.get("resource"))

    live_mode = body.get("live_mode")
    return WebhookNotification(
        type=event_type,
        data_id=data_id,
        action=_as_str(body.get("action")),
        notification_id=None if is_ipn else _as_str(body.get("id")),
        live_mode=live_mode if isinstance(live_mode, bool) else None,
        raw=dict(body),
    )


__all__ = [
    "WebhookNotification",
    "WebhookNormalizationError",
    "parse_webhook_body",
    "normalize_notification",
]

# Fin del archivo backend/app/modules/donations/facades/webhooks/normalize.py
