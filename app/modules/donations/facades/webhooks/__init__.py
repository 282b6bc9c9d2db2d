# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/facades/webhooks/__init__.py

Normalización y verificación de notificaciones de Mercado Pago.
"""

from .normalize import (
    WebhookNormalizationError,
    WebhookNotification,
    normalize_notification,
    parse_webhook_body,
)
from .verify import (
    build_signature_manifest,
    compute_signature,
    parse_signature_header,
    verify_mercadopago_signature,
)

__all__ = [
    "WebhookNormalizationError",
    "WebhookNotification",
    "normalize_notification",
    "parse_webhook_body",
    "build_signature_manifest",
    "compute_signature",
    "parse_signature_header",
    "verify_mercadopago_signature",
]
