# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/adapters/__init__.py

Adaptadores externos del módulo Donations (Mercado Pago).

Autor: Equipo Colab ONGs
Fecha: 2026-03-14
"""

from .base import PaymentGatewayProtocol
from .dto import (
    PayerInfo,
    PaymentInfo,
    PaymentPreference,
    ProcessedWebhook,
    SubscriptionInfo,
    SubscriptionPlan,
    SubscriptionResult,
)
from .mercadopago_adapter import (
    MERCADOPAGO_API_URL,
    PLAN_RETRY_DELAYS,
    MercadoPagoAdapter,
    is_different_countries_error,
    is_plan_not_ready_error,
)

__all__ = [
    "PaymentGatewayProtocol",
    "PayerInfo",
    "PaymentInfo",
    "PaymentPreference",
    "ProcessedWebhook",
    "SubscriptionInfo",
    "SubscriptionPlan",
    "SubscriptionResult",
    "MERCADOPAGO_API_URL",
    "PLAN_RETRY_DELAYS",
    "MercadoPagoAdapter",
    "is_different_countries_error",
    "is_plan_not_ready_error",
]
