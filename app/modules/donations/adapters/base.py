# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/adapters/base.py

Contrato del gateway de pagos que consume DonationService.
MercadoPagoAdapter es la implementación de producción; los tests
inyectan dobles que cumplen el mismo Protocol.

Autor: Equipo Colab ONGs
Fecha: 2026-03-14
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

from app.modules.donations.adapters.dto import (
    PayerInfo,
    PaymentInfo,
    PaymentPreference,
    ProcessedWebhook,
    SubscriptionInfo,
    SubscriptionResult,
)
from app.modules.donations.enums import DonationFrequency


@runtime_checkable
class PaymentGatewayProtocol(Protocol):
    """Operaciones de Mercado Pago usadas por la orquestación de donaciones."""

    async def create_payment_preference(
        self,
        *,
        amount: Decimal,
        payer: PayerInfo,
        external_reference: str,
        back_urls: Optional[Mapping[str, str]] = None,
        title: str = "Doação",
        description: Optional[str] = None,
    ) -> PaymentPreference: ...

    async def create_subscription(
        self,
        *,
        amount: Decimal,
        frequency: DonationFrequency | str,
        payer: PayerInfo,
        external_reference: str,
        reason: Optional[str] = None,
        back_url: Optional[str] = None,
    ) -> SubscriptionResult: ...

    async def get_payment_status(self, payment_id: str) -> PaymentInfo: ...

    async def get_subscription_status(self, subscription_id: str) -> SubscriptionInfo: ...

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
    ) -> SubscriptionInfo: ...

    async def cancel_subscription(self, subscription_id: str) -> SubscriptionInfo: ...

    async def process_webhook(self, payload: Mapping[str, Any]) -> ProcessedWebhook: ...

    async def health_check(self) -> Dict[str, Any]: ...


__all__ = ["PaymentGatewayProtocol"]

# Fin del archivo backend/app/modules/donations/adapters/base.py
