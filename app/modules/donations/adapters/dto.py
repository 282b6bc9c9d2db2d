# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/adapters/dto.py

DTOs de entrada/salida del adaptador de Mercado Pago.

Los estados que devuelve el proveedor se exponen crudos (`status`) y, cuando
aplica, normalizados (`normalized_status`); el servicio nunca persiste el
crudo como estado interno.

Autor: Equipo Colab ONGs
Fecha: 2026-03-14
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from app.modules.donations.enums import PaymentStatus


class PayerInfo(BaseModel):
    """Datos del doador enviados al proveedor."""

    name: str
    email: str
    phone: Optional[str] = None
    document: Optional[str] = Field(default=None, description="CPF del doador")

    def to_preference_payer(self) -> Dict[str, Any]:
        """Formato `payer` de /checkout/preferences (teléfono = DDD + número)."""
        payer: Dict[str, Any] = {"name": self.name, "email": self.email}
        digits = "".join(ch for ch in (self.phone or "") if ch.isdigit())
        if digits:
            payer["phone"] = {"area_code": digits[:2], "number": digits[2:]}
        if self.document:
            payer["identification"] = {"type": "CPF", "number": self.document}
        return payer


class PaymentPreference(BaseModel):
    """Resultado de crear una preference (donación única)."""

    external_id: str
    payment_url: Optional[str] = None
    sandbox_url: Optional[str] = None
    external_reference: Optional[str] = None
    status: str = "created"


class SubscriptionPlan(BaseModel):
    """preapproval_plan creado en el primer paso del flujo recurrente."""

    plan_id: str
    reason: Optional[str] = None
    amount: Optional[Decimal] = None
    frequency_type: Optional[str] = None
    init_point: Optional[str] = None
    status: Optional[str] = None


class SubscriptionResult(BaseModel):
    """Resultado de crear una suscripción (preapproval)."""

    external_id: str
    subscription_url: Optional[str] = None
    sandbox_url: Optional[str] = None
    external_reference: Optional[str] = None
    status: Optional[str] = Field(default=None, description="Estado crudo del proveedor")
    plan_id: Optional[str] = None
    payer_id: Optional[str] = None
    next_payment_date: Optional[datetime] = None


class PaymentInfo(BaseModel):
    """Consulta de GET /v1/payments/{id}."""

    external_id: str
    status: Optional[str] = None
    status_detail: Optional[str] = None
    amount: Optional[Decimal] = None
    currency_id: Optional[str] = None
    payment_method: Optional[str] = None
    payer_email: Optional[str] = None
    external_reference: Optional[str] = None
    date_created: Optional[datetime] = None
    date_approved: Optional[datetime] = None


class SubscriptionInfo(BaseModel):
    """Consulta/actualización de GET|PUT /preapproval/{id}."""

    external_id: str
    status: Optional[str] = None
    reason: Optional[str] = None
    amount: Optional[Decimal] = None
    frequency: Optional[int] = None
    frequency_type: Optional[str] = None
    currency_id: Optional[str] = None
    payer_email: Optional[str] = None
    external_reference: Optional[str] = None
    next_payment_date: Optional[datetime] = None
    init_point: Optional[str] = None
    last_modified: Optional[datetime] = None


class ProcessedWebhook(BaseModel):
    """
    Resultado de procesar una notificación: el estado proviene siempre de
    una re-consulta al proveedor, nunca del body de la notificación.
    """

    type: Literal["payment", "subscription", "unknown"]
    id: Optional[str] = None
    raw_status: Optional[str] = None
    status: PaymentStatus = PaymentStatus.UNKNOWN
    amount: Optional[Decimal] = None
    external_reference: Optional[str] = None
    payment_method: Optional[str] = None
    next_payment_date: Optional[datetime] = None
    data: Optional[Dict[str, Any]] = None


__all__ = [
    "PayerInfo",
    "PaymentPreference",
    "SubscriptionPlan",
    "SubscriptionResult",
    "PaymentInfo",
    "SubscriptionInfo",
    "ProcessedWebhook",
]

# Fin del archivo backend/app/modules/donations/adapters/dto.py
