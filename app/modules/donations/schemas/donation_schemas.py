# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/schemas/donation_schemas.py

Esquemas Pydantic de la API de donaciones.

El frontend existente envía y espera camelCase (donorName, donorEmail,
paymentUrl...); los modelos aceptan también snake_case. Las reglas de
negocio (monto > 0, email válido, frecuencia) se validan en
DonationService para responder 400 con mensaje de dominio.

Autor: Equipo Colab ONGs
Fecha: 2026-03-15
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, Generic, List, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from app.modules.donations.enums import DonationFrequency, DonationType, PaymentStatus

# Montos como número JSON (el cliente no espera strings)
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --------------------------------------------------------------------------- #
# Entrada
# --------------------------------------------------------------------------- #
class DonationCreate(CamelModel):
    """Datos para crear una donación única o recurrente."""

    # Longitudes alineadas con las columnas de la tabla donations
    organization_id: Optional[str] = Field(default=None, max_length=64)
    organization_name: Optional[str] = Field(default=None, max_length=255)
    amount: Optional[Decimal] = Field(default=None, description="Monto en BRL (> 0, máx. NUMERIC(12,2))")
    donor_name: Optional[str] = Field(default=None, max_length=255)
    donor_email: Optional[str] = Field(default=None, max_length=255)
    donor_phone: Optional[str] = Field(default=None, max_length=32)
    donor_document: Optional[str] = Field(default=None, max_length=32, description="CPF")
    donor_address: Optional[str] = Field(default=None, max_length=255)
    donor_city: Optional[str] = Field(default=None, max_length=128)
    donor_state: Optional[str] = Field(default=None, max_length=64)
    donor_zip_code: Optional[str] = Field(default=None, max_length=16)
    message: Optional[str] = Field(default=None, max_length=1000)
    is_anonymous: bool = False
    show_in_public_list: bool = True
    frequency: Optional[str] = Field(
        default=None,
        description="monthly | weekly | yearly (solo recurrente; default monthly)",
    )
    external_reference: Optional[str] = Field(default=None, max_length=64)


class SubscriptionUpdate(CamelModel):
    status: Optional[str] = Field(default=None, description="paused | authorized | cancelled")
    amount: Optional[Decimal] = None
    frequency: Optional[DonationFrequency] = None
    reason: Optional[str] = None


# --------------------------------------------------------------------------- #
# Salida
# --------------------------------------------------------------------------- #
class DonationRead(CamelModel):
    id: uuid.UUID
    organization_id: Optional[str] = None
    organization_name: Optional[str] = None
    amount: Money
    currency: str
    donation_type: DonationType
    frequency: Optional[DonationFrequency] = None
    message: Optional[str] = None
    donor_name: str
    donor_email: str
    donor_phone: Optional[str] = None
    donor_document: Optional[str] = None
    donor_address: Optional[str] = None
    donor_city: Optional[str] = None
    donor_state: Optional[str] = None
    donor_zip_code: Optional[str] = None
    is_anonymous: bool
    show_in_public_list: bool
    external_payment_id: Optional[str] = None
    subscription_id: Optional[str] = None
    external_reference: Optional[str] = None
    provider_plan_id: Optional[str] = None
    next_payment_date: Optional[datetime] = None
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("donation_metadata", "metadata"),
        serialization_alias="metadata",
    )
    created_at: datetime
    updated_at: datetime


class PublicDonationRead(CamelModel):
    """Donación visible en el mural público; doadores anónimos ya enmascarados."""

    id: uuid.UUID
    donor_name: str
    amount: Money
    message: Optional[str] = None
    donation_type: DonationType
    organization_name: Optional[str] = None
    created_at: datetime


class CheckoutData(CamelModel):
    donation: DonationRead
    payment_url: Optional[str] = None
    sandbox_url: Optional[str] = None
    external_id: str
    created: bool = True


class SubscriptionData(CamelModel):
    donation: DonationRead
    subscription_url: Optional[str] = None
    sandbox_url: Optional[str] = None
    subscription_id: str
    created: bool = True


class SubscriptionStatusData(CamelModel):
    subscription_id: str
    status: PaymentStatus
    provider_status: Optional[str] = None
    amount: Optional[Money] = None
    frequency_type: Optional[str] = None
    reason: Optional[str] = None
    next_payment_date: Optional[datetime] = None
    external_reference: Optional[str] = None


class DonationStatistics(CamelModel):
    total_donations: int = 0
    total_amount: Money = Decimal("0")
    average_amount: Money = Decimal("0")
    single_donations: int = 0
    recurring_donations: int = 0
    approved_donations: int = 0
    pending_donations: int = 0
    approved_amount: Money = Decimal("0")


class PageData(CamelModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    limit: int


class ApiResponse(CamelModel, Generic[T]):
    """Sobre {success, message, data} que consume el frontend."""

    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class WebhookAck(CamelModel):
    """Respuesta al proveedor: siempre HTTP 200."""

    success: bool
    message: str
    outcome: Optional[str] = None


__all__ = [
    "Money",
    "DonationCreate",
    "SubscriptionUpdate",
    "DonationRead",
    "PublicDonationRead",
    "CheckoutData",
    "SubscriptionData",
    "SubscriptionStatusData",
    "DonationStatistics",
    "PageData",
    "ApiResponse",
    "WebhookAck",
]

# Fin del archivo backend/app/modules/donations/schemas/donation_schemas.py
