# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/models/donation_models.py

Modelo ORM para la tabla donations.

Una donación es `single` (checkout preference → external_payment_id) o
`recurring` (preapproval → subscription_id). Ambos identificadores externos
tienen constraint UNIQUE: es la garantía de idempotencia ante webhooks o
reintentos concurrentes.

Autor: Equipo Colab ONGs
Fecha: 2026-03-13
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, as_str_enum
from app.modules.donations.enums import DonationFrequency, DonationType, PaymentStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Donation(Base):
    """Donación registrada en el sistema (Mercado Pago)."""

    __tablename__ = "donations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Organización receptora (el CRUD de organizaciones vive fuera de este servicio)
    organization_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    organization_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="BRL")

    donation_type: Mapped[DonationType] = mapped_column(
        as_str_enum(DonationType),
        nullable=False,
        index=True,
    )
    frequency: Mapped[Optional[DonationFrequency]] = mapped_column(
        as_str_enum(DonationFrequency),
        nullable=True,
    )
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Doador
    donor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    donor_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    donor_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    donor_document: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    donor_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    donor_city: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    donor_state: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    donor_zip_code: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    show_in_public_list: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Identificadores del proveedor
    external_payment_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        unique=True,
        doc="ID de la preference de checkout (donación única).",
    )
    subscription_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        unique=True,
        doc="ID del preapproval (donación recurrente).",
    )
    external_reference: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        index=True,
        doc="external_reference enviado al proveedor; vuelve en los pagos re-consultados.",
    )
    provider_plan_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        doc="ID del preapproval_plan cuando se usó el flujo de dos pasos.",
    )
    next_payment_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    provider_status: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True,
        doc="Último estado crudo reportado por el proveedor (solo diagnóstico).",
    )

    payment_status: Mapped[PaymentStatus] = mapped_column(
        as_str_enum(PaymentStatus),
        nullable=False,
        default=PaymentStatus.PENDING,
        index=True,
    )
    payment_method: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    donation_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="amount_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"<Donation id={self.id} type={self.donation_type} "
            f"amount={self.amount} status={self.payment_status}>"
        )


__all__ = ["Donation"]

# Fin del archivo backend/app/modules/donations/models/donation_models.py
