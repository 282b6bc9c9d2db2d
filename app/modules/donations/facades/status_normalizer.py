# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/facades/status_normalizer.py

Normalización de estados crudos de Mercado Pago (payments y preapprovals)
al vocabulario interno PaymentStatus.

Función pura y total: cualquier entrada (incluido None, cadena vacía o
valores desconocidos) produce un PaymentStatus; nunca lanza.

Autor: Equipo Colab ONGs
Fecha: 2026-03-13
"""

from __future__ import annotations

from typing import Any, Mapping

from app.modules.donations.enums import PaymentStatus

PROVIDER_STATUS_MAP: Mapping[str, PaymentStatus] = {
    "pending": PaymentStatus.PENDING,
    "approved": PaymentStatus.APPROVED,
    "authorized": PaymentStatus.APPROVED,
    "in_process": PaymentStatus.PENDING,
    "in_mediation": PaymentStatus.PENDING,
    "rejected": PaymentStatus.REJECTED,
    "cancelled": PaymentStatus.CANCELLED,
    "canceled": PaymentStatus.CANCELLED,
    "refunded": PaymentStatus.REFUNDED,
    "charged_back": PaymentStatus.CHARGED_BACK,
}


def normalize_payment_status(provider_status: Any) -> PaymentStatus:
    """
    Mapea el estado del proveedor (insensible a mayúsculas y espacios).

    >>> normalize_payment_status("  Authorized ")
    <PaymentStatus.APPROVED: 'approved'>
    >>> normalize_payment_status(None)
    <PaymentStatus.UNKNOWN: 'unknown'>
    """
    if not isinstance(provider_status, str):
        return PaymentStatus.UNKNOWN
    return PROVIDER_STATUS_MAP.get(provider_status.strip().lower(), PaymentStatus.UNKNOWN)


__all__ = ["PROVIDER_STATUS_MAP", "normalize_payment_status"]

# Fin del archivo backend/app/modules/donations/facades/status_normalizer.py
