# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/enums/payment_status_enum.py

Vocabulario interno (cerrado) de estados de pago de una donación.
Nunca se persiste el estado crudo del proveedor en esta columna; la
conversión se hace siempre vía facades.status_normalizer.

Autor: Equipo Colab ONGs
Fecha: 13/03/2026
"""

from enum import StrEnum


class PaymentStatus(StrEnum):
    """Estado del pago en el ciclo de vida con Mercado Pago."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    CHARGED_BACK = "charged_back"
    UNKNOWN = "unknown"

    __db_enum_name__ = "payment_status"

    @property
    def is_final(self) -> bool:
        """Estados sin transición esperada (un webhook posterior aún puede sobrescribirlos)."""
        return self in (
            PaymentStatus.REJECTED,
            PaymentStatus.CANCELLED,
            PaymentStatus.REFUNDED,
            PaymentStatus.CHARGED_BACK,
        )


__all__ = ["PaymentStatus"]

# Fin del archivo backend/app/modules/donations/enums/payment_status_enum.py
