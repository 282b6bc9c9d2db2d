# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/enums/donation_type_enum.py

Tipo de donación y frecuencia de cobro recurrente.

Autor: Equipo Colab ONGs
Fecha: 13/03/2026
"""

from enum import StrEnum


class DonationType(StrEnum):
    SINGLE = "single"
    RECURRING = "recurring"

    __db_enum_name__ = "donation_type"


class DonationFrequency(StrEnum):
    """Frecuencias soportadas para suscripciones (preapproval)."""

    MONTHLY = "monthly"
    WEEKLY = "weekly"
    YEARLY = "yearly"

    __db_enum_name__ = "donation_frequency"

    @property
    def frequency_type(self) -> str:
        """Valor de `frequency_type` que espera la API de Mercado Pago."""
        return {
            DonationFrequency.MONTHLY: "months",
            DonationFrequency.WEEKLY: "weeks",
            DonationFrequency.YEARLY: "years",
        }[self]


__all__ = ["DonationType", "DonationFrequency"]

# Fin del archivo backend/app/modules/donations/enums/donation_type_enum.py
