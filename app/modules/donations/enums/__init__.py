# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/enums/__init__.py

Superficie de exportación de enums del módulo Donations.

Autor: Equipo Colab ONGs
Fecha: 13/03/2026
"""

from .donation_type_enum import DonationFrequency, DonationType
from .payment_status_enum import PaymentStatus

__all__ = [
    "DonationFrequency",
    "DonationType",
    "PaymentStatus",
]

# Fin del archivo backend/app/modules/donations/enums/__init__.py
