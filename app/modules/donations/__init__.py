# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/__init__.py

Módulo de donaciones de Colab ONGs.

Este módulo gestiona:
- Donaciones únicas (checkout preference de Mercado Pago)
- Donaciones recurrentes (preapproval con plan y fallback directo)
- Webhooks de Mercado Pago (re-consulta y actualización de estado)
- Consultas para el panel de la ONG y el mural público

Estructura:
- enums: PaymentStatus, DonationType, DonationFrequency
- models: Donation (ORM)
- schemas: Validación y serialización Pydantic (camelCase)
- adapters: MercadoPagoAdapter + Protocol del gateway
- facades: Normalización de estados y webhooks
- repositories / services / routes

Autor: Equipo Colab ONGs
Fecha: 2026-03-13
"""

from .enums import DonationFrequency, DonationType, PaymentStatus
from .errors import (
    DonationAccessDeniedError,
    DonationNotFoundError,
    DonationsError,
    DonationValidationError,
    PaymentGatewayError,
    WebhookSignatureError,
)
from .models import Donation

__all__ = [
    "DonationFrequency",
    "DonationType",
    "PaymentStatus",
    "DonationAccessDeniedError",
    "DonationNotFoundError",
    "DonationsError",
    "DonationValidationError",
    "PaymentGatewayError",
    "WebhookSignatureError",
    "Donation",
]

# Fin del archivo backend/app/modules/donations/__init__.py
