# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/services/__init__.py

Servicios de aplicación del módulo Donations.
"""

from .donation_service import (
    ANONYMOUS_DONOR_NAME,
    MAX_AMOUNT,
    CheckoutResult,
    DonationService,
    SubscriptionCheckoutResult,
    WebhookOutcome,
)

__all__ = [
    "ANONYMOUS_DONOR_NAME",
    "MAX_AMOUNT",
    "CheckoutResult",
    "DonationService",
    "SubscriptionCheckoutResult",
    "WebhookOutcome",
]
