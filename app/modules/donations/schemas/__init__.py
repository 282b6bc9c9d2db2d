# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/schemas/__init__.py

Superficie de exportación de esquemas del módulo Donations.
"""

from .donation_schemas import (
    ApiResponse,
    CheckoutData,
    DonationCreate,
    DonationRead,
    DonationStatistics,
    Money,
    PageData,
    PublicDonationRead,
    SubscriptionData,
    SubscriptionStatusData,
    SubscriptionUpdate,
    WebhookAck,
)

__all__ = [
    "ApiResponse",
    "CheckoutData",
    "DonationCreate",
    "DonationRead",
    "DonationStatistics",
    "Money",
    "PageData",
    "PublicDonationRead",
    "SubscriptionData",
    "SubscriptionStatusData",
    "SubscriptionUpdate",
    "WebhookAck",
]
