# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/facades/__init__.py

Funciones puras del módulo Donations: normalización de estados y de
notificaciones, y verificación de firmas de webhook.
"""

from .status_normalizer import PROVIDER_STATUS_MAP, normalize_payment_status

__all__ = ["PROVIDER_STATUS_MAP", "normalize_payment_status"]
