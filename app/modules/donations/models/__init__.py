# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/models/__init__.py

Registro de modelos ORM del módulo Donations.
"""

from .donation_models import Donation

__all__ = ["Donation"]
