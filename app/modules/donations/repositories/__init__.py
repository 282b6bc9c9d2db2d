# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/repositories/__init__.py

Repositorios del módulo Donations.
"""

from .donation_repository import DonationRepository

__all__ = ["DonationRepository"]
