# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/routes/__init__.py

Ensamblador de ruteadores del módulo Donations bajo /api/donations.

El webhook se registra antes que las rutas con parámetro de path
(/{donation_id}) para que no haya ambigüedad.

Autor: Equipo Colab ONGs
Fecha: 2026-03-17
"""

from fastapi import APIRouter

from .donation_routes import router as donation_router
from .webhook_routes import router as webhook_router

router = APIRouter(prefix="/api/donations")

router.include_router(webhook_router)
router.include_router(donation_router)


def get_donations_routers() -> list[APIRouter]:
    return [router]


__all__ = ["router", "get_donations_routers"]

# Fin del archivo backend/app/modules/donations/routes/__init__.py
