# -*- coding: utf-8 -*-
"""
backend/app/routes/__init__.py

Ensamblador principal de ruteadores de la API.

Responsabilidades:
- Incluir el router de health (/health).
- Incluir los ruteadores del módulo Donations (/api/donations).

Autor: Equipo Colab ONGs
Fecha: 2026-03-17
"""

from fastapi import APIRouter

from app.modules.donations.routes import get_donations_routers

from .health_routes import router as health_router

router = APIRouter()

router.include_router(health_router)

for _donations_router in get_donations_routers():
    router.include_router(_donations_router)

__all__ = ["router"]

# Fin del archivo backend/app/routes/__init__.py
