# -*- coding: utf-8 -*-
"""
backend/app/routes/health_routes.py

Health check del backend de donaciones.

- GET /health       → BD alcanzable + gateway configurado
- GET /health/live  → liveness simple
- GET /health/mercadopago → valida el access token contra /users/me

Autor: Equipo Colab ONGs
Fecha: 2026-03-17
"""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.modules.donations.adapters.base import PaymentGatewayProtocol
from app.modules.donations.routes.dependencies import get_payment_gateway
from app.shared.database.database import check_database_health

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    summary="Health check del backend",
    description=(
        "Devuelve el estado básico del backend, incluyendo conectividad a la "
        "base de datos y si el gateway de Mercado Pago está inicializado."
    ),
)
async def health_check(request: Request) -> dict:
    settings = request.app.state.settings
    engine = getattr(request.app.state, "engine", None)

    db_ok = await check_database_health(engine, timeout_s=2.0) if engine is not None else False
    token = settings.mercadopago_access_token
    gateway_ok = getattr(request.app.state, "payment_gateway", None) is not None and bool(token)

    return {
        "status": "ok" if db_ok and gateway_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.python_env,
        "database": {"reachable": db_ok},
        "payment_gateway": {"provider": "mercadopago", "configured": gateway_ok},
        "service": {"name": settings.app_name, "version": settings.app_version},
    }


@router.get("/health/live")
async def health_live() -> dict:
    return {"live": True}


@router.get("/health/mercadopago")
async def health_mercadopago(
    gateway: Annotated[PaymentGatewayProtocol, Depends(get_payment_gateway)],
) -> dict:
    """Llama a GET /users/me con el token configurado (no cachea)."""
    return await gateway.health_check()

# Fin del archivo backend/app/routes/health_routes.py
