# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/routes/dependencies.py

Dependencias FastAPI del módulo Donations.

El gateway (MercadoPagoAdapter) y los settings se construyen una sola vez
en el lifespan y viven en app.state; aquí solo se leen. Los tests
sustituyen `get_optional_payment_gateway` vía app.dependency_overrides.

Autor: Equipo Colab ONGs
Fecha: 2026-03-17
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.settings_base import BaseAppSettings
from app.shared.database.database import get_async_session
from app.modules.donations.adapters.base import PaymentGatewayProtocol
from app.modules.donations.repositories import DonationRepository
from app.modules.donations.services import DonationService


def get_app_settings(request: Request) -> BaseAppSettings:
    return request.app.state.settings


def get_optional_payment_gateway(request: Request) -> Optional[PaymentGatewayProtocol]:
    """None si el lifespan no dejó gateway; el webhook debe responder igual."""
    return getattr(request.app.state, "payment_gateway", None)


def get_payment_gateway(
    gateway: Annotated[Optional[PaymentGatewayProtocol], Depends(get_optional_payment_gateway)],
) -> PaymentGatewayProtocol:
    if gateway is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payment gateway not initialized",
        )
    return gateway


def build_donation_service(
    gateway: PaymentGatewayProtocol, settings: BaseAppSettings
) -> DonationService:
    return DonationService(
        DonationRepository(),
        gateway,
        currency=settings.mercadopago_currency,
    )


def get_donation_service(
    gateway: Annotated[PaymentGatewayProtocol, Depends(get_payment_gateway)],
    settings: Annotated[BaseAppSettings, Depends(get_app_settings)],
) -> DonationService:
    return build_donation_service(gateway, settings)


SessionDep = Annotated[AsyncSession, Depends(get_async_session)]
SettingsDep = Annotated[BaseAppSettings, Depends(get_app_settings)]
OptionalGatewayDep = Annotated[Optional[PaymentGatewayProtocol], Depends(get_optional_payment_gateway)]
DonationServiceDep = Annotated[DonationService, Depends(get_donation_service)]


__all__ = [
    "get_app_settings",
    "get_optional_payment_gateway",
    "get_payment_gateway",
    "build_donation_service",
    "get_donation_service",
    "SessionDep",
    "SettingsDep",
    "OptionalGatewayDep",
    "DonationServiceDep",
]

# Fin del archivo backend/app/modules/donations/routes/dependencies.py
