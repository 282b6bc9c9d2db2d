# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/routes/donation_routes.py

Rutas HTTP de donaciones.

Públicas (frontend del doador):
- POST   /single, /donate                    → donación única (checkout)
- POST   /recurring                          → donación recurrente (preapproval)
- GET    /recurring/{subscription_id}/status → estado en Mercado Pago
- DELETE /recurring/{subscription_id}        → cancelar suscripción
- GET    /public                             → mural público
- GET    /stats                              → estadísticas generales

Protegidas con token de servicio (panel de la ONG / backoffice):
- PUT    /recurring/{subscription_id}
- GET    /organization/{organization_id}
- GET    /organization/{organization_id}/statistics
- GET    /{donation_id}
- DELETE /{donation_id}/cancel
- DELETE /{donation_id}

Los errores de dominio se traducen aquí a HTTPException; servicio y
adaptador no dependen de FastAPI.

Autor: Equipo Colab ONGs
Fecha: 2026-03-17
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import NoReturn, Optional

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError

from app.shared.internal_auth import InternalServiceAuth
from app.modules.donations.enums import DonationType, PaymentStatus
from app.modules.donations.errors import (
    DonationAccessDeniedError,
    DonationNotFoundError,
    DonationsError,
    DonationValidationError,
    PaymentGatewayError,
)
from app.modules.donations.facades.status_normalizer import normalize_payment_status
from app.modules.donations.adapters.dto import SubscriptionInfo
from app.modules.donations.schemas import (
    ApiResponse,
    CheckoutData,
    DonationCreate,
    DonationRead,
    DonationStatistics,
    PageData,
    PublicDonationRead,
    SubscriptionData,
    SubscriptionStatusData,
    SubscriptionUpdate,
)
from app.modules.donations.routes.dependencies import (
    DonationServiceDep,
    SessionDep,
    SettingsDep,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Donations"])


def _raise_http(exc: DonationsError) -> NoReturn:
    """Mapea errores de dominio a respuestas HTTP."""
    if isinstance(exc, DonationValidationError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "invalid_donation", "message": str(exc), "field": exc.field},
        ) from exc
    if isinstance(exc, DonationNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, DonationAccessDeniedError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    if isinstance(exc, PaymentGatewayError):
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "payment_gateway_error", "message": str(exc)},
        ) from exc
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc


def _subscription_status(info: SubscriptionInfo) -> SubscriptionStatusData:
    return SubscriptionStatusData(
        subscription_id=info.external_id,
        status=normalize_payment_status(info.status),
        provider_status=info.status,
        amount=info.amount,
        frequency_type=info.frequency_type,
        reason=info.reason,
        next_payment_date=info.next_payment_date,
        external_reference=info.external_reference,
    )


# --------------------------------------------------------------------------- #
# Creación
# --------------------------------------------------------------------------- #
@router.post(
    "/single",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[CheckoutData],
    summary="Criar doação única",
)
@router.post(
    "/donate",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[CheckoutData],
    include_in_schema=False,
)
async def create_single_donation(
    payload: DonationCreate,
    session: SessionDep,
    service: DonationServiceDep,
    settings: SettingsDep,
):
    try:
        result = await service.create_single_donation(
            session,
            payload,
            back_urls=settings.get_back_urls(),
        )
        await session.commit()
    except DonationsError as e:
        _raise_http(e)

    return ApiResponse(
        message="Doação criada com sucesso",
        data=CheckoutData(
            donation=DonationRead.model_validate(result.donation),
            payment_url=result.payment_url,
            sandbox_url=result.sandbox_url,
            external_id=result.external_id,
            created=result.created,
        ),
    )


@router.post(
    "/recurring",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[SubscriptionData],
    summary="Criar doação recorrente",
)
async def create_recurring_donation(
    payload: DonationCreate,
    session: SessionDep,
    service: DonationServiceDep,
    settings: SettingsDep,
):
    try:
        result = await service.create_recurring_donation(
            session,
            payload,
            back_url=settings.get_back_urls()["success"],
        )
        await session.commit()
    except DonationsError as e:
        _raise_http(e)

    return ApiResponse(
        message="Doação recorrente criada com sucesso",
        data=SubscriptionData(
            donation=DonationRead.model_validate(result.donation),
            subscription_url=result.subscription_url,
            sandbox_url=result.sandbox_url,
            subscription_id=result.subscription_id,
            created=result.created,
        ),
    )


# --------------------------------------------------------------------------- #
# Suscripciones
# --------------------------------------------------------------------------- #
@router.get(
    "/recurring/{subscription_id}/status",
    response_model=ApiResponse[SubscriptionStatusData],
)
async def get_subscription_status(subscription_id: str, service: DonationServiceDep):
    try:
        info = await service.get_subscription_status(subscription_id)
    except DonationsError as e:
        _raise_http(e)
    return ApiResponse(data=_subscription_status(info))


@router.put(
    "/recurring/{subscription_id}",
    response_model=ApiResponse[SubscriptionStatusData],
)
async def update_subscription(
    subscription_id: str,
    payload: SubscriptionUpdate,
    session: SessionDep,
    service: DonationServiceDep,
    _auth: InternalServiceAuth,
):
    try:
        info = await service.update_subscription(session, subscription_id, payload)
        await session.commit()
    except DonationsError as e:
        _raise_http(e)
    return ApiResponse(message="Assinatura atualizada", data=_subscription_status(info))


@router.delete(
    "/recurring/{subscription_id}",
    response_model=ApiResponse[SubscriptionStatusData],
)
async def cancel_subscription(
    subscription_id: str,
    session: SessionDep,
    service: DonationServiceDep,
):
    try:
        info = await service.cancel_subscription(session, subscription_id)
    except DonationsError as e:
        _raise_http(e)
    try:
        await session.commit()
    except SQLAlchemyError as e:
        # La cancelación en Mercado Pago ya ocurrió
        logger.warning("Commit de cancelación local falló para %s: %s", subscription_id, e)
        await session.rollback()
    return ApiResponse(message="Assinatura cancelada com sucesso", data=_subscription_status(info))


# --------------------------------------------------------------------------- #
# Consultas públicas
# --------------------------------------------------------------------------- #
@router.get("/public", response_model=ApiResponse[PageData[PublicDonationRead]])
async def list_public_donations(
    session: SessionDep,
    service: DonationServiceDep,
    settings: SettingsDep,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
):
    limit = min(limit or settings.page_size_default, settings.page_size_max)
    items, total = await service.list_public_donations(session, page=page, limit=limit)
    return ApiResponse(
        data=PageData[PublicDonationRead](
            items=[PublicDonationRead.model_validate(item) for item in items],
            total=total,
            page=page,
            limit=limit,
        )
    )


@router.get("/stats", response_model=ApiResponse[DonationStatistics])
async def get_general_statistics(
    session: SessionDep,
    service: DonationServiceDep,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
):
    stats = await service.get_statistics(session, start_date=start_date, end_date=end_date)
    return ApiResponse(data=DonationStatistics(**stats))


# --------------------------------------------------------------------------- #
# Panel de la organización (token de servicio)
# --------------------------------------------------------------------------- #
@router.get(
    "/organization/{organization_id}",
    response_model=ApiResponse[PageData[DonationRead]],
)
async def list_organization_donations(
    organization_id: str,
    session: SessionDep,
    service: DonationServiceDep,
    settings: SettingsDep,
    _auth: InternalServiceAuth,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    status_filter: Optional[PaymentStatus] = Query(None, alias="status"),
    donation_type: Optional[DonationType] = Query(None, alias="type"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
):
    limit = min(limit or settings.page_size_default, settings.page_size_max)
    items, total = await service.list_organization_donations(
        session,
        organization_id,
        status=status_filter,
        donation_type=donation_type,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return ApiResponse(
        data=PageData[DonationRead](
            items=[DonationRead.model_validate(d) for d in items],
            total=total,
            page=page,
            limit=limit,
        )
    )


@router.get(
    "/organization/{organization_id}/statistics",
    response_model=ApiResponse[DonationStatistics],
)
async def get_organization_statistics(
    organization_id: str,
    session: SessionDep,
    service: DonationServiceDep,
    _auth: InternalServiceAuth,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
):
    stats = await service.get_statistics(
        session,
        organization_id=organization_id,
        start_date=start_date,
        end_date=end_date,
    )
    return ApiResponse(data=DonationStatistics(**stats))


@router.get("/{donation_id}", response_model=ApiResponse[DonationRead])
async def get_donation(
    donation_id: uuid.UUID,
    session: SessionDep,
    service: DonationServiceDep,
    _auth: InternalServiceAuth,
):
    try:
        donation = await service.get_donation(session, donation_id)
    except DonationsError as e:
        _raise_http(e)
    return ApiResponse(data=DonationRead.model_validate(donation))


@router.delete("/{donation_id}/cancel", response_model=ApiResponse[DonationRead])
async def cancel_recurring_donation(
    donation_id: uuid.UUID,
    session: SessionDep,
    service: DonationServiceDep,
    _auth: InternalServiceAuth,
    organization_id: str = Query(...),
):
    try:
        donation = await service.cancel_recurring_donation(session, donation_id, organization_id)
    except DonationsError as e:
        _raise_http(e)
    await session.commit()
    return ApiResponse(
        message="Doação recorrente cancelada com sucesso",
        data=DonationRead.model_validate(donation),
    )


@router.delete("/{donation_id}", response_model=ApiResponse[None])
async def delete_donation(
    donation_id: uuid.UUID,
    session: SessionDep,
    service: DonationServiceDep,
    _auth: InternalServiceAuth,
):
    try:
        await service.delete_donation(session, donation_id)
    except DonationsError as e:
        _raise_http(e)
    await session.commit()
    return ApiResponse(message="Doação removida com sucesso")


__all__ = ["router"]

# Fin del archivo backend/app/modules/donations/routes/donation_routes.py
