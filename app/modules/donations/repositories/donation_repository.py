# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/repositories/donation_repository.py

Repositorio para la tabla donations (única implementación: SQLAlchemy async).

Responsabilidades:
- Búsqueda por external_payment_id / subscription_id / external_reference
- Alta idempotente (constraint UNIQUE + savepoint)
- Listados por organización y mural público
- Estadísticas agregadas

"No encontrado" se devuelve como None; los errores de BD se propagan.

Autor: Equipo Colab ONGs
Fecha: 2026-03-15
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Sequence, Tuple

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from app.shared.database.repository import BaseRepository
from app.modules.donations.enums import DonationType, PaymentStatus
from app.modules.donations.models.donation_models import Donation

logger = logging.getLogger(__name__)

# Columnas con constraint UNIQUE válidas como clave de idempotencia
IDEMPOTENCY_KEYS = ("external_payment_id", "subscription_id")


class DonationRepository(BaseRepository[Donation]):
    def __init__(self) -> None:
        super().__init__(Donation)

    # -----------------------------------------------------------
    # Búsquedas clave para idempotencia e integración
    # -----------------------------------------------------------
    async def find_by_external_payment_id(
        self,
        session: AsyncSession,
        external_payment_id: str,
    ) -> Optional[Donation]:
        stmt = select(Donation).where(Donation.external_payment_id == external_payment_id)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def find_by_subscription_id(
        self,
        session: AsyncSession,
        subscription_id: str,
    ) -> Optional[Donation]:
        stmt = select(Donation).where(Donation.subscription_id == subscription_id)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def find_by_external_reference(
        self,
        session: AsyncSession,
        external_reference: str,
    ) -> Optional[Donation]:
        """La más reciente con ese external_reference (no es UNIQUE)."""
        stmt = (
            select(Donation)
            .where(Donation.external_reference == external_reference)
            .order_by(Donation.created_at.desc())
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def exists_by_external_payment_id(self, session: AsyncSession, external_payment_id: str) -> bool:
        stmt = select(Donation.id).where(Donation.external_payment_id == external_payment_id).limit(1)
        return (await session.execute(stmt)).first() is not None

    async def exists_by_subscription_id(self, session: AsyncSession, subscription_id: str) -> bool:
        stmt = select(Donation.id).where(Donation.subscription_id == subscription_id).limit(1)
        return (await session.execute(stmt)).first() is not None

    # -----------------------------------------------------------
    # Alta idempotente
    # -----------------------------------------------------------
    async def create_or_get(
        self,
        session: AsyncSession,
        *,
        key: str,
        **fields: Any,
    ) -> Tuple[Donation, bool]:
        """
        Inserta la donación o devuelve la existente con el mismo `key`.

        `key` es el nombre de una columna UNIQUE (external_payment_id o
        subscription_id) cuyo valor debe venir en `fields`. El INSERT va en un
        savepoint: si otro request ganó la carrera, el IntegrityError solo
        revierte el savepoint y se relee la fila ganadora.

        Returns:
            (donation, created)
        """
        if key not in IDEMPOTENCY_KEYS:
            raise ValueError(f"Clave de idempotencia no soportada: {key}")
        value = fields.get(key)
        if not value:
            raise ValueError(f"create_or_get requiere un valor para {key}")

        finder = (
            self.find_by_external_payment_id
            if key == "external_payment_id"
            else self.find_by_subscription_id
        )

        existing = await finder(session, value)
        if existing is not None:
            return existing, False

        donation = Donation(**fields)
        try:
            async with session.begin_nested():
                session.add(donation)
                await session.flush()
        except IntegrityError:
            logger.info("Donación %s=%s ya existía (IntegrityError, idempotente)", key, value)
            existing = await finder(session, value)
            if existing is None:
                # El conflicto vino de otra constraint; no es un duplicado
                raise
            return existing, False

        return donation, True

    async def update_status(
        self,
        session: AsyncSession,
        donation: Donation,
        status: PaymentStatus,
        **extra: Any,
    ) -> Donation:
        """Sobrescribe el estado normalizado (y campos de diagnóstico opcionales)."""
        changes = {k: v for k, v in extra.items() if v is not None}
        return await self.update(session, donation, payment_status=status, **changes)

    # -----------------------------------------------------------
    # Listados
    # -----------------------------------------------------------
    @staticmethod
    def _filtered(
        stmt: Select,
        *,
        organization_id: Optional[str] = None,
        status: Optional[PaymentStatus] = None,
        donation_type: Optional[DonationType] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Select:
        if organization_id is not None:
            stmt = stmt.where(Donation.organization_id == organization_id)
        if status is not None:
            stmt = stmt.where(Donation.payment_status == status)
        if donation_type is not None:
            stmt = stmt.where(Donation.donation_type == donation_type)
        if start_date is not None:
            stmt = stmt.where(Donation.created_at >= start_date)
        if end_date is not None:
            stmt = stmt.where(Donation.created_at <= end_date)
        return stmt

    async def list_by_organization(
        self,
        session: AsyncSession,
        organization_id: str,
        *,
        status: Optional[PaymentStatus] = None,
        donation_type: Optional[DonationType] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[Sequence[Donation], int]:
        filters = dict(
            organization_id=organization_id,
            status=status,
            donation_type=donation_type,
            start_date=start_date,
            end_date=end_date,
        )
        stmt = self._filtered(select(Donation), **filters)
        stmt = stmt.order_by(Donation.created_at.desc()).limit(limit).offset(offset)
        items = (await session.execute(stmt)).scalars().all()

        count_stmt = self._filtered(select(func.count(Donation.id)), **filters)
        total = (await session.execute(count_stmt)).scalar_one()
        return items, int(total)

    async def list_public(
        self,
        session: AsyncSession,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[Sequence[Donation], int]:
        """Donaciones aprobadas y marcadas como visibles, más recientes primero."""
        conditions = (
            Donation.show_in_public_list.is_(True),
            Donation.payment_status == PaymentStatus.APPROVED,
        )
        stmt = (
            select(Donation)
            .where(*conditions)
            .order_by(Donation.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        items = (await session.execute(stmt)).scalars().all()
        total = (await session.execute(select(func.count(Donation.id)).where(*conditions))).scalar_one()
        return items, int(total)

    # -----------------------------------------------------------
    # Estadísticas
    # -----------------------------------------------------------
    async def get_statistics(
        self,
        session: AsyncSession,
        *,
        organization_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> dict[str, Any]:
        """
        Totales agregados. pending_donations = total - approved (incluye
        rechazadas/canceladas, igual que el reporte histórico del panel).
        """
        approved = Donation.payment_status == PaymentStatus.APPROVED
        stmt = select(
            func.count(Donation.id),
            func.coalesce(func.sum(Donation.amount), 0),
            func.coalesce(func.avg(Donation.amount), 0),
            func.coalesce(func.sum(case((Donation.donation_type == DonationType.SINGLE, 1), else_=0)), 0),
            func.coalesce(func.sum(case((Donation.donation_type == DonationType.RECURRING, 1), else_=0)), 0),
            func.coalesce(func.sum(case((approved, 1), else_=0)), 0),
            func.coalesce(func.sum(case((approved, Donation.amount), else_=0)), 0),
        )
        stmt = self._filtered(
            stmt,
            organization_id=organization_id,
            start_date=start_date,
            end_date=end_date,
        )
        row = (await session.execute(stmt)).one()
        total, total_amount, avg_amount, single, recurring, approved_count, approved_amount = row

        def _money(value: Any) -> Decimal:
            return Decimal(str(value or 0)).quantize(Decimal("0.01"))

        return {
            "total_donations": int(total or 0),
            "total_amount": _money(total_amount),
            "average_amount": _money(avg_amount),
            "single_donations": int(single or 0),
            "recurring_donations": int(recurring or 0),
            "approved_donations": int(approved_count or 0),
            "pending_donations": int(total or 0) - int(approved_count or 0),
            "approved_amount": _money(approved_amount),
        }

# Fin del archivo backend/app/modules/donations/repositories/donation_repository.py
