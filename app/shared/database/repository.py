# -*- coding: utf-8 -*-
"""
backend/app/shared/database/repository.py

Repositorio base para operaciones async con SQLAlchemy.

Convención: "no encontrado" se representa con None; cualquier otro
problema de persistencia se propaga como SQLAlchemyError.

Autor: Equipo Colab ONGs
Fecha: 2026-03-12
"""

from typing import Any, Type, TypeVar, Generic, Sequence, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")  # modelo ORM


class BaseRepository(Generic[T]):
    """Repositorio asincrónico base para CRUD común."""

    def __init__(self, model: Type[T]):
        self.model = model

    # -------------------------------------------------------------
    # CRUD básico
    # -------------------------------------------------------------
    async def get(self, session: AsyncSession, obj_id: Any) -> Optional[T]:
        return await session.get(self.model, obj_id)

    async def list(
        self,
        session: AsyncSession,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[T]:
        stmt = select(self.model).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def create(self, session: AsyncSession, **kwargs) -> T:
        obj = self.model(**kwargs)
        session.add(obj)
        await session.flush()
        return obj

    async def update(self, session: AsyncSession, obj: T, **changes) -> T:
        for field, value in changes.items():
            if not hasattr(obj, field):
                raise AttributeError(f"{type(obj).__name__} no tiene el campo {field!r}")
            setattr(obj, field, value)
        await session.flush()
        return obj

    async def delete(self, session: AsyncSession, obj: T) -> None:
        await session.delete(obj)
        await session.flush()

# Fin del archivo backend/app/shared/database/repository.py
