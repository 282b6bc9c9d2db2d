# -*- coding: utf-8 -*-
"""
backend/app/shared/database/database.py

SQLAlchemy async sin singletons de módulo.

El engine y la fábrica de sesiones se construyen a partir de settings
durante el lifespan de FastAPI y se guardan en `app.state`; las
dependencias de FastAPI los leen desde ahí. Así los tests pueden
inyectar su propio engine (SQLite en memoria) sin tocar variables globales.

Provee:
- build_engine(settings) / build_session_factory(engine)
- create_schema(engine)
- Dependencia FastAPI: get_async_session
- check_database_health(engine)

Autor: Equipo Colab ONGs
Fecha: 2026-03-12
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, AsyncGenerator

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.shared.database.base import Base

if TYPE_CHECKING:
    from app.shared.config.settings_base import BaseAppSettings

logger = logging.getLogger(__name__)


def build_engine(settings: "BaseAppSettings") -> AsyncEngine:
    """
    Crea el AsyncEngine a partir de settings.

    - PostgreSQL (asyncpg): pool con pre-ping y reciclado configurable; SSL
      según DB_SSLMODE.
    - SQLite (tests/desarrollo): StaticPool para compartir la BD en memoria
      entre sesiones.
    """
    url = settings.database_url
    kwargs: dict[str, Any] = {"echo": settings.db_echo_sql}

    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url:
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=settings.db_pool_pre_ping,
        )
        if settings.db_sslmode in ("require", "verify-ca", "verify-full"):
            kwargs["connect_args"] = {"ssl": "require"}
        elif settings.db_sslmode == "disable":
            kwargs["connect_args"] = {"ssl": False}

    host = url.split("@")[-1].split("?")[0] if "@" in url else url
    logger.info("[DB] Creando engine → %s (echo=%s)", host, settings.db_echo_sql)
    engine = create_async_engine(url, **kwargs)

    if url.startswith("sqlite"):
        _enable_sqlite_savepoints(engine)
    return engine


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """
    El driver sqlite3 gestiona BEGIN por su cuenta y rompe SAVEPOINT
    (begin_nested). Se desactiva y SQLAlchemy emite el BEGIN explícito.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Fábrica de sesiones ligada al engine (sin expirar objetos tras commit)."""
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        class_=AsyncSession,
        autoflush=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Crea las tablas registradas en Base.metadata (solo dev/test)."""
    # Registrar modelos en el metadata antes de create_all
    import app.modules.donations.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ── Dependencia FastAPI
async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Entrega una AsyncSession por request usando la fábrica de app.state.

    Si el handler termina con error de SQLAlchemy se hace rollback antes de
    propagar; transacciones abiertas al salir se revierten (el commit es
    responsabilidad explícita del endpoint).
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
        except SQLAlchemyError:
            await session.rollback()
            raise
        finally:
            if session.in_transaction():
                await session.rollback()


# ── Health check
async def check_database_health(
    engine: AsyncEngine,
    timeout_s: float = 3.0,
    sql: str = "SELECT 1",
) -> bool:
    """
    Verifica conectividad a la base de datos.

    Returns:
        True si la conexión es exitosa, False en caso contrario
    """
    try:
        async with asyncio.timeout(timeout_s):
            async with engine.connect() as conn:
                await conn.execute(text(sql))
        return True
    except (SQLAlchemyError, OSError, TimeoutError) as e:
        logger.warning("[DB] health check falló: %s", e)
        return False


__all__ = [
    "build_engine",
    "build_session_factory",
    "create_schema",
    "get_async_session",
    "check_database_health",
]
# Fin del archivo backend/app/shared/database/database.py
