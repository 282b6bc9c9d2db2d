# -*- coding: utf-8 -*-
"""
backend/app/shared/database/__init__.py

Re-exporta utilidades comunes de base de datos.

Autor: Equipo Colab ONGs
Fecha: 2026-03-12
"""

from __future__ import annotations

from .base import Base, NAMING_CONVENTION, as_str_enum
from .database import (
    build_engine,
    build_session_factory,
    create_schema,
    get_async_session,
    check_database_health,
)
from .repository import BaseRepository

__all__ = [
    "Base",
    "NAMING_CONVENTION",
    "as_str_enum",
    "BaseRepository",
    "build_engine",
    "build_session_factory",
    "create_schema",
    "get_async_session",
    "check_database_health",
]

# Fin del archivo backend/app/shared/database/__init__.py
