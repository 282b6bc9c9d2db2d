# -*- coding: utf-8 -*-
"""
backend/app/shared/database/base.py

Base declarativa y convención de nombres para modelos ORM.

Este módulo proporciona:
- Base: clase base declarativa de SQLAlchemy
- NAMING_CONVENTION: convención de nombres para constraints
- as_str_enum: helper genérico para mapear enums Python a columnas VARCHAR + CHECK

Autor: Equipo Colab ONGs
Fecha: 2026-03-12
"""

from __future__ import annotations

from enum import Enum
from typing import Type

from sqlalchemy import Enum as SAEnum
from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# ===== NAMING CONVENTION =====
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


# ===== BASE DECLARATIVA =====
class Base(DeclarativeBase):
    """
    Base declarativa para todos los modelos ORM.
    Incluye convención de nombres para constraints.
    """
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# ===== HELPER GENÉRICO PARA ENUMS =====
def as_str_enum(enum_cls: Type[Enum], name: str | None = None) -> SAEnum:
    """
    Devuelve un tipo Enum de SQLAlchemy persistido como VARCHAR con CHECK.

    Uso típico:

        from app.shared.database.base import Base, as_str_enum
        from .enums import PaymentStatus

        class Donation(Base):
            payment_status: Mapped[PaymentStatus] = mapped_column(
                as_str_enum(PaymentStatus, name="payment_status"),
                nullable=False,
            )

    - Se guarda el `value` del enum (no el nombre del miembro).
    - native_enum=False: funciona igual en PostgreSQL y en SQLite (tests).
    """
    enum_name = name or getattr(enum_cls, "__db_enum_name__", enum_cls.__name__.lower())

    def _values(_: object) -> list[str]:
        return [e.value for e in enum_cls]  # type: ignore[arg-type]

    return SAEnum(
        enum_cls,
        name=enum_name,
        native_enum=False,
        create_constraint=True,
        length=32,
        values_callable=_values,
        validate_strings=True,
    )


__all__ = ["Base", "NAMING_CONVENTION", "as_str_enum"]

# Fin del archivo backend/app/shared/database/base.py
