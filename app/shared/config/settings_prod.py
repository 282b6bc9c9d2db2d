# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_prod.py

Overrides para entorno de PRODUCCIÓN usando Pydantic v2.
Forza lectura solo desde variables de entorno / secret stores,
activa logging estable (INFO en JSON) y defaults seguros.

Autor: Equipo Colab ONGs
Fecha: 12/03/2026
"""

from typing import Literal

from pydantic_settings import SettingsConfigDict

from .settings_base import BaseAppSettings


class ProdSettings(BaseAppSettings):
    # --- Identidad de entorno ---
    python_env: Literal["development", "test", "production"] = "production"

    # --- Logging en prod: nivel estable y formato estructurado ---
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "pretty", "plain"] = "json"

    # --- Base de datos ---
    db_sslmode: str = "require"
    db_auto_create: bool = False  # el esquema se gestiona con scripts SQL

    # Nota: el validador de BaseAppSettings exige MP_ACCESS_TOKEN en producción.

    model_config = SettingsConfigDict(
        env_file=None,  # No leemos .env en producción
        extra="ignore",
    )


__all__ = ["ProdSettings"]
# Fin del archivo backend/app/shared/config/settings_prod.py
