# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_dev.py

Overrides para entorno de DESARROLLO (dev) usando Pydantic v2.
Hereda de BaseAppSettings y ajusta únicamente valores específicos
del ambiente local de desarrollo.

Autor: Equipo Colab ONGs
Fecha: 12/03/2026
"""

from pydantic_settings import SettingsConfigDict

from .settings_base import BaseAppSettings


class DevSettings(BaseAppSettings):
    """Configuración para entorno de desarrollo."""

    # Entorno
    python_env: str = "development"

    # Logging
    log_level: str = "DEBUG"
    log_format: str = "plain"  # formato legible en consola

    # Base de datos
    db_sslmode: str = "disable"
    db_auto_create: bool = True  # crea la tabla donations si no existe

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


__all__ = ["DevSettings"]

# Fin del archivo backend/app/shared/config/settings_dev.py
