# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_testing.py

Overrides para entorno de PRUEBAS (test) usando Pydantic v2.
Busca ser determinista: SQLite en memoria, logging moderado y un
access token de sandbox dummy (las pruebas nunca llaman a Mercado Pago).

Autor: Equipo Colab ONGs
Fecha: 12/03/2026
"""

from typing import Optional

from pydantic import SecretStr
from pydantic_settings import SettingsConfigDict

from .settings_base import BaseAppSettings


class EnvTestingSettings(BaseAppSettings):
    # --- Identidad de entorno ---
    python_env: str = "test"

    # --- Logging en test: menos ruido ---
    log_level: str = "WARNING"
    log_format: str = "pretty"

    # --- Base de datos aislada ---
    db_url: Optional[str] = "sqlite+aiosqlite:///:memory:"
    db_auto_create: bool = True

    # --- Mercado Pago en sandbox con valores dummy ---
    mercadopago_access_token: Optional[SecretStr] = SecretStr("TEST-0000000000000000-dummy")
    backend_url: str = "http://testserver"
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env.test",
        env_file_encoding="utf-8",
        extra="ignore",
    )


__all__ = ["EnvTestingSettings"]
# Fin del archivo backend/app/shared/config/settings_testing.py
