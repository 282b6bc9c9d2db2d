# -*- coding: utf-8 -*-
"""
backend/app/shared/config/config_loader.py

Carga dinámica de configuración según PYTHON_ENV.
Ejecuta validaciones de seguridad y cachea la instancia.

Autor: Equipo Colab ONGs
Actualizado: 12/03/2026
"""

from functools import lru_cache
import os

from .settings_base import BaseAppSettings
from .settings_dev import DevSettings
from .settings_testing import EnvTestingSettings
from .settings_prod import ProdSettings


def build_settings(env: str | None = None) -> BaseAppSettings:
    """
    Construye (sin cachear) la subclase de settings para el entorno dado.

    Útil en tests y scripts que necesitan una instancia aislada.

    Raises:
        ValueError: Si las validaciones de seguridad fallan
    """
    env = (env or os.getenv("PYTHON_ENV", "development")).lower()

    # python_env se fija explícitamente: un PYTHON_ENV distinto en el entorno
    # no debe desactivar las validaciones de la clase elegida
    if env == "production":
        settings = ProdSettings(python_env="production")
    elif env == "test":
        settings = EnvTestingSettings(python_env="test")
    else:
        settings = DevSettings(python_env="development")

    settings._security_and_payments_checks()
    return settings


@lru_cache(maxsize=1)
def get_settings() -> BaseAppSettings:
    """
    Devuelve la configuración apropiada según PYTHON_ENV.

    Carga la subclase correcta (Dev/Test/Prod), ejecuta validaciones
    de seguridad y cachea el resultado.
    """
    return build_settings()


__all__ = ["get_settings", "build_settings"]
# Fin del archivo backend/app/shared/config/config_loader.py
