# -*- coding: utf-8 -*-
"""
backend/app/shared/config/__init__.py

Punto único de acceso a la configuración:
    from app.shared.config import get_settings

La instancia se resuelve de forma perezosa (lru_cache en config_loader)
para no disparar validaciones al importar módulos en tests.
"""

from __future__ import annotations

from .config_loader import build_settings, get_settings
from .logging_config import setup_logging
from .settings_base import BaseAppSettings

__all__ = ["BaseAppSettings", "build_settings", "get_settings", "setup_logging"]
