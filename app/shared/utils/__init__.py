# -*- coding: utf-8 -*-
"""
backend/app/shared/utils/__init__.py

Utilidades comunes.

Autor: Equipo Colab ONGs
Fecha: 2026-03-17
"""

from .json_response import UTF8JSONResponse, json_response_utf8

__all__ = ["UTF8JSONResponse", "json_response_utf8"]
