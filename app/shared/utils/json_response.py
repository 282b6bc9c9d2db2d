# -*- coding: utf-8 -*-
"""
backend/app/shared/utils/json_response.py

Respuestas JSON con charset UTF-8 explícito.

Los mensajes de la API van en portugués ("Doação não encontrada"); sin
charset algunos proxies muestran mojibake (nÃ£o).

Autor: Equipo Colab ONGs
Fecha: 2026-03-17
"""

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse


class UTF8JSONResponse(JSONResponse):
    """default_response_class de la app: application/json; charset=utf-8."""

    media_type = "application/json; charset=utf-8"


def json_response_utf8(
    content: Any,
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
) -> UTF8JSONResponse:
    return UTF8JSONResponse(content=content, status_code=status_code, headers=headers)


__all__ = ["UTF8JSONResponse", "json_response_utf8"]

# Fin del archivo backend/app/shared/utils/json_response.py
