# -*- coding: utf-8 -*-
"""
backend/app/shared/middleware/exception_handler.py

Middleware ASGI para capturar excepciones no manejadas y responder JSON.

Cualquier error 500 devuelve JSON estructurado (error_code + request_id)
en lugar de text/plain. El request_id se toma de los headers del proxy o
se genera, y se expone en request.state para los logs downstream.

Autor: Equipo Colab ONGs
Fecha: 2026-03-17
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADERS = ["x-request-id", "x-correlation-id"]


def get_request_id(request: Request) -> str:
    """Extrae request_id de headers o genera uno nuevo."""
    for header in REQUEST_ID_HEADERS:
        value = request.headers.get(header)
        if value:
            return value
    return uuid.uuid4().hex[:16]


class JSONExceptionMiddleware(BaseHTTPMiddleware):
    """Convierte excepciones no manejadas en un 500 JSON con request_id."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = get_request_id(request)
        request.state.request_id = request_id

        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(
                "unhandled_exception request_id=%s method=%s path=%s error=%r",
                request_id,
                request.method,
                request.url.path,
                e,
            )
            return JSONResponse(
                status_code=500,
                content={
                    "detail": {
                        "error_code": "INTERNAL_SERVER_ERROR",
                        "message": "Internal server error",
                        "request_id": request_id,
                    }
                },
                headers={"X-Request-ID": request_id},
            )


__all__ = ["JSONExceptionMiddleware", "get_request_id"]

# Fin del archivo backend/app/shared/middleware/exception_handler.py
