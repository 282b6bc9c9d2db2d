# -*- coding: utf-8 -*-
"""
backend/app/shared/internal_auth.py

Autenticación de servicio a servicio para los endpoints administrativos
de donaciones (panel de la ONG, backoffice).

El token esperado es APP_SERVICE_TOKEN y se lee de los settings guardados
en app.state durante el lifespan.

Uso:
    from app.shared.internal_auth import InternalServiceAuth

Autor: Equipo Colab ONGs
Fecha: 2026-03-17
"""

from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

logger = logging.getLogger(__name__)


def _expected_token(request: Request) -> str | None:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        from app.shared.config.config_loader import get_settings

        settings = get_settings()

    token_value = settings.internal_service_token
    if not token_value:
        return None
    return token_value.get_secret_value() if hasattr(token_value, "get_secret_value") else str(token_value)


async def require_internal_service_token(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> bool:
    """
    Valida Authorization: Bearer <APP_SERVICE_TOKEN>.

    Raises:
        HTTPException 500: token no configurado en el backend.
        HTTPException 401: header ausente o con formato inválido.
        HTTPException 403: token incorrecto.
    """
    expected_token = _expected_token(request)
    if not expected_token:
        logger.error("internal_service_token_not_configured: APP_SERVICE_TOKEN must be set")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal service token not configured",
        )

    if not authorization:
        logger.warning("internal_auth_missing_header path=%s", request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.warning("internal_auth_invalid_format")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization format. Use: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not secrets.compare_digest(parts[1], expected_token):
        logger.warning("internal_auth_invalid_token path=%s", request.url.path)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid service token",
        )

    return True


InternalServiceAuth = Annotated[bool, Depends(require_internal_service_token)]


__all__ = [
    "require_internal_service_token",
    "InternalServiceAuth",
]

# Fin del archivo backend/app/shared/internal_auth.py
