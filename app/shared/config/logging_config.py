# -*- coding: utf-8 -*-
"""
backend/app/shared/config/logging_config.py

Configuración centralizada de logging.
Soporta formato plain (desarrollo) y json (producción) vía python-json-logger.

Los access tokens de Mercado Pago (TEST-… / APP_USR-…) y los headers
Bearer se enmascaran en todos los handlers con TokenRedactionFilter.

Autor: Equipo Colab ONGs
Fecha: 12/03/2026
"""

import logging
import logging.config
import re
from typing import Literal

_TOKEN_RE = re.compile(r"\b(TEST-|APP_USR-|Bearer\s+)([A-Za-z0-9_\-.]{4})[A-Za-z0-9_\-.]*")


def redact_tokens(text: str) -> str:
    """
    Deja visibles prefijo y 4 caracteres del token.

    >>> redact_tokens("token APP_USR-1234567890-abc")
    'token APP_USR-1234***'
    """
    return _TOKEN_RE.sub(r"\1\2***", text)


class TokenRedactionFilter(logging.Filter):
    """Reescribe el mensaje ya formateado; nunca descarta registros."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_tokens(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO",
    fmt: Literal["plain", "pretty", "json"] = "plain",
) -> None:
    """
    Configura el sistema de logging de la aplicación.

    Args:
        level: Nivel de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: Formato de salida (plain, pretty, json)

    Ejemplos:
        >>> setup_logging("INFO", "plain")
        >>> setup_logging("WARNING", "json")
    """
    # pretty == plain para efectos prácticos
    use_json = fmt == "json"

    filters = {"redact_tokens": {"()": TokenRedactionFilter}}

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json" if use_json else "default",
            "filters": ["redact_tokens"],
            "stream": "ext://sys.stdout",
        }
    }

    formatters = {
        "default": {
            "format": "%(asctime)s - %(levelname)s [%(name)s]: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
        },
    }

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": filters,
        "formatters": formatters,
        "handlers": handlers,
        "loggers": {
            # httpx registra cada request a INFO; incluye URLs del proveedor
            "httpx": {"level": "WARNING"},
        },
        "root": {
            "handlers": ["console"],
            "level": level.upper(),
        },
    }

    logging.config.dictConfig(logging_config)


__all__ = ["TokenRedactionFilter", "redact_tokens", "setup_logging"]
# Fin del archivo backend/app/shared/config/logging_config.py
