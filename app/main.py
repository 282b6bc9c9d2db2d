# -*- coding: utf-8 -*-
"""
backend/app/main.py

Punto de entrada principal del backend de donaciones Colab ONGs.

Ajustes clave:
- create_app(settings) como fábrica; `app` a nivel de módulo para uvicorn.
- Lifespan: construye engine, fábrica de sesiones y MercadoPagoAdapter y
  los guarda en app.state (sin singletons de módulo). Shutdown cierra el
  cliente HTTP y libera el pool.
- Observabilidad Prometheus (/metrics) vía app.observability.prom
- CORS desde CORS_ORIGINS

Autor: Equipo Colab ONGs
Fecha: 2026-03-17
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

# ---------------------------------------------------------------------------
# Cargar .env ANTES de construir settings
# En PROD no se sobreescriben variables del entorno
# ---------------------------------------------------------------------------
from dotenv import load_dotenv

_ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
_PYTHON_ENV = os.getenv("PYTHON_ENV", "development").strip().strip('"').strip("'").lower()
load_dotenv(dotenv_path=_ENV_PATH, override=_PYTHON_ENV == "development")

import anyio
import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from app.modules.donations.adapters import MercadoPagoAdapter
from app.observability.prom import setup_observability
from app.shared.config import BaseAppSettings, get_settings, setup_logging
from app.shared.database import build_engine, build_session_factory, create_schema
from app.shared.middleware import JSONExceptionMiddleware, RequestLoggingMiddleware
from app.shared.utils.json_response import UTF8JSONResponse, json_response_utf8

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ────────── STARTUP ──────────
    settings: BaseAppSettings = app.state.settings

    engine = build_engine(settings)
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    if settings.db_auto_create:
        await create_schema(engine)
        logger.info("🗄️ Esquema creado/verificado (DB_AUTO_CREATE)")

    gateway = MercadoPagoAdapter.from_settings(settings)
    app.state.payment_gateway = gateway

    if not settings.mercadopago_webhook_secret:
        logger.warning(
            "⚠️ MP_WEBHOOK_SECRET no configurado: los webhooks se procesan sin verificar "
            "x-signature (el estado siempre se re-consulta en Mercado Pago)"
        )

    logger.info("🟢 Backend de donaciones iniciado (env=%s)", settings.python_env)
    try:
        yield
    finally:
        # ────────── SHUTDOWN ──────────
        with anyio.CancelScope(shield=True):
            await gateway.aclose()
            await engine.dispose()
        logger.info("🔴 Backend de donaciones apagado.")


openapi_tags = [
    {"name": "Donations", "description": "Doações únicas e recorrentes via Mercado Pago"},
    {"name": "Donations: webhooks", "description": "Notificações do Mercado Pago"},
    {"name": "Health", "description": "Estado do serviço"},
]


def _configure_cors(app_instance: FastAPI, settings: BaseAppSettings) -> dict:
    origins = settings.get_cors_origins()
    cors_config = {
        "allow_origins": origins,
        # El navegador rechaza credenciales con origen comodín
        "allow_credentials": origins != ["*"],
        "allow_methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        "allow_headers": ["*"],
        "max_age": 600,
    }
    app_instance.add_middleware(CORSMiddleware, **cors_config)
    logger.info("CORS habilitado para %s", ", ".join(origins))
    return cors_config


async def http_exception_handler(request: Request, exc: HTTPException):
    """HTTPException con charset UTF-8 (mensajes con acentos)."""
    return json_response_utf8(
        content={"detail": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


def create_app(settings: Optional[BaseAppSettings] = None) -> FastAPI:
    """
    Construye la aplicación. Los tests pasan sus propios settings
    (SQLite en memoria) y sustituyen el gateway con dependency_overrides.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title=settings.app_name,
        description="API de doações para ONGs com Mercado Pago",
        version=settings.app_version,
        lifespan=lifespan,
        openapi_tags=openapi_tags,
        default_response_class=UTF8JSONResponse,
    )
    app.state.settings = settings

    # Starlette ejecuta los middlewares en orden inverso al registro:
    # CORS se registra al final para ser el más externo.
    app.add_middleware(RequestLoggingMiddleware)
    setup_observability(app, http_metrics=settings.http_metrics_enabled)
    app.add_middleware(JSONExceptionMiddleware)
    _configure_cors(app, settings)

    app.add_exception_handler(HTTPException, http_exception_handler)

    from app.routes import router as main_router

    app.include_router(main_router)

    @app.get("/", include_in_schema=False)
    async def root():
        return {"service": settings.app_name, "status": "active"}

    return app


app = create_app()


if __name__ == "__main__":
    _settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=_settings.app_host,
        port=int(_settings.app_port),
        reload=_settings.is_dev,
    )

# Fin del archivo backend/app/main.py
