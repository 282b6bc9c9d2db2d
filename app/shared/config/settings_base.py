# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_base.py

Base de configuración (Pydantic v2) para el backend de donaciones.
- Esta clase NO instancia singletons ni resuelve .env; eso lo hace config_loader.
- Es la base para settings_dev.py, settings_testing.py y settings_prod.py.

Autor: Equipo Colab ONGs
Fecha: 12/03/2026
"""

import logging
from typing import Literal, Optional

from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Tipos de entorno soportados
EnvName = Literal["development", "test", "production"]

# Prefijos válidos de access token de Mercado Pago (sandbox / producción)
MP_TOKEN_PREFIXES = ("TEST-", "APP_USR-")


class BaseAppSettings(BaseSettings):
    # =========================
    # Núcleo de la aplicación
    # =========================
    python_env: EnvName = Field(default="development", validation_alias="PYTHON_ENV")
    app_name: str = Field(default="Colab ONGs - Doações", validation_alias="APP_NAME")
    app_version: str = Field(default="1.0.0", validation_alias="APP_VERSION")
    app_host: str = Field(default="0.0.0.0", validation_alias="APP_HOST")
    app_port: int = Field(default=8000, validation_alias="APP_PORT")
    debug: bool = Field(default=False, validation_alias="DEBUG")

    # =========================
    # Base de datos (PostgreSQL)
    # =========================
    db_user: str = Field(default="postgres", validation_alias="DB_USER")
    db_password: SecretStr = Field(default=SecretStr("postgres"), validation_alias="DB_PASSWORD")
    db_host: str = Field(default="localhost", validation_alias="DB_HOST")
    db_port: int = Field(default=5432, validation_alias="DB_PORT")
    db_name: str = Field(default="colab_donations", validation_alias="DB_NAME")
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=5, validation_alias="DB_MAX_OVERFLOW")
    db_pool_recycle: int = Field(default=1800, validation_alias="DB_POOL_RECYCLE")
    db_pool_pre_ping: bool = Field(default=True, validation_alias="DB_POOL_PRE_PING")
    db_echo_sql: bool = Field(default=False, validation_alias="DB_ECHO_SQL")
    db_sslmode: str = Field(default="prefer", validation_alias="DB_SSLMODE")  # prefer|require|disable
    db_url: Optional[str] = Field(default=None, validation_alias="DB_URL")
    db_auto_create: bool = Field(default=False, validation_alias="DB_AUTO_CREATE")

    @computed_field  # type: ignore[misc]
    @property
    def database_url(self) -> str:
        """
        Genera la URL de conexión completa para SQLAlchemy async.
        Prioriza DB_URL si existe, sino construye desde componentes individuales.
        Las URLs sqlite (tests) se respetan tal cual.
        """
        from urllib.parse import quote_plus

        if self.db_url:
            url = self.db_url
            if url.startswith("sqlite"):
                return url
            url = (
                url.replace("postgres://", "postgresql+asyncpg://")
                   .replace("postgresql://", "postgresql+asyncpg://")
            )
            return url

        pw = quote_plus(self.db_password.get_secret_value())
        return (
            f"postgresql+asyncpg://{self.db_user}:{pw}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # =========================
    # HTTP Metrics (observabilidad)
    # =========================
    http_metrics_enabled: bool = Field(default=True, validation_alias="HTTP_METRICS_ENABLED")

    # =========================
    # CORS / Frontend / Backend público
    # =========================
    allowed_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")
    frontend_url: str = Field(default="http://localhost:5173", validation_alias="FRONTEND_URL")
    backend_url: str = Field(default="http://localhost:8000", validation_alias="BACKEND_URL")

    # =========================
    # Internal Service Auth (endpoints de organización / admin)
    # =========================
    internal_service_token: Optional[SecretStr] = Field(default=None, validation_alias="APP_SERVICE_TOKEN")

    # =========================
    # Mercado Pago
    # =========================
    mercadopago_access_token: Optional[SecretStr] = Field(default=None, validation_alias="MP_ACCESS_TOKEN")
    mercadopago_base_url: str = Field(default="https://api.mercadopago.com", validation_alias="MP_BASE_URL")
    mercadopago_timeout_sec: float = Field(default=10.0, validation_alias="MP_TIMEOUT_SEC")
    mercadopago_currency: str = Field(default="BRL", validation_alias="MP_CURRENCY")
    mercadopago_notification_url: Optional[str] = Field(default=None, validation_alias="MP_NOTIFICATION_URL")
    mercadopago_webhook_secret: Optional[SecretStr] = Field(default=None, validation_alias="MP_WEBHOOK_SECRET")
    mercadopago_webhook_tolerance_sec: int = Field(
        default=300,
        validation_alias="MP_WEBHOOK_SIGNATURE_TOLERANCE_SEC",
        description="Tolerancia del timestamp de x-signature (0 desactiva la comprobación)",
    )

    # Paginación
    page_size_default: int = Field(20, validation_alias="DEFAULT_PAGE_SIZE")
    page_size_max: int = Field(100, validation_alias="MAX_PAGE_SIZE")

    # =========================
    # Observabilidad / Logging
    # =========================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: Literal["json", "pretty", "plain"] = Field(default="pretty", validation_alias="LOG_FORMAT")

    # ===== Helpers de entorno =====
    @computed_field  # type: ignore[misc]
    @property
    def is_dev(self) -> bool:
        return self.python_env == "development"

    @computed_field  # type: ignore[misc]
    @property
    def is_test(self) -> bool:
        return self.python_env == "test"

    @computed_field  # type: ignore[misc]
    @property
    def is_prod(self) -> bool:
        return self.python_env == "production"

    # ===== URLs derivadas para Mercado Pago =====
    def get_notification_url(self) -> str:
        """URL pública del webhook; MP_NOTIFICATION_URL tiene prioridad sobre BACKEND_URL."""
        if self.mercadopago_notification_url:
            return self.mercadopago_notification_url
        return f"{self.backend_url.rstrip('/')}/api/donations/webhook"

    def get_back_urls(self) -> dict[str, str]:
        """back_urls por defecto del checkout, relativas al frontend."""
        base = self.frontend_url.rstrip("/")
        return {
            "success": f"{base}/doacao/sucesso",
            "failure": f"{base}/doacao/erro",
            "pending": f"{base}/doacao/pendente",
        }

    # ===== Utilidad para normalizar CORS =====
    def get_cors_origins(self) -> list[str]:
        """Convierte allowed_origins en lista procesable para CORS middleware."""
        if not self.allowed_origins or self.allowed_origins == "*":
            return ["*"]
        return [o.strip().strip('"').strip("'") for o in self.allowed_origins.split(",") if o.strip()]

    def _security_and_payments_checks(self) -> None:
        """
        Validaciones mínimas de seguridad y coherencia.
        Se invoca desde config_loader tras instanciar el settings.
        """
        logger = logging.getLogger(__name__)

        token = (
            self.mercadopago_access_token.get_secret_value().strip()
            if self.mercadopago_access_token
            else ""
        )

        if self.is_prod:
            if self.db_sslmode != "require":
                raise ValueError("DB_SSLMODE debe ser 'require' en producción")
            if not token:
                raise ValueError("MP_ACCESS_TOKEN es requerido en producción")

        if not token:
            logger.info("MP_ACCESS_TOKEN vacío - las llamadas a Mercado Pago fallarán")
        elif not token.startswith(MP_TOKEN_PREFIXES):
            logger.warning(
                "MP_ACCESS_TOKEN con formato inesperado (se espera prefijo %s)",
                " o ".join(MP_TOKEN_PREFIXES),
            )

        if self.mercadopago_timeout_sec <= 0:
            raise ValueError("MP_TIMEOUT_SEC debe ser mayor que 0")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


__all__ = ["BaseAppSettings", "EnvName", "MP_TOKEN_PREFIXES"]
# Fin del archivo backend/app/shared/config/settings_base.py
