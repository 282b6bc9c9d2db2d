# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/metrics/prometheus_exporter.py

Exporter Prometheus para el módulo de donaciones.
Registra contadores propios (creación, webhooks, llamadas al gateway) en un
CollectorRegistry dedicado que app.observability.prom expone en /metrics.

Autor: Equipo Colab ONGs
Fecha: 14/03/2026
"""

import logging

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------
# Registro del módulo
# --------------------------------------------------------------------------
registry = CollectorRegistry()

# --------------------------------------------------------------------------
# Definición de métricas
# --------------------------------------------------------------------------
DONATIONS_CREATED_TOTAL = Counter(
    "donations_created_total",
    "Donaciones creadas (kind=single|recurring, result=created|existing)",
    ["kind", "result"],
    registry=registry,
)

WEBHOOKS_RECEIVED_TOTAL = Counter(
    "donations_webhook_received_total",
    "Notificaciones de Mercado Pago recibidas por tipo",
    ["type"],
    registry=registry,
)
WEBHOOKS_OUTCOME_TOTAL = Counter(
    "donations_webhook_outcome_total",
    "Notificaciones por resultado (updated/unmatched/ignored/rejected/error)",
    ["outcome"],
    registry=registry,
)
WEBHOOKS_PROCESSING_SECONDS = Histogram(
    "donations_webhook_processing_seconds",
    "Tiempo de procesamiento de notificaciones (segundos)",
    registry=registry,
)

GATEWAY_REQUESTS_TOTAL = Counter(
    "donations_gateway_requests_total",
    "Llamadas a la API de Mercado Pago por operación y resultado",
    ["operation", "result"],
    registry=registry,
)
SUBSCRIPTION_PLAN_RETRIES_TOTAL = Counter(
    "donations_subscription_plan_retries_total",
    "Reintentos de preapproval por plan aún no propagado",
    registry=registry,
)


# --------------------------------------------------------------------------
# Funciones auxiliares
# --------------------------------------------------------------------------
def render_prometheus_metrics() -> bytes:
    """Salida actual de las métricas del módulo en formato Prometheus."""
    return generate_latest(registry)


def observe_donation_created(kind: str, created: bool) -> None:
    DONATIONS_CREATED_TOTAL.labels(kind=kind, result="created" if created else "existing").inc()


def observe_webhook_received(event_type: str) -> None:
    WEBHOOKS_RECEIVED_TOTAL.labels(type=event_type or "unknown").inc()


def observe_webhook_outcome(outcome: str, duration: float | None = None) -> None:
    WEBHOOKS_OUTCOME_TOTAL.labels(outcome=outcome).inc()
    if duration is not None:
        WEBHOOKS_PROCESSING_SECONDS.observe(duration)
    logger.debug("[Prometheus] webhook outcome=%s", outcome)


def observe_gateway_request(operation: str, result: str) -> None:
    GATEWAY_REQUESTS_TOTAL.labels(operation=operation, result=result).inc()


def observe_plan_retry() -> None:
    SUBSCRIPTION_PLAN_RETRIES_TOTAL.inc()


__all__ = [
    "registry",
    "render_prometheus_metrics",
    "observe_donation_created",
    "observe_webhook_received",
    "observe_webhook_outcome",
    "observe_gateway_request",
    "observe_plan_retry",
]

# Fin del archivo backend/app/modules/donations/metrics/prometheus_exporter.py
