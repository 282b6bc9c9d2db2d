# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/metrics/__init__.py

Métricas Prometheus del módulo Donations.
"""

from .prometheus_exporter import (
    observe_donation_created,
    observe_gateway_request,
    observe_plan_retry,
    observe_webhook_outcome,
    observe_webhook_received,
    registry,
    render_prometheus_metrics,
)

__all__ = [
    "observe_donation_created",
    "observe_gateway_request",
    "observe_plan_retry",
    "observe_webhook_outcome",
    "observe_webhook_received",
    "registry",
    "render_prometheus_metrics",
]
