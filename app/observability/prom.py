# -*- coding: utf-8 -*-
"""
backend/app/observability/prom.py

Observabilidad Prometheus del backend de donaciones.

Incluye:
- Middleware HTTP para conteo y latencia por ruta/estado
- Endpoint /metrics (registry global + registry del módulo Donations)
- Soporte multiproceso (PROMETHEUS_MULTIPROC_DIR)

Autor: Equipo Colab ONGs
Fecha: 2026-03-17
"""
from __future__ import annotations

import os
from time import perf_counter
from typing import Dict, Optional

from fastapi import FastAPI
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    multiprocess,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.modules.donations.metrics import render_prometheus_metrics

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_latency_seconds",
    "Latency per request (s)",
    ["method", "path", "status"],
)


def _collect_templates(routes, prefix: str, out: Dict[int, str]) -> None:
    for route in routes:
        path = prefix + getattr(route, "path", "")
        children = getattr(route, "routes", None)
        if children:
            # Mount o router anidado: sus rutas heredan el prefijo
            _collect_templates(children, path, out)
        else:
            out[id(route)] = path


def route_template(scope: dict) -> str:
    """
    Plantilla completa de la ruta resuelta, con prefijos de router/mount.

    Ej.: /api/donations/{donation_id} en lugar del UUID concreto.
    Sin ruta resuelta (404) devuelve "unmatched".
    """
    route = scope.get("route")
    path = getattr(route, "path", None)
    if not path:
        return "unmatched"

    app = scope.get("app")
    if app is not None and hasattr(app, "routes"):
        templates: Dict[int, str] = {}
        _collect_templates(app.routes, "", templates)
        if id(route) in templates:
            return templates[id(route)]

    # Fallback: prefijo de montaje que Starlette acumula en root_path
    root_path = scope.get("root_path", "") or ""
    app_root = scope.get("app_root_path", "") or ""
    if app_root and root_path.startswith(app_root):
        root_path = root_path[len(app_root):]
    if root_path and not path.startswith(root_path):
        return root_path + path
    return path


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Instrumenta peticiones HTTP; el label path usa la plantilla de ruta."""

    async def dispatch(self, request, call_next):
        start = perf_counter()
        resp = await call_next(request)
        elapsed = perf_counter() - start

        path = route_template(request.scope)
        status = str(resp.status_code)
        REQUEST_LATENCY.labels(request.method, path, status).observe(elapsed)
        REQUEST_COUNT.labels(request.method, path, status).inc()
        return resp


def _build_registry() -> Optional[CollectorRegistry]:
    if os.environ.get("PROMETHEUS_MULTIPROC_DIR"):
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        return registry
    return None


def mount_metrics(app: FastAPI, path: str = "/metrics") -> None:
    """Registra /metrics: métricas HTTP seguidas de las del módulo Donations."""
    registry = _build_registry()

    @app.get(path, include_in_schema=False)
    def metrics():
        data = generate_latest(registry or REGISTRY) + render_prometheus_metrics()
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)


def setup_observability(app: FastAPI, *, http_metrics: bool = True) -> None:
    if http_metrics:
        app.add_middleware(PrometheusMiddleware)
    mount_metrics(app)


__all__ = ["PrometheusMiddleware", "mount_metrics", "route_template", "setup_observability"]
# Fin del archivo backend/app/observability/prom.py
