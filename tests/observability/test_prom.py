# -*- coding: utf-8 -*-
"""
backend/tests/observability/test_prom.py

Tests del label path del middleware Prometheus.

Autor: Equipo Colab ONGs
Fecha: 2026-03-18
"""

from fastapi import APIRouter, FastAPI
from starlette.responses import PlainTextResponse
from starlette.routing import Mount, Route, Router

from app.observability.prom import route_template


async def _endpoint(request):
    return PlainTextResponse("ok")


def test_unmatched_request_has_generic_label():
    assert route_template({}) == "unmatched"
    assert route_template({"route": object()}) == "unmatched"


def test_included_router_keeps_prefix():
    app = FastAPI()
    router = APIRouter(prefix="/api/donations")

    @router.get("/{donation_id}")
    async def get_one(donation_id: str):
        return {}

    app.include_router(router)
    route = next(r for r in app.routes if getattr(r, "name", "") == "get_one")

    assert route_template({"app": app, "route": route}) == "/api/donations/{donation_id}"


def test_mounted_router_gets_mount_prefix():
    inner = Route("/single", _endpoint, methods=["POST"])
    app = Router(routes=[Mount("/api/donations", routes=[inner])])

    assert route_template({"app": app, "route": inner}) == "/api/donations/single"


def test_falls_back_to_root_path_when_route_is_unknown():
    inner = Route("/single", _endpoint)
    scope = {
        "route": inner,
        "root_path": "/proxy/api/donations",
        "app_root_path": "/proxy",
    }

    assert route_template(scope) == "/api/donations/single"
    assert route_template({"route": inner, "root_path": ""}) == "/single"


# Fin del archivo backend/tests/observability/test_prom.py
