# -*- coding: utf-8 -*-
"""
backend/tests/modules/donations/facades/test_status_normalizer.py

Tests del normalizador de estados de Mercado Pago.
Verifica:
- Tabla completa proveedor → PaymentStatus
- Insensible a mayúsculas y espacios
- Entradas desconocidas / None / no-str → unknown (nunca excepción)

Autor: Equipo Colab ONGs
Fecha: 2026-03-18
"""

import pytest

from app.modules.donations.enums import PaymentStatus
from app.modules.donations.facades import normalize_payment_status


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("pending", PaymentStatus.PENDING),
        ("approved", PaymentStatus.APPROVED),
        ("authorized", PaymentStatus.APPROVED),
        ("in_process", PaymentStatus.PENDING),
        ("in_mediation", PaymentStatus.PENDING),
        ("rejected", PaymentStatus.REJECTED),
        ("cancelled", PaymentStatus.CANCELLED),
        ("canceled", PaymentStatus.CANCELLED),
        ("refunded", PaymentStatus.REFUNDED),
        ("charged_back", PaymentStatus.CHARGED_BACK),
    ],
)
def test_provider_table(raw, expected):
    assert normalize_payment_status(raw) is expected


def test_case_and_whitespace_insensitive():
    assert normalize_payment_status("  APPROVED ") is PaymentStatus.APPROVED
    assert normalize_payment_status("Canceled") is PaymentStatus.CANCELLED


@pytest.mark.parametrize("raw", [None, "", "   ", "paused", "expired", 42, {"status": "approved"}])
def test_unknown_inputs_map_to_unknown(raw):
    assert normalize_payment_status(raw) is PaymentStatus.UNKNOWN


def test_enum_values_are_closed_vocabulary():
    assert {s.value for s in PaymentStatus} == {
        "pending",
        "approved",
        "rejected",
        "cancelled",
        "refunded",
        "charged_back",
        "unknown",
    }
