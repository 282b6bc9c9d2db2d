# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/errors.py

Errores de dominio del módulo Donations.

Objetivo:
- Distinguir "no encontrado" (resultado esperado) de fallos reales.
- Permitir que los ruteadores traduzcan estas excepciones a respuestas
  HTTP sin que servicio y adaptador dependan de FastAPI.

Autor: Equipo Colab ONGs
Fecha: 2026-03-13
"""

from __future__ import annotations

from typing import Any, Optional


class DonationsError(Exception):
    """
    Error base para el módulo Donations.
    """

    pass


class DonationValidationError(DonationsError):
    """
    Datos de donación inválidos. Se lanza antes de cualquier llamada externa.
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class DonationNotFoundError(DonationsError):
    def __init__(self, message: str = "Doação não encontrada") -> None:
        super().__init__(message)


class DonationAccessDeniedError(DonationsError):
    """
    La donación existe pero pertenece a otra organización.
    """

    def __init__(self, message: str = "Acesso negado à doação") -> None:
        super().__init__(message)


class PaymentGatewayError(DonationsError):
    """
    Fallo de una operación contra Mercado Pago.

    El mensaje lleva el prefijo `MercadoPagoAdapter/<operación> failed:` para
    identificar el adaptador en logs; `provider_message` conserva el texto
    original del proveedor (los predicados de reintento se evalúan sobre él).
    """

    def __init__(
        self,
        operation: str,
        provider_message: str,
        *,
        status_code: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        self.operation = operation
        self.provider_message = provider_message
        self.status_code = status_code
        self.payload = payload
        super().__init__(f"MercadoPagoAdapter/{operation} failed: {provider_message}")

    def rewrap(self, operation: str) -> "PaymentGatewayError":
        """Mismo error del proveedor atribuido a otra operación de alto nivel."""
        return PaymentGatewayError(
            operation,
            self.provider_message,
            status_code=self.status_code,
            payload=self.payload,
        )


class WebhookSignatureError(DonationsError):
    """
    La notificación no trae una firma x-signature válida.
    """

    pass


__all__ = [
    "DonationsError",
    "DonationValidationError",
    "DonationNotFoundError",
    "DonationAccessDeniedError",
    "PaymentGatewayError",
    "WebhookSignatureError",
]

# Fin del archivo backend/app/modules/donations/errors.py
