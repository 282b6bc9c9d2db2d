# -*- coding: utf-8 -*-
"""
backend/app/modules/donations/services/donation_service.py

Orquestación de donaciones sobre el gateway de pagos.

Flujos cubiertos:
- Donación única: validar → preference → idempotencia → persistir pending
- Donación recurrente: validar → suscripción → idempotencia → persistir pending
- Webhook: re-consulta vía gateway → localizar donación → sobrescribir estado
- Cancelación de suscripción (proveedor primero, actualización local best-effort)
- Consultas: por id, por organización, mural público, estadísticas

Semántica de errores:
- DonationValidationError antes de cualquier llamada externa.
- PaymentGatewayError aborta la operación sin persistir nada.
- process_payment_webhook nunca lanza: devuelve un WebhookOutcome.

Autor: Equipo Colab ONGs
Fecha: 2026-03-16
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.donations.adapters.base import PaymentGatewayProtocol
from app.modules.donations.adapters.dto import (
    PayerInfo,
    PaymentPreference,
    ProcessedWebhook,
    SubscriptionInfo,
    SubscriptionResult,
)
from app.modules.donations.enums import DonationFrequency, DonationType, PaymentStatus
from app.modules.donations.errors import (
    DonationAccessDeniedError,
    DonationNotFoundError,
    DonationValidationError,
)
from app.modules.donations.facades.status_normalizer import normalize_payment_status
from app.modules.donations.metrics import observe_donation_created
from app.modules.donations.models.donation_models import Donation
from app.modules.donations.repositories.donation_repository import DonationRepository
from app.modules.donations.schemas.donation_schemas import DonationCreate, SubscriptionUpdate

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
ANONYMOUS_DONOR_NAME = "Doador Anônimo"
DEFAULT_CURRENCY = "BRL"
# Tope de la columna amount NUMERIC(12,2)
MAX_AMOUNT = Decimal("9999999999.99")


@dataclass
class CheckoutResult:
    donation: Donation
    external_id: str
    payment_url: Optional[str]
    sandbox_url: Optional[str]
    created: bool


@dataclass
class SubscriptionCheckoutResult:
    donation: Donation
    subscription_id: str
    subscription_url: Optional[str]
    sandbox_url: Optional[str]
    created: bool


@dataclass
class WebhookOutcome:
    """
    Resultado de procesar una notificación.

    outcome: updated | unchanged | unmatched | ignored | error
    """

    outcome: str
    event_type: str = "unknown"
    resource_id: Optional[str] = None
    status: Optional[PaymentStatus] = None
    donation_id: Optional[uuid.UUID] = None
    error: Optional[str] = None

    @property
    def processed(self) -> bool:
        return self.outcome in ("updated", "unchanged")


class DonationService:
    """
    Servicio de alto nivel para donaciones.

    Recibe repositorio y gateway por constructor; la sesión de BD llega en
    cada llamada (el commit es responsabilidad del llamador).
    """

    def __init__(
        self,
        donation_repo: DonationRepository,
        gateway: PaymentGatewayProtocol,
        *,
        currency: str = DEFAULT_CURRENCY,
    ) -> None:
        self.donation_repo = donation_repo
        self.gateway = gateway
        self.currency = currency

    # ------------------------------------------------------------------ #
    # Validación
    # ------------------------------------------------------------------ #
    @staticmethod
    def validate_donation_data(data: DonationCreate, *, recurring: bool = False) -> Decimal:
        """
        Reglas de negocio previas a cualquier llamada externa.

        Returns:
            El monto normalizado a 2 decimales.
        """
        amount = DonationService.normalize_amount(data.amount)

        if not (data.donor_name or "").strip():
            raise DonationValidationError("Nome do doador é obrigatório", field="donorName")

        email = (data.donor_email or "").strip()
        if not email:
            raise DonationValidationError("Email do doador é obrigatório", field="donorEmail")
        if not EMAIL_RE.match(email):
            raise DonationValidationError("Email do doador inválido", field="donorEmail")

        if recurring and data.frequency is not None:
            if data.frequency not in {f.value for f in DonationFrequency}:
                raise DonationValidationError(
                    "Frequência inválida. Use: monthly, weekly ou yearly",
                    field="frequency",
                )

        return amount

    @staticmethod
    def normalize_amount(value: Any) -> Decimal:
        """
        Monto a 2 decimales, dentro de (0, MAX_AMOUNT].

        Se redondea antes de comparar: 0.004 queda en 0.00 y se rechaza.
        """
        try:
            amount = Decimal(str(value)) if value is not None else None
        except InvalidOperation:
            amount = None
        if amount is None or not amount.is_finite():
            raise DonationValidationError("Valor da doação deve ser maior que zero", field="amount")

        def check_bounds(value: Decimal) -> None:
            if value <= 0:
                raise DonationValidationError("Valor da doação deve ser maior que zero", field="amount")
            if value > MAX_AMOUNT:
                raise DonationValidationError(
                    f"Valor da doação deve ser no máximo {MAX_AMOUNT}",
                    field="amount",
                )

        # Antes de redondear: quantize falla con magnitudes enormes.
        # Después: 0.004 → 0.00 y 9999999999.995 → 10000000000.00
        check_bounds(amount)
        amount = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        check_bounds(amount)
        return amount

    @staticmethod
    def _payer(data: DonationCreate) -> PayerInfo:
        return PayerInfo(
            name=(data.donor_name or "").strip(),
            email=(data.donor_email or "").strip(),
            phone=data.donor_phone,
            document=data.donor_document,
        )

    @staticmethod
    def _external_reference(data: DonationCreate) -> str:
        return data.external_reference or f"donation_{uuid.uuid4().hex}"

    def _donation_fields(
        self,
        data: DonationCreate,
        amount: Decimal,
        donation_type: DonationType,
        external_reference: str,
    ) -> dict[str, Any]:
        return {
            "organization_id": data.organization_id,
            "organization_name": data.organization_name,
            "amount": amount,
            "currency": self.currency,
            "donation_type": donation_type,
            "message": data.message,
            "donor_name": (data.donor_name or "").strip(),
            "donor_email": (data.donor_email or "").strip(),
            "donor_phone": data.donor_phone,
            "donor_document": data.donor_document,
            "donor_address": data.donor_address,
            "donor_city": data.donor_city,
            "donor_state": data.donor_state,
            "donor_zip_code": data.donor_zip_code,
            "is_anonymous": data.is_anonymous,
            "show_in_public_list": data.show_in_public_list,
            "external_reference": external_reference,
            "payment_status": PaymentStatus.PENDING,
            "donation_metadata": {"externalReference": external_reference},
        }

    # ------------------------------------------------------------------ #
    # Donación única
    # ------------------------------------------------------------------ #
    async def create_single_donation(
        self,
        session: AsyncSession,
        data: DonationCreate,
        *,
        back_urls: Optional[Mapping[str, str]] = None,
    ) -> CheckoutResult:
        amount = self.validate_donation_data(data)
        external_reference = self._external_reference(data)

        preference: PaymentPreference = await self.gateway.create_payment_preference(
            amount=amount,
            payer=self._payer(data),
            external_reference=external_reference,
            back_urls=back_urls,
            title="Doação",
            description=f"Doação para {data.organization_name}" if data.organization_name else "Doação",
        )

        existing = await self.donation_repo.find_by_external_payment_id(session, preference.external_id)
        if existing is not None:
            logger.info("Donación ya registrada para preference=%s (idempotente)", preference.external_id)
            observe_donation_created(DonationType.SINGLE.value, created=False)
            return CheckoutResult(
                donation=existing,
                external_id=preference.external_id,
                payment_url=preference.payment_url,
                sandbox_url=preference.sandbox_url,
                created=False,
            )

        fields = self._donation_fields(data, amount, DonationType.SINGLE, external_reference)
        donation, created = await self.donation_repo.create_or_get(
            session,
            key="external_payment_id",
            external_payment_id=preference.external_id,
            **fields,
        )
        observe_donation_created(DonationType.SINGLE.value, created=created)
        logger.info(
            "Donación única %s preference=%s amount=%s created=%s",
            donation.id,
            preference.external_id,
            amount,
            created,
        )
        return CheckoutResult(
            donation=donation,
            external_id=preference.external_id,
            payment_url=preference.payment_url,
            sandbox_url=preference.sandbox_url,
            created=created,
        )

    # ------------------------------------------------------------------ #
    # Donación recurrente
    # ------------------------------------------------------------------ #
    async def create_recurring_donation(
        self,
        session: AsyncSession,
        data: DonationCreate,
        *,
        back_url: Optional[str] = None,
    ) -> SubscriptionCheckoutResult:
        amount = self.validate_donation_data(data, recurring=True)
        frequency = DonationFrequency(data.frequency or DonationFrequency.MONTHLY.value)
        external_reference = self._external_reference(data)

        reason = "Doação recorrente"
        if data.organization_name:
            reason = f"Doação recorrente para {data.organization_name}"

        subscription: SubscriptionResult = await self.gateway.create_subscription(
            amount=amount,
            frequency=frequency,
            payer=self._payer(data),
            external_reference=external_reference,
            reason=reason,
            back_url=back_url,
        )

        existing = await self.donation_repo.find_by_subscription_id(session, subscription.external_id)
        if existing is not None:
            logger.info("Donación ya registrada para preapproval=%s (idempotente)", subscription.external_id)
            observe_donation_created(DonationType.RECURRING.value, created=False)
            return SubscriptionCheckoutResult(
                donation=existing,
                subscription_id=subscription.external_id,
                subscription_url=subscription.subscription_url,
                sandbox_url=subscription.sandbox_url,
                created=False,
            )

        fields = self._donation_fields(data, amount, DonationType.RECURRING, external_reference)
        fields.update(
            frequency=frequency,
            provider_plan_id=subscription.plan_id,
            next_payment_date=subscription.next_payment_date,
            provider_status=subscription.status,
        )
        donation, created = await self.donation_repo.create_or_get(
            session,
            key="subscription_id",
            subscription_id=subscription.external_id,
            **fields,
        )
        observe_donation_created(DonationType.RECURRING.value, created=created)
        logger.info(
            "Donación recurrente %s preapproval=%s plan=%s amount=%s/%s created=%s",
            donation.id,
            subscription.external_id,
            subscription.plan_id,
            amount,
            frequency.value,
            created,
        )
        return SubscriptionCheckoutResult(
            donation=donation,
            subscription_id=subscription.external_id,
            subscription_url=subscription.subscription_url,
            sandbox_url=subscription.sandbox_url,
            created=created,
        )

    # ------------------------------------------------------------------ #
    # Webhooks
    # ------------------------------------------------------------------ #
    async def _find_webhook_target(
        self,
        session: AsyncSession,
        result: ProcessedWebhook,
    ) -> Optional[Donation]:
        if not result.id:
            return None
        if result.type == "subscription":
            return await self.donation_repo.find_by_subscription_id(session, result.id)

        donation = await self.donation_repo.find_by_external_payment_id(session, result.id)
        if donation is None and result.external_reference:
            # El pago real tiene id propio; la preference se enlaza por external_reference
            donation = await self.donation_repo.find_by_external_reference(session, result.external_reference)
        return donation

    async def apply_webhook_result(
        self,
        session: AsyncSession,
        result: ProcessedWebhook,
    ) -> WebhookOutcome:
        """Aplica un resultado ya re-consultado al registro local."""
        if result.type == "unknown":
            return WebhookOutcome(outcome="ignored")

        donation = await self._find_webhook_target(session, result)
        if donation is None:
            logger.warning(
                "Webhook %s id=%s sin donación asociada; se descarta",
                result.type,
                result.id,
            )
            return WebhookOutcome(outcome="unmatched", event_type=result.type, resource_id=result.id)

        new_status = normalize_payment_status(result.raw_status)
        previous = donation.payment_status

        extra: dict[str, Any] = {"provider_status": result.raw_status}
        if result.type == "payment":
            extra["payment_method"] = result.payment_method
            if result.id and result.id != donation.external_payment_id:
                metadata = dict(donation.donation_metadata or {})
                metadata["lastPaymentId"] = result.id
                extra["donation_metadata"] = metadata
        else:
            extra["next_payment_date"] = result.next_payment_date

        await self.donation_repo.update_status(session, donation, new_status, **extra)
        logger.info(
            "Donación %s: %s → %s (webhook %s id=%s raw=%s)",
            donation.id,
            previous,
            new_status,
            result.type,
            result.id,
            result.raw_status,
        )
        return WebhookOutcome(
            outcome="updated" if previous != new_status else "unchanged",
            event_type=result.type,
            resource_id=result.id,
            status=new_status,
            donation_id=donation.id,
        )

    async def process_payment_webhook(
        self,
        session: AsyncSession,
        payload: Mapping[str, Any],
    ) -> WebhookOutcome:
        """
        Procesa una notificación de Mercado Pago. Nunca lanza: los errores
        (gateway o BD) se registran y se devuelven como outcome="error".
        """
        try:
            result = await self.gateway.process_webhook(payload)
            return await self.apply_webhook_result(session, result)
        except Exception as e:
            logger.exception("Error procesando webhook %r: %s", payload.get("type"), e)
            try:
                await session.rollback()
            except SQLAlchemyError:
                logger.warning("No se pudo hacer rollback tras error de webhook", exc_info=True)
            return WebhookOutcome(
                outcome="error",
                event_type=str(payload.get("type") or "unknown"),
                error=str(e),
            )

    # ------------------------------------------------------------------ #
    # Suscripciones
    # ------------------------------------------------------------------ #
    async def get_subscription_status(self, subscription_id: str) -> SubscriptionInfo:
        return await self.gateway.get_subscription_status(subscription_id)

    async def cancel_subscription(
        self,
        session: AsyncSession,
        subscription_id: str,
    ) -> SubscriptionInfo:
        """
        Cancela en el proveedor y luego, best-effort, marca la donación local
        como cancelled. Un fallo local no revierte la cancelación remota.
        """
        info = await self.gateway.cancel_subscription(subscription_id)

        try:
            async with session.begin_nested():
                donation = await self.donation_repo.find_by_subscription_id(session, subscription_id)
                if donation is not None:
                    await self.donation_repo.update_status(
                        session,
                        donation,
                        PaymentStatus.CANCELLED,
                        provider_status=info.status,
                    )
                else:
                    logger.warning("Suscripción %s cancelada sin donación local", subscription_id)
        except SQLAlchemyError as e:
            logger.warning(
                "Suscripción %s cancelada en Mercado Pago pero no se actualizó localmente: %s",
                subscription_id,
                e,
            )
        return info

    async def update_subscription(
        self,
        session: AsyncSession,
        subscription_id: str,
        update: SubscriptionUpdate,
    ) -> SubscriptionInfo:
        """Pausa, reactiva o cambia monto/frecuencia de una suscripción."""
        amount: Optional[Decimal] = None
        if update.amount is not None:
            amount = self.normalize_amount(update.amount)

        if update.status is None and amount is None and update.frequency is None and not update.reason:
            raise DonationValidationError("Nenhum campo para atualizar")

        info = await self.gateway.update_subscription(
            subscription_id,
            status=update.status,
            amount=amount,
            frequency=update.frequency,
            reason=update.reason,
        )

        donation = await self.donation_repo.find_by_subscription_id(session, subscription_id)
        if donation is not None:
            changes: dict[str, Any] = {"provider_status": info.status}
            if amount is not None:
                changes["amount"] = amount
            if update.frequency is not None:
                changes["frequency"] = update.frequency
            if info.next_payment_date is not None:
                changes["next_payment_date"] = info.next_payment_date
            await self.donation_repo.update_status(
                session,
                donation,
                normalize_payment_status(info.status),
                **changes,
            )
        return info

    async def cancel_recurring_donation(
        self,
        session: AsyncSession,
        donation_id: uuid.UUID,
        organization_id: str,
    ) -> Donation:
        """Cancelación iniciada por la organización dueña de la donación."""
        donation = await self.donation_repo.get(session, donation_id)
        if donation is None:
            raise DonationNotFoundError()
        if donation.organization_id != organization_id:
            raise DonationAccessDeniedError()
        if donation.donation_type != DonationType.RECURRING or not donation.subscription_id:
            raise DonationValidationError("Apenas doações recorrentes podem ser canceladas", field="donationId")

        await self.cancel_subscription(session, donation.subscription_id)
        return donation

    # ------------------------------------------------------------------ #
    # Consultas
    # ------------------------------------------------------------------ #
    async def get_donation(self, session: AsyncSession, donation_id: uuid.UUID) -> Donation:
        donation = await self.donation_repo.get(session, donation_id)
        if donation is None:
            raise DonationNotFoundError()
        return donation

    async def list_organization_donations(
        self,
        session: AsyncSession,
        organization_id: str,
        *,
        status: Optional[PaymentStatus] = None,
        donation_type: Optional[DonationType] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[Sequence[Donation], int]:
        return await self.donation_repo.list_by_organization(
            session,
            organization_id,
            status=status,
            donation_type=donation_type,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=(page - 1) * limit,
        )

    async def list_public_donations(
        self,
        session: AsyncSession,
        *,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[list[dict[str, Any]], int]:
        """Mural público: doadores anónimos aparecen como "Doador Anônimo"."""
        items, total = await self.donation_repo.list_public(
            session,
            limit=limit,
            offset=(page - 1) * limit,
        )
        public = [
            {
                "id": d.id,
                "donor_name": ANONYMOUS_DONOR_NAME if d.is_anonymous else d.donor_name,
                "amount": d.amount,
                "message": d.message,
                "donation_type": d.donation_type,
                "organization_name": d.organization_name,
                "created_at": d.created_at,
            }
            for d in items
        ]
        return public, total

    async def get_statistics(
        self,
        session: AsyncSession,
        *,
        organization_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> dict[str, Any]:
        return await self.donation_repo.get_statistics(
            session,
            organization_id=organization_id,
            start_date=start_date,
            end_date=end_date,
        )

    async def delete_donation(self, session: AsyncSession, donation_id: uuid.UUID) -> None:
        """Borrado administrativo (único borrado físico permitido)."""
        donation = await self.get_donation(session, donation_id)
        await self.donation_repo.delete(session, donation)
        logger.info("Donación %s eliminada por administración", donation_id)


__all__ = [
    "ANONYMOUS_DONOR_NAME",
    "MAX_AMOUNT",
    "CheckoutResult",
    "DonationService",
    "SubscriptionCheckoutResult",
    "WebhookOutcome",
]

# Fin del archivo backend/app/modules/donations/services/donation_service.py
