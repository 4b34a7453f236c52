"""
Classifies gateway webhook envelopes into the closed event taxonomy and
dispatches them to reconciliation.

Everything short of an IntegrityFaultException is logged and acknowledged:
the gateway redelivers on any non-2xx, so a poison event must not fail here.
"""
from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from application.dtos.payments import ChargeSnapshot, IntentSnapshot, WebhookAck, WebhookEnvelope
from application.services.reconciliation import PaymentReconciler
from core.logging_config import get_logger
from domain.common.exceptions import IntegrityFaultException
from domain.payment.entity import ReconciliationOutcome
from domain.payment.events import (
    ChargeRefunded,
    GatewayEvent,
    GatewayEventType,
    PaymentFailed,
    PaymentSucceeded,
)
from shared.codes.payment_codes import PROVIDER_EVENT_TO_INTERNAL


logger = get_logger(__name__)


class WebhookEventRouter:
    def __init__(self, reconciler: PaymentReconciler, *, provider: Optional[str] = None) -> None:
        self.reconciler = reconciler
        self._types: dict[str, GatewayEventType] = {t.value: t for t in GatewayEventType}
        for alias, internal in PROVIDER_EVENT_TO_INTERNAL.get((provider or "").lower(), {}).items():
            self._types[alias] = GatewayEventType(internal)

    def classify(self, raw_type: str) -> Optional[GatewayEventType]:
        return self._types.get(raw_type)

    @staticmethod
    def to_event(event_type: GatewayEventType, envelope: WebhookEnvelope) -> GatewayEvent:
        """Parse the envelope's object into its typed variant (raises ValidationError)."""
        obj = envelope.data.object_
        if event_type == GatewayEventType.CHARGE_REFUNDED:
            charge = ChargeSnapshot.model_validate(obj)
            return ChargeRefunded(
                gateway_intent_id=charge.payment_intent,
                event_id=envelope.id,
                gateway_status=charge.status,
                charge_id=charge.id,
            )

        intent = IntentSnapshot.model_validate(obj)
        if event_type == GatewayEventType.PAYMENT_FAILED:
            reason = (intent.last_payment_error or {}).get("message")
            return PaymentFailed(
                gateway_intent_id=intent.id,
                event_id=envelope.id,
                gateway_status=intent.status,
                failure_reason=reason,
            )
        return PaymentSucceeded(
            gateway_intent_id=intent.id,
            event_id=envelope.id,
            gateway_status=intent.status,
        )

    async def route(self, envelope: WebhookEnvelope) -> WebhookAck:
        event_type = self.classify(envelope.type)
        if event_type is None:
            logger.info("webhook_event_ignored", event_type=envelope.type, event_id=envelope.id)
            return WebhookAck(outcome=ReconciliationOutcome.IGNORED.value, event_type=envelope.type)

        try:
            event = self.to_event(event_type, envelope)
        except ValidationError as exc:
            logger.warning(
                "webhook_payload_unparseable",
                event_type=event_type.value,
                event_id=envelope.id,
                errors=exc.errors(include_url=False, include_input=False),
            )
            return WebhookAck(outcome=ReconciliationOutcome.UNPARSEABLE.value, event_type=event_type.value)

        try:
            outcome = await self.reconciler.reconcile(event)
        except IntegrityFaultException as exc:
            logger.error(
                "webhook_integrity_fault",
                event_type=event_type.value,
                event_id=envelope.id,
                **(exc.details or {}),
            )
            raise
        except Exception as exc:
            logger.error(
                "webhook_processing_failed",
                event_type=event_type.value,
                event_id=envelope.id,
                gateway_intent_id=event.gateway_intent_id,
                error=str(exc),
                exc_info=True,
            )
            outcome = ReconciliationOutcome.ERROR

        return WebhookAck(outcome=outcome.value, event_type=event_type.value)
