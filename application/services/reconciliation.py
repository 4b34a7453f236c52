"""
Applies typed gateway events to the order ledger.

One unit of work per event: a conditional UPDATE on the order followed by an
insert into the processed-event ledger. The insert is unique per
(gateway intent id, event type); when it collides the whole unit of work is
rolled back and the delivery is reported as a duplicate.
"""
from __future__ import annotations

from typing import Callable

from core.logging_config import get_logger
from domain.common.exceptions import DuplicateWebhookEventException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment.entity import ProcessedWebhookEvent, ReconciliationOutcome
from domain.payment.events import GatewayEvent
from domain.payment.state_machine import ReconciliationPolicy, sources_for


logger = get_logger(__name__)


class PaymentReconciler:
    def __init__(
        self,
        uow_factory: Callable[[], AbstractUnitOfWork],
        *,
        policy: ReconciliationPolicy = ReconciliationPolicy.MONOTONIC,
    ) -> None:
        self._uow_factory = uow_factory
        self.policy = policy

    async def reconcile(self, event: GatewayEvent) -> ReconciliationOutcome:
        """Apply ``event`` at most once.

        IntegrityFaultException from the intent lookup is not handled here.
        """
        log = logger.bind(
            gateway_intent_id=event.gateway_intent_id,
            event_type=event.event_type.value,
            event_id=event.event_id,
            idempotency_key=event.idempotency_key,
            policy=self.policy.value,
        )
        try:
            async with self._uow_factory() as uow:
                order = await uow.order_repository.get_by_gateway_intent_id(event.gateway_intent_id)
                if order is None:
                    log.warning("webhook_order_not_found")
                    return ReconciliationOutcome.ORDER_NOT_FOUND

                if self.policy == ReconciliationPolicy.MONOTONIC:
                    from_statuses = sources_for(event.target_payment_status)
                else:
                    from_statuses = None

                changed = await uow.order_repository.transition_payment_status(
                    order.id,
                    to_status=event.target_payment_status,
                    from_statuses=from_statuses,
                    order_status=event.target_order_status,
                )
                if not changed:
                    seen = await uow.processed_event_repository.list_by_intent(event.gateway_intent_id)
                    if any(e.event_type == event.event_type.value for e in seen):
                        log.info("webhook_duplicate_ignored", order_id=order.id)
                        return ReconciliationOutcome.DUPLICATE
                    log.info(
                        "webhook_transition_rejected",
                        order_id=order.id,
                        current_status=order.payment_status.value,
                        current_terminal=order.is_payment_terminal(),
                        target_status=event.target_payment_status.value,
                    )
                    return ReconciliationOutcome.REJECTED

                await uow.processed_event_repository.add(
                    ProcessedWebhookEvent(
                        gateway_intent_id=event.gateway_intent_id,
                        event_type=event.event_type.value,
                        event_id=event.event_id,
                        order_id=order.id,
                        outcome=ReconciliationOutcome.APPLIED,
                    )
                )
                log.info(
                    "webhook_transition_applied",
                    order_id=order.id,
                    from_status=order.payment_status.value,
                    to_status=event.target_payment_status.value,
                )
                return ReconciliationOutcome.APPLIED
        except DuplicateWebhookEventException:
            log.info("webhook_duplicate_ignored")
            return ReconciliationOutcome.DUPLICATE
