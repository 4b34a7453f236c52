"""
Application service orchestrating payment use-cases.

This class depends only on the application PaymentGateway port, the unit of
work abstraction and DTOs. Gateway implementations are provided by
infrastructure and injected from the composition root (API), keeping
dependencies one-way.
"""
from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from pydantic import ValidationError

from application.dtos.payments import (
    ConfirmPaymentResult,
    OrderPaymentView,
    WebhookAck,
    WebhookEnvelope,
)
from application.ports.payment_gateway import PaymentGateway
from application.services.payment_methods import (
    CardPaymentHandler,
    CashOnDeliveryHandler,
    CreateResult,
    PaymentMethodResolver,
)
from application.services.reconciliation import PaymentReconciler
from application.services.webhook_router import WebhookEventRouter
from core.logging_config import get_logger
from core.settings import PaymentSettings, payment_settings
from domain.common.exceptions import MalformedWebhookPayloadException, OrderNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment.money import validate_major_amount


logger = get_logger(__name__)


class PaymentOrchestrator:
    """Creates and confirms payments and reconciles gateway webhooks.

    Orders are never created here, only looked up and transitioned.
    """

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        gateway: PaymentGateway,
        settings: Optional[PaymentSettings] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self.gateway = gateway
        self.settings = settings or payment_settings
        self.resolver = PaymentMethodResolver(
            [
                CardPaymentHandler(
                    gateway,
                    currency=self.settings.currency,
                    exponent=self.settings.minor_unit_exponent,
                    timeout=self.settings.timeouts.gateway_call,
                ),
                CashOnDeliveryHandler(uow_factory),
            ]
        )
        self.reconciler = PaymentReconciler(uow_factory, policy=self.settings.reconciliation_policy)
        self.router = WebhookEventRouter(self.reconciler, provider=gateway.provider)

    async def create_payment(self, order_id: str, method: Optional[str], amount: Any) -> CreateResult:
        handler = self.resolver.resolve(method)
        value = validate_major_amount(
            amount,
            min_amount=self.settings.min_amount,
            max_amount=self.settings.max_amount,
        )
        async with self._uow_factory(readonly=True) as uow:
            order = await uow.order_repository.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundException(order_id)
        return await handler.create(order, value)

    async def confirm_payment(self, payment_id: str, method: Optional[str]) -> ConfirmPaymentResult:
        """Report the gateway's view of an intent; the ledger is not touched."""
        handler = self.resolver.resolve(method)
        logger.info("payment_confirm_request", payment_id=payment_id, method=handler.method.value)
        return await handler.confirm(payment_id)

    async def handle_webhook_event(self, headers: Mapping[str, Any], body: bytes) -> WebhookAck:
        self.gateway.verify_webhook(headers, body)
        try:
            envelope = WebhookEnvelope.model_validate_json(body)
        except ValidationError as exc:
            first = exc.errors(include_url=False, include_input=False)[0]
            reason = f"{'.'.join(str(p) for p in first.get('loc', ()))}: {first.get('msg')}"
            logger.warning("webhook_malformed", provider=self.gateway.provider, reason=reason)
            raise MalformedWebhookPayloadException(reason) from exc

        logger.info(
            "payment_webhook_received",
            provider=self.gateway.provider,
            event_type=envelope.type,
            event_id=envelope.id,
        )
        return await self.router.route(envelope)

    async def get_order_payment(self, order_id: str, *, user_id: Optional[str] = None) -> OrderPaymentView:
        async with self._uow_factory(readonly=True) as uow:
            order = await uow.order_repository.get_by_id(order_id)
        # other users' orders are reported as missing
        if order is None or (user_id is not None and order.user_id not in (None, user_id)):
            raise OrderNotFoundException(order_id)
        return OrderPaymentView(
            order_id=order.id,
            payment_method=order.payment_method.value if order.payment_method else None,
            payment_status=order.payment_status.value,
            status=order.status.value,
            gateway_intent_id=order.gateway_intent_id,
        )
