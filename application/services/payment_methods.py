"""
Payment method strategies.

Each supported method has a handler; the resolver maps a raw method string to
its handler and rejects anything else with UnsupportedPaymentMethodException.
New methods are added by registering another handler.
"""
from __future__ import annotations

import asyncio
import hashlib
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Awaitable, Callable, Iterable, Optional, TypeVar, Union

from application.dtos.payments import (
    CardPaymentResult,
    CashOnDeliveryResult,
    ConfirmPaymentResult,
    CreateIntent,
)
from application.ports.payment_gateway import PaymentGateway
from core.logging_config import get_logger
from domain.common.exceptions import (
    GatewayUnavailableException,
    PaymentAlreadySettledException,
    UnsupportedPaymentMethodException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import Order, OrderStatus, PaymentMethod, PaymentStatus
from domain.payment.money import to_major_units, to_minor_units


logger = get_logger(__name__)

T = TypeVar("T")

CreateResult = Union[CardPaymentResult, CashOnDeliveryResult]


def intent_idempotency_key(order_id: str, amount_minor: int, currency: str) -> str:
    # Stable, reproducible key derived from business identifiers (no timestamp)
    base = f"create|{order_id}|{amount_minor}|{currency.lower()}"
    return hashlib.sha256(base.encode("utf-8")).hexdigest()


class PaymentMethodHandler(ABC):
    method: PaymentMethod

    @abstractmethod
    async def create(self, order: Order, amount: Decimal) -> CreateResult:
        ...

    async def confirm(self, payment_id: str) -> ConfirmPaymentResult:
        raise UnsupportedPaymentMethodException(self.method.value, operation="confirm")


class CardPaymentHandler(PaymentMethodHandler):
    """Card payments go through the gateway; the ledger only changes on webhook."""

    method = PaymentMethod.CARD

    def __init__(
        self,
        gateway: PaymentGateway,
        *,
        currency: str,
        exponent: int,
        timeout: float,
    ) -> None:
        self.gateway = gateway
        self.currency = currency
        self.exponent = exponent
        self.timeout = timeout

    async def _bounded(self, operation: str, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.warning(
                "payment_gateway_timeout",
                provider=self.gateway.provider,
                operation=operation,
                timeout=self.timeout,
            )
            raise GatewayUnavailableException(
                self.gateway.provider, operation=operation, reason="timeout"
            ) from exc

    async def create(self, order: Order, amount: Decimal) -> CardPaymentResult:
        amount_minor = to_minor_units(amount, self.exponent)
        req = CreateIntent(
            amount_minor=amount_minor,
            currency=self.currency,
            order_id=order.id,
            idempotency_key=intent_idempotency_key(order.id, amount_minor, self.currency),
        )
        logger.info(
            "payment_create_request",
            order_id=order.id,
            method=self.method.value,
            provider=self.gateway.provider,
            amount_minor=amount_minor,
            idempotency_key=req.idempotency_key,
        )
        intent = await self._bounded("create_intent", self.gateway.create_intent(req))
        logger.info(
            "payment_create_response",
            order_id=order.id,
            provider=intent.provider,
            intent_id=intent.id,
            status=intent.status,
        )
        return CardPaymentResult(intent_id=intent.id, client_confirmation_token=intent.client_secret)

    async def confirm(self, payment_id: str) -> ConfirmPaymentResult:
        intent = await self._bounded("retrieve_intent", self.gateway.retrieve_intent(payment_id))
        amount = (
            to_major_units(intent.amount_minor_units, self.exponent)
            if intent.amount_minor_units is not None
            else None
        )
        logger.info("payment_confirm_response", intent_id=intent.id, status=intent.status)
        return ConfirmPaymentResult(status=intent.status, amount_major_units=amount)


class CashOnDeliveryHandler(PaymentMethodHandler):
    """Cash on delivery: one guarded ledger write, safe to repeat while payment is PENDING."""

    method = PaymentMethod.CASH_ON_DELIVERY

    def __init__(self, uow_factory: Callable[[], AbstractUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def create(self, order: Order, amount: Decimal) -> CashOnDeliveryResult:
        async with self._uow_factory() as uow:
            changed = await uow.order_repository.transition_payment_status(
                order.id,
                to_status=PaymentStatus.PENDING,
                from_statuses=[PaymentStatus.PENDING],
                order_status=OrderStatus.PROCESSING,
            )
        if not changed:
            logger.warning(
                "payment_cod_rejected",
                order_id=order.id,
                payment_status=order.payment_status.value,
            )
            raise PaymentAlreadySettledException(order.id, order.payment_status.value)
        logger.info("payment_cod_accepted", order_id=order.id)
        return CashOnDeliveryResult()


class PaymentMethodResolver:
    def __init__(self, handlers: Iterable[PaymentMethodHandler]) -> None:
        self._handlers = {h.method: h for h in handlers}

    def resolve(self, method: Optional[str]) -> PaymentMethodHandler:
        parsed = PaymentMethod.parse(method)
        handler = self._handlers.get(parsed) if parsed is not None else None
        if handler is None:
            logger.info("payment_method_unsupported", method=method)
            raise UnsupportedPaymentMethodException(method)
        return handler
