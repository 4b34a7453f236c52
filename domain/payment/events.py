"""
Gateway event taxonomy.

Inbound webhook envelopes are classified into exactly one of these frozen
dataclass variants before any reconciliation happens; the domain stays free
of transport and SDK types.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional

from domain.order.entity import OrderStatus, PaymentStatus


class GatewayEventType(str, Enum):
    PAYMENT_SUCCEEDED = "payment_succeeded"
    PAYMENT_FAILED = "payment_failed"
    CHARGE_REFUNDED = "charge_refunded"


@dataclass(frozen=True)
class GatewayEvent:
    gateway_intent_id: str
    event_id: Optional[str] = None
    gateway_status: Optional[str] = None

    event_type: ClassVar[GatewayEventType]
    target_payment_status: ClassVar[PaymentStatus]
    target_order_status: ClassVar[Optional[OrderStatus]] = None

    @property
    def idempotency_key(self) -> str:
        return f"{self.event_type.value}:{self.gateway_intent_id}"


@dataclass(frozen=True)
class PaymentSucceeded(GatewayEvent):
    event_type = GatewayEventType.PAYMENT_SUCCEEDED
    target_payment_status = PaymentStatus.COMPLETED
    target_order_status = OrderStatus.PROCESSING


@dataclass(frozen=True)
class PaymentFailed(GatewayEvent):
    failure_reason: Optional[str] = None

    event_type = GatewayEventType.PAYMENT_FAILED
    target_payment_status = PaymentStatus.FAILED


@dataclass(frozen=True)
class ChargeRefunded(GatewayEvent):
    charge_id: Optional[str] = None

    event_type = GatewayEventType.CHARGE_REFUNDED
    target_payment_status = PaymentStatus.REFUNDED


EVENT_CLASSES: dict[GatewayEventType, type[GatewayEvent]] = {
    GatewayEventType.PAYMENT_SUCCEEDED: PaymentSucceeded,
    GatewayEventType.PAYMENT_FAILED: PaymentFailed,
    GatewayEventType.CHARGE_REFUNDED: ChargeRefunded,
}
