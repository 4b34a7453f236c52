"""
Order entity as seen by the payment engine.

Orders are placed by the upstream order flow; the payment engine only reads
them and transitions their payment dimension.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional


class PaymentStatus(str, Enum):
    """Payment dimension of an order"""
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class OrderStatus(str, Enum):
    """Fulfillment dimension of an order"""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    CARD = "CARD"
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"

    @classmethod
    def parse(cls, value: object) -> Optional["PaymentMethod"]:
        """Return the member for ``value`` (case-insensitive) or None."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


TERMINAL_PAYMENT_STATUSES = frozenset(
    {PaymentStatus.COMPLETED, PaymentStatus.FAILED, PaymentStatus.REFUNDED}
)


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class Order:
    """
    Order record referenced by the payment engine.

    Business rules:
    1. ``gateway_intent_id`` is the only join key between gateway events and the ledger
    2. Cash-on-delivery orders never carry a ``gateway_intent_id``
    3. Terminal payment statuses are never reverted to PENDING by reconciliation
    """

    id: str
    user_id: Optional[str]
    total_amount: Decimal
    payment_method: Optional[PaymentMethod]
    payment_status: PaymentStatus
    status: OrderStatus
    gateway_intent_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)

    def is_payment_terminal(self) -> bool:
        return self.payment_status in TERMINAL_PAYMENT_STATUSES


@dataclass(frozen=True)
class OrderPatch:
    """Partial update applied to an order in a single write; None means "leave unchanged"."""

    payment_status: Optional[PaymentStatus] = None
    status: Optional[OrderStatus] = None
    gateway_intent_id: Optional[str] = None

    def as_values(self) -> dict:
        values: dict = {}
        if self.payment_status is not None:
            values["payment_status"] = self.payment_status.value
        if self.status is not None:
            values["status"] = self.status.value
        if self.gateway_intent_id is not None:
            values["gateway_intent_id"] = self.gateway_intent_id
        return values
