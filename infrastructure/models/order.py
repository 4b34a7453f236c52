"""
Order ledger ORM models
Note: persistence detail only; business rules live in domain.order / domain.payment
"""
from sqlalchemy import (
    Column, String, Numeric, DateTime, Index
)
from datetime import datetime, timezone

from .base import Base


class OrderModel(Base):
    """
    Order table

    Rows are created by the upstream order flow. The payment engine only
    updates payment_status / status and reads gateway_intent_id.
    """
    __tablename__ = "orders"

    id = Column(String(64), primary_key=True, comment="Order ID")
    user_id = Column(String(64), nullable=True, index=True, comment="Owner user ID")

    total_amount = Column(Numeric(precision=15, scale=2), nullable=False, default=0, comment="Order total (major units)")
    payment_method = Column(String(32), nullable=True, comment="CARD / CASH_ON_DELIVERY")

    payment_status = Column(
        String(20),
        nullable=False,
        default="PENDING",
        index=True,
        comment="PENDING/COMPLETED/FAILED/REFUNDED"
    )
    status = Column(
        String(20),
        nullable=False,
        default="PENDING",
        comment="PENDING/PROCESSING/SHIPPED/DELIVERED/CANCELLED"
    )

    # Not unique; more than one match is reported as an integrity fault
    gateway_intent_id = Column(String(255), nullable=True, comment="Gateway payment intent ID")

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="Created at"
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="Updated at"
    )

    __table_args__ = (
        Index("ix_orders_gateway_intent_id", "gateway_intent_id"),
    )

    def __repr__(self):
        return (
            f"<OrderModel(id='{self.id}', payment_status='{self.payment_status}', "
            f"status='{self.status}', gateway_intent_id='{self.gateway_intent_id}')>"
        )
