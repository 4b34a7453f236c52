"""
Webhook idempotency ledger ORM model
"""
from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from datetime import datetime, timezone

from .base import Base


class ProcessedWebhookEventModel(Base):
    """
    Idempotency ledger for webhook reconciliation

    One row per (gateway_intent_id, event_type); the unique constraint is what
    makes concurrent duplicate deliveries collapse into a single effect.
    """
    __tablename__ = "payment_webhook_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    gateway_intent_id = Column(String(255), nullable=False, comment="Gateway payment intent ID")
    event_type = Column(String(50), nullable=False, comment="payment_succeeded/payment_failed/charge_refunded")
    event_id = Column(String(255), nullable=True, comment="Gateway event ID, if supplied")
    order_id = Column(String(64), nullable=False, index=True, comment="Reconciled order ID")
    outcome = Column(String(20), nullable=False, comment="Reconciliation outcome")
    processed_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="Processed at"
    )

    __table_args__ = (
        UniqueConstraint("gateway_intent_id", "event_type", name="uq_payment_webhook_events_intent_type"),
    )

    def __repr__(self):
        return (
            f"<ProcessedWebhookEventModel(intent='{self.gateway_intent_id}', "
            f"type='{self.event_type}', outcome='{self.outcome}')>"
        )
