"""
Processed webhook event - the idempotency ledger entry for reconciliation.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class ReconciliationOutcome(str, Enum):
    APPLIED = "applied"            # ledger write happened
    REJECTED = "rejected"          # transition not allowed, no write
    DUPLICATE = "duplicate"        # (intent, type) already processed
    ORDER_NOT_FOUND = "order_not_found"
    IGNORED = "ignored"            # unrecognized event type
    UNPARSEABLE = "unparseable"    # known type, object failed to parse
    ERROR = "error"                # unexpected failure, logged and acknowledged


@dataclass
class ProcessedWebhookEvent:
    """
    One reconciled (gateway intent id, event type) pair.

    The pair is unique in storage; a second insert for the same pair means the
    delivery is a duplicate and must not produce another effect.
    """

    gateway_intent_id: str
    event_type: str
    order_id: str
    outcome: ReconciliationOutcome
    event_id: Optional[str] = None
    id: Optional[int] = None
    processed_at: Optional[datetime] = None

    def __post_init__(self):
        if self.processed_at is None:
            self.processed_at = datetime.now(timezone.utc)
