"""Payment-status state machine enforced by webhook reconciliation."""
from __future__ import annotations

from enum import Enum

from domain.order.entity import PaymentStatus


ALLOWED_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED}),
    PaymentStatus.COMPLETED: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}


class ReconciliationPolicy(str, Enum):
    """How webhook writes treat the current payment status.

    MONOTONIC only applies transitions listed in ALLOWED_TRANSITIONS and turns
    anything else into a no-op. TRUST_LATEST applies every write once the
    order is found, so the latest delivered event wins.
    """
    MONOTONIC = "monotonic"
    TRUST_LATEST = "trust_latest"


def sources_for(target: PaymentStatus) -> frozenset[PaymentStatus]:
    """Statuses from which ``target`` may be reached."""
    return frozenset(src for src, targets in ALLOWED_TRANSITIONS.items() if target in targets)
