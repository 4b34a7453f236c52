"""
Payment specific codes and provider event mapping.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    GATEWAY_UNAVAILABLE = 60001
    SIGNATURE_ERROR = 60002


# Provider event names -> internal event taxonomy (see domain.payment.events.GatewayEventType)
PROVIDER_EVENT_TO_INTERNAL = {
    "stripe": {
        "payment_intent.succeeded": "payment_succeeded",
        "payment_intent.payment_failed": "payment_failed",
        "charge.refunded": "charge_refunded",
    },
}
