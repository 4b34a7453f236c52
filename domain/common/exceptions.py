"""Domain business exceptions shared by the domain, application and infrastructure layers.

The core layer only maps these to HTTP responses; the domain never depends on core.
"""
from __future__ import annotations

from typing import Optional

from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode


class BusinessException(Exception):
    """Base class for business exceptions."""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class OrderNotFoundException(BusinessException):
    def __init__(self, order_id: Optional[str] = None):
        details = {"order_id": order_id} if order_id else None
        super().__init__(
            code=BusinessCode.ORDER_NOT_FOUND,
            message="Order not found",
            error_type="OrderNotFound",
            details=details,
        )


class UnsupportedPaymentMethodException(BusinessException):
    def __init__(self, method: Optional[str], *, operation: Optional[str] = None):
        details: dict = {"method": method}
        if operation:
            details["operation"] = operation
        super().__init__(
            code=BusinessCode.UNSUPPORTED_PAYMENT_METHOD,
            message=f"Unsupported payment method: {method}",
            error_type="UnsupportedMethod",
            details=details,
            field="method",
        )


class InvalidAmountException(BusinessException):
    def __init__(self, amount: object, reason: str = "amount must be a positive finite number"):
        super().__init__(
            code=BusinessCode.INVALID_AMOUNT,
            message=f"Invalid amount {amount}: {reason}",
            error_type="InvalidAmount",
            details={"amount": str(amount), "reason": reason},
            field="amount",
        )


class PaymentAlreadySettledException(BusinessException):
    """The order's payment has already left PENDING."""

    def __init__(self, order_id: str, payment_status: str):
        super().__init__(
            code=BusinessCode.PAYMENT_ALREADY_SETTLED,
            message=f"Payment for order {order_id} is already {payment_status}",
            error_type="PaymentAlreadySettled",
            details={"order_id": order_id, "payment_status": payment_status},
        )


class GatewayUnavailableException(BusinessException):
    """Gateway timed out or could not be reached; safe for the caller to retry."""

    def __init__(self, provider: str, *, operation: str, reason: Optional[str] = None):
        super().__init__(
            code=PaymentCode.GATEWAY_UNAVAILABLE,
            message="Payment gateway unavailable, please retry",
            error_type="GatewayUnavailable",
            details={"provider": provider, "operation": operation, "reason": reason},
        )


class IntegrityFaultException(BusinessException):
    """More than one order shares a single gateway intent id."""

    def __init__(self, gateway_intent_id: str, order_ids: list[str]):
        super().__init__(
            code=BusinessCode.DATA_INTEGRITY_ERROR,
            message=f"Gateway intent {gateway_intent_id} is linked to {len(order_ids)} orders",
            error_type="IntegrityFault",
            details={"gateway_intent_id": gateway_intent_id, "order_ids": order_ids},
        )


class DuplicateWebhookEventException(BusinessException):
    """The (intent id, event type) pair was already reconciled."""

    def __init__(self, gateway_intent_id: str, event_type: str):
        super().__init__(
            code=BusinessCode.BUSINESS_ERROR,
            message="Webhook event already processed",
            error_type="DuplicateWebhookEvent",
            details={"gateway_intent_id": gateway_intent_id, "event_type": event_type},
        )


class MalformedWebhookPayloadException(BusinessException):
    def __init__(self, reason: str):
        super().__init__(
            code=BusinessCode.PARAM_ERROR,
            message="Malformed webhook payload",
            error_type="MalformedWebhookPayload",
            details={"reason": reason},
        )
