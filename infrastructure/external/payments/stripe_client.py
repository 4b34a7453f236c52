"""
Stripe PaymentIntents adapter using the official stripe-python SDK.

The SDK is synchronous; calls run in a worker thread (anyio) and connection
errors are retried by the base client. Intent creation always carries an
idempotency key so a retried request never creates a second intent.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

import stripe

from application.dtos.payments import CreateIntent, GatewayIntent
from core.config import settings as app_settings
from core.settings import PaymentSettings, payment_settings
from core.logging_config import get_logger
from domain.common.exceptions import GatewayUnavailableException
from infrastructure.external.payments.base import BasePaymentClient
from infrastructure.external.payments.exceptions import (
    PaymentProviderError,
    PaymentSignatureError,
)


logger = get_logger(__name__)

SIGNATURE_HEADER = "stripe-signature"


class StripeClient(BasePaymentClient):
    provider = "stripe"
    retry_on = (stripe.APIConnectionError,)

    def __init__(self, settings: Optional[PaymentSettings] = None):
        self._settings = settings or payment_settings
        super().__init__(
            retry={"max": self._settings.retry.max, "base": self._settings.retry.base_backoff},
        )

    def _api_key(self) -> str:
        key = self._settings.stripe.secret_key
        if not key:
            raise PaymentProviderError("PAYMENT__STRIPE__SECRET_KEY not configured", provider=self.provider)
        return key

    def _to_intent(self, pi: Any) -> GatewayIntent:
        return GatewayIntent(
            id=str(pi.id),
            status=str(pi.status),
            provider=self.provider,
            amount_minor_units=getattr(pi, "amount", None),
            client_secret=getattr(pi, "client_secret", None),
        )

    async def _invoke(self, operation: str, fn, **kwargs) -> Any:
        try:
            return await self._call_blocking(fn, api_key=self._api_key(), **kwargs)
        except stripe.APIConnectionError as exc:
            logger.warning("stripe_connection_failed", operation=operation, error=str(exc))
            raise GatewayUnavailableException(self.provider, operation=operation, reason=str(exc)) from exc
        except stripe.StripeError as exc:
            logger.error("stripe_request_failed", operation=operation, error=str(exc), stripe_code=exc.code)
            raise PaymentProviderError(
                str(exc.user_message or exc),
                provider=self.provider,
                provider_code=exc.code,
            ) from exc

    async def create_intent(self, req: CreateIntent) -> GatewayIntent:  # type: ignore[override]
        metadata = {"order_id": req.order_id} if req.order_id else {}
        pi = await self._invoke(
            "create_intent",
            stripe.PaymentIntent.create,
            amount=req.amount_minor,
            currency=req.currency,
            metadata=metadata,
            automatic_payment_methods={"enabled": True},
            idempotency_key=req.idempotency_key,
        )
        intent = self._to_intent(pi)
        self._log("stripe_intent_created", intent_id=intent.id, status=intent.status)
        return intent

    async def retrieve_intent(self, intent_id: str) -> GatewayIntent:  # type: ignore[override]
        pi = await self._invoke("retrieve_intent", stripe.PaymentIntent.retrieve, id=intent_id)
        return self._to_intent(pi)

    def verify_webhook(self, headers: Mapping[str, Any], body: bytes) -> None:  # type: ignore[override]
        secret = self._settings.stripe.webhook_secret
        if not secret:
            if app_settings.DEBUG and self._settings.webhook.allow_unsigned:
                logger.warning("webhook_signature_unverified", provider=self.provider)
                return
            raise PaymentSignatureError("Missing PAYMENT__STRIPE__WEBHOOK_SECRET", provider=self.provider)
        sig = next((v for k, v in headers.items() if k.lower() == SIGNATURE_HEADER), None)
        if not sig:
            raise PaymentSignatureError("Missing Stripe-Signature header", provider=self.provider)
        try:
            payload = body.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                payload,
                sig,
                secret,
                self._settings.webhook.tolerance_seconds,
            )
        except UnicodeDecodeError as exc:
            raise PaymentSignatureError("Webhook body is not UTF-8", provider=self.provider) from exc
        except stripe.SignatureVerificationError as exc:
            raise PaymentSignatureError(str(exc), provider=self.provider) from exc
