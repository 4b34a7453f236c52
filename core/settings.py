"""
Payment-related settings using pydantic-settings v2 with nested env keys.

Kept apart from core.config.Settings so the payment engine can be tuned
(``PAYMENT__*``) without touching service-wide configuration.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field

from domain.payment.state_machine import ReconciliationPolicy


class PaymentTimeouts(BaseModel):
    # upper bound for one gateway call, retries included
    gateway_call: float = 10.0


class PaymentRetry(BaseModel):
    max: int = 2
    base_backoff: float = 0.2


class WebhookSettings(BaseModel):
    tolerance_seconds: int = 300
    ip_allowlist: list[str] | None = None  # Optional IPs/CIDRs allowed to post webhooks
    # Accept unsigned webhooks when no secret is set; honoured only with DEBUG on
    allow_unsigned: bool = False


class StripeSettings(BaseModel):
    secret_key: Optional[str] = None
    webhook_secret: Optional[str] = None


class PaymentSettings(BaseSettings):
    default_provider: str = "stripe"
    currency: str = "rwf"
    minor_unit_exponent: int = 2
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    reconciliation_policy: ReconciliationPolicy = ReconciliationPolicy.MONOTONIC

    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    retry: PaymentRetry = Field(default_factory=PaymentRetry)
    webhook: WebhookSettings = Field(default_factory=WebhookSettings)
    stripe: StripeSettings = Field(default_factory=StripeSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PAYMENT__",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


payment_settings = PaymentSettings()
