"""
Payment DTOs (Pydantic v2) used at application boundaries.

Wire bodies are camelCase (``orderId``); snake_case names are accepted too.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Literal, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- gateway port ----

class CreateIntent(BaseModel):
    amount_minor: int = Field(gt=0)
    currency: str
    order_id: Optional[str] = None
    idempotency_key: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def _lower_currency(cls, v: str) -> str:
        c = (v or "").strip().lower()
        if len(c) != 3 or not c.isalpha():
            raise ValueError("currency must be ISO-4217 alpha-3")
        return c


class GatewayIntent(BaseModel):
    """Gateway-owned intent snapshot; ``status`` is passed through uninterpreted."""
    id: str
    status: str
    provider: str
    amount_minor_units: Optional[int] = None
    client_secret: Optional[str] = None


# ---- HTTP requests ----

class CreatePaymentRequest(_CamelModel):
    order_id: str = Field(min_length=1)
    method: str = Field(min_length=1)
    amount: Decimal


class ConfirmPaymentRequest(_CamelModel):
    payment_id: str = Field(min_length=1)
    method: str = Field(min_length=1)


# ---- HTTP results ----

class CardPaymentResult(_CamelModel):
    type: Literal["card"] = "card"
    intent_id: str
    client_confirmation_token: Optional[str] = None


class CashOnDeliveryResult(_CamelModel):
    type: Literal["cash_on_delivery"] = "cash_on_delivery"
    status: Literal["pending"] = "pending"


class ConfirmPaymentResult(_CamelModel):
    status: str
    amount_major_units: Optional[Decimal] = None

    @field_serializer("amount_major_units")
    def _as_number(self, value: Optional[Decimal]) -> Optional[float]:
        return float(value) if value is not None else None


class OrderPaymentView(_CamelModel):
    order_id: str
    payment_method: Optional[str] = None
    payment_status: str
    status: str
    gateway_intent_id: Optional[str] = None


# ---- webhooks ----

class WebhookData(BaseModel):
    object_: dict[str, Any] = Field(alias="object")

    model_config = ConfigDict(populate_by_name=True)


class WebhookEnvelope(BaseModel):
    """Gateway event envelope ``{id?, type, data: {object}}``"""
    id: Optional[str] = None
    type: str = Field(min_length=1)
    data: WebhookData

    model_config = ConfigDict(extra="ignore")


class IntentSnapshot(BaseModel):
    id: str = Field(min_length=1)
    status: Optional[str] = None
    last_payment_error: Optional[dict[str, Any]] = None

    model_config = ConfigDict(extra="ignore")


class ChargeSnapshot(BaseModel):
    id: Optional[str] = None
    payment_intent: str = Field(
        min_length=1,
        validation_alias=AliasChoices("payment_intent", "paymentIntentId", "payment_intent_id"),
    )
    status: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class WebhookAck(_CamelModel):
    received: bool = True
    outcome: str
    event_type: Optional[str] = None
