"""
Payments API routes.

Create/confirm payments for existing orders and receive gateway webhooks.
Keep this thin: no SDK details here.
"""
from __future__ import annotations

from typing import Union
import ipaddress

from fastapi import APIRouter, Depends, Request, status

from api.dependencies import get_current_user_id, get_payment_orchestrator
from application.dtos.payments import (
    CardPaymentResult,
    CashOnDeliveryResult,
    ConfirmPaymentRequest,
    ConfirmPaymentResult,
    CreatePaymentRequest,
    OrderPaymentView,
    WebhookAck,
)
from application.services.payment_service import PaymentOrchestrator
from core.exceptions import ForbiddenException
from core.logging_config import get_logger
from core.response import Response as ApiResponse, success_response
from core.settings import payment_settings


router = APIRouter(prefix="/payments", tags=["Payments"])
logger = get_logger(__name__)


def _ip_allowed(remote_ip: str | None) -> bool:
    allowlist = payment_settings.webhook.ip_allowlist or []
    if not allowlist:
        return True
    if not remote_ip:
        return False
    try:
        rip = ipaddress.ip_address(remote_ip)
    except ValueError:
        return False
    for entry in allowlist:
        try:
            if "/" in entry:
                if rip in ipaddress.ip_network(entry, strict=False):
                    return True
            elif rip == ipaddress.ip_address(entry):
                return True
        except ValueError:
            logger.warning("webhook_allowlist_entry_invalid", entry=entry)
    return False


@router.post(
    "",
    summary="Create payment",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[Union[CardPaymentResult, CashOnDeliveryResult]],
)
async def create_payment(
    payload: CreatePaymentRequest,
    user_id: str = Depends(get_current_user_id),
    service: PaymentOrchestrator = Depends(get_payment_orchestrator),
):
    """
    Start a payment for an existing order

    - **CARD**: creates a gateway intent and returns its confirmation token
    - **CASH_ON_DELIVERY**: marks the order pending payment and processing
    """
    result = await service.create_payment(payload.order_id, payload.method, payload.amount)
    return success_response(data=result, message="Payment created")


@router.post("/confirm", summary="Confirm payment", response_model=ApiResponse[ConfirmPaymentResult])
async def confirm_payment(
    payload: ConfirmPaymentRequest,
    user_id: str = Depends(get_current_user_id),
    service: PaymentOrchestrator = Depends(get_payment_orchestrator),
):
    """Current gateway status of a card intent"""
    result = await service.confirm_payment(payload.payment_id, payload.method)
    return success_response(data=result, message="Payment status")


@router.get("/orders/{order_id}", summary="Order payment state", response_model=ApiResponse[OrderPaymentView])
async def get_order_payment(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    service: PaymentOrchestrator = Depends(get_payment_orchestrator),
):
    view = await service.get_order_payment(order_id, user_id=user_id)
    return success_response(data=view)


@router.post("/webhook", summary="Gateway webhook", response_model=ApiResponse[WebhookAck])
async def payments_webhook(
    request: Request,
    service: PaymentOrchestrator = Depends(get_payment_orchestrator),
):
    """
    Gateway-to-server channel; no bearer auth.

    Always acknowledged with 200 unless the source IP is not allowlisted
    (403), the envelope is malformed or the signature is invalid (400), or
    the ledger is inconsistent (500).
    """
    remote_ip = request.client.host if request.client else None
    if not _ip_allowed(remote_ip):
        logger.warning("webhook_ip_not_allowed", remote_ip=remote_ip)
        raise ForbiddenException("Webhook source not allowed")

    raw_body = await request.body()
    headers = {k: v for k, v in request.headers.items()}
    ack = await service.handle_webhook_event(headers, raw_body)
    return success_response(data=ack, message="Webhook received")
