import pytest

from domain.common.exceptions import (
    DuplicateWebhookEventException,
    IntegrityFaultException,
    OrderNotFoundException,
)
from domain.order.entity import OrderPatch, OrderStatus, PaymentStatus
from domain.payment.entity import ProcessedWebhookEvent, ReconciliationOutcome


@pytest.mark.asyncio
async def test_lookup_by_gateway_intent_id(uow_factory, orders):
    await orders.add("O1", gateway_intent_id="pi_1")
    await orders.add("O2")

    async with uow_factory(readonly=True) as uow:
        found = await uow.order_repository.get_by_gateway_intent_id("pi_1")
        missing = await uow.order_repository.get_by_gateway_intent_id("pi_2")

    assert found.id == "O1"
    assert missing is None


@pytest.mark.asyncio
async def test_lookup_raises_when_intent_is_shared(uow_factory, orders):
    await orders.add("O1", gateway_intent_id="pi_1")
    await orders.add("O2", gateway_intent_id="pi_1")

    async with uow_factory(readonly=True) as uow:
        with pytest.raises(IntegrityFaultException):
            await uow.order_repository.get_by_gateway_intent_id("pi_1")


@pytest.mark.asyncio
async def test_update_applies_patch(uow_factory, orders):
    await orders.add("O1")

    async with uow_factory() as uow:
        updated = await uow.order_repository.update(
            "O1", OrderPatch(payment_status=PaymentStatus.PENDING, status=OrderStatus.PROCESSING)
        )

    assert updated.status is OrderStatus.PROCESSING
    assert (await orders.get("O1")).status is OrderStatus.PROCESSING


@pytest.mark.asyncio
async def test_update_missing_order(uow_factory):
    async with uow_factory() as uow:
        with pytest.raises(OrderNotFoundException):
            await uow.order_repository.update("nope", OrderPatch(status=OrderStatus.PROCESSING))


@pytest.mark.asyncio
async def test_conditional_transition_is_compare_and_swap(uow_factory, orders):
    await orders.add("O1", payment_status="COMPLETED")

    async with uow_factory() as uow:
        changed = await uow.order_repository.transition_payment_status(
            "O1", to_status=PaymentStatus.FAILED, from_statuses=[PaymentStatus.PENDING]
        )
    assert changed is False
    assert (await orders.get("O1")).payment_status is PaymentStatus.COMPLETED

    async with uow_factory() as uow:
        changed = await uow.order_repository.transition_payment_status(
            "O1", to_status=PaymentStatus.REFUNDED, from_statuses=[PaymentStatus.COMPLETED]
        )
    assert changed is True
    assert (await orders.get("O1")).payment_status is PaymentStatus.REFUNDED


@pytest.mark.asyncio
async def test_processed_event_pair_is_unique(uow_factory, orders):
    def record():
        return ProcessedWebhookEvent(
            gateway_intent_id="pi_1",
            event_type="payment_succeeded",
            order_id="O1",
            outcome=ReconciliationOutcome.APPLIED,
        )

    async with uow_factory() as uow:
        saved = await uow.processed_event_repository.add(record())
    assert saved.id is not None

    with pytest.raises(DuplicateWebhookEventException):
        async with uow_factory() as uow:
            await uow.processed_event_repository.add(record())

    assert len(await orders.processed("pi_1")) == 1
