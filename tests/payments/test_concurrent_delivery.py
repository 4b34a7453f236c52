import asyncio
import functools

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from application.services.payment_service import PaymentOrchestrator
from core.settings import PaymentSettings
from domain.order.entity import PaymentStatus
from domain.payment.state_machine import ReconciliationPolicy
from infrastructure.models import Base
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork

from conftest import FakeGateway, OrderBook, webhook_body


@pytest.fixture
async def file_session_factory(tmp_path):
    # one connection per unit of work, so deliveries really race on the database
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"timeout": 15},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def file_uow_factory(file_session_factory):
    return functools.partial(SQLAlchemyUnitOfWork, file_session_factory)


@pytest.fixture
def ledger(file_session_factory, file_uow_factory) -> OrderBook:
    return OrderBook(file_session_factory, file_uow_factory)


def _orchestrator(uow_factory, policy: ReconciliationPolicy) -> PaymentOrchestrator:
    return PaymentOrchestrator(
        uow_factory=uow_factory,
        gateway=FakeGateway(),
        settings=PaymentSettings(reconciliation_policy=policy),
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("policy", list(ReconciliationPolicy))
async def test_same_event_delivered_concurrently_applies_once(file_uow_factory, ledger, policy):
    svc = _orchestrator(file_uow_factory, policy)
    await ledger.add("O1", gateway_intent_id="pi_1")
    body = webhook_body("payment_succeeded", {"id": "pi_1"})

    acks = await asyncio.gather(*(svc.handle_webhook_event({}, body) for _ in range(2)))

    assert sorted(a.outcome for a in acks) == ["applied", "duplicate"]
    assert (await ledger.get("O1")).payment_status is PaymentStatus.COMPLETED
    assert len(await ledger.processed("pi_1")) == 1


@pytest.mark.asyncio
async def test_success_and_failure_racing_on_pending_order(file_uow_factory, ledger):
    svc = _orchestrator(file_uow_factory, ReconciliationPolicy.MONOTONIC)
    await ledger.add("O1", gateway_intent_id="pi_1")

    acks = await asyncio.gather(
        svc.handle_webhook_event({}, webhook_body("payment_succeeded", {"id": "pi_1"}, event_id="evt_ok")),
        svc.handle_webhook_event({}, webhook_body("payment_failed", {"id": "pi_1"}, event_id="evt_fail")),
    )

    assert sorted(a.outcome for a in acks) == ["applied", "rejected"]
    winner = next(a.event_type for a in acks if a.outcome == "applied")
    expected = PaymentStatus.COMPLETED if winner == "payment_succeeded" else PaymentStatus.FAILED
    assert (await ledger.get("O1")).payment_status is expected

    processed = await ledger.processed("pi_1")
    assert [p.event_type for p in processed] == [winner]
