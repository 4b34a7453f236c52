"""Pytest bootstrap configuration.

Ensure mandatory environment variables are set before test collection
and module imports that depend on application settings.
"""
import os

# Mandatory secret key for settings validation
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef0123456789")
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")
os.environ.pop("PAYMENT__STRIPE__WEBHOOK_SECRET", None)

import asyncio
import functools
import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

import httpx
import jwt
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from application.dtos.payments import CreateIntent, GatewayIntent
from application.services.payment_service import PaymentOrchestrator
from core.config import settings
from core.settings import PaymentSettings
from domain.order.entity import Order, OrderPatch
from infrastructure.models import Base, OrderModel
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


class FakeGateway:
    """In-process gateway: records calls, optionally slow."""

    def __init__(self, provider: str = "stripe", delay: float = 0.0):
        self.provider = provider
        self.delay = delay
        self.intents: dict[str, GatewayIntent] = {}
        self.create_calls: list[CreateIntent] = []

    async def create_intent(self, req: CreateIntent) -> GatewayIntent:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.create_calls.append(req)
        intent_id = f"pi_{len(self.intents) + 1}"
        intent = GatewayIntent(
            id=intent_id,
            status="requires_payment_method",
            provider=self.provider,
            amount_minor_units=req.amount_minor,
            client_secret=f"{intent_id}_secret_abc",
        )
        self.intents[intent_id] = intent
        return intent

    async def retrieve_intent(self, intent_id: str) -> GatewayIntent:
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.intents[intent_id]

    def set_status(self, intent_id: str, status: str) -> None:
        self.intents[intent_id] = self.intents[intent_id].model_copy(update={"status": status})

    def verify_webhook(self, headers, body) -> None:
        return None


class OrderBook:
    """Seeds and inspects the order ledger the way the order-placement flow would."""

    def __init__(self, session_factory, uow_factory):
        self._session_factory = session_factory
        self._uow_factory = uow_factory

    async def add(
        self,
        order_id: str,
        *,
        method: str = "CARD",
        payment_status: str = "PENDING",
        status: str = "PENDING",
        gateway_intent_id: Optional[str] = None,
        user_id: str = "user-1",
        total: Decimal = Decimal("50.00"),
    ) -> None:
        async with self._session_factory() as session:
            session.add(
                OrderModel(
                    id=order_id,
                    user_id=user_id,
                    total_amount=total,
                    payment_method=method,
                    payment_status=payment_status,
                    status=status,
                    gateway_intent_id=gateway_intent_id,
                )
            )
            await session.commit()

    async def get(self, order_id: str) -> Order:
        async with self._uow_factory(readonly=True) as uow:
            return await uow.order_repository.get_by_id(order_id)

    async def link_intent(self, order_id: str, intent_id: str) -> Order:
        async with self._uow_factory() as uow:
            return await uow.order_repository.update(order_id, OrderPatch(gateway_intent_id=intent_id))

    async def processed(self, intent_id: str):
        async with self._uow_factory(readonly=True) as uow:
            return await uow.processed_event_repository.list_by_intent(intent_id)


def access_token(user_id: str, *, expires_in: timedelta = timedelta(minutes=30), token_type: str = "access") -> str:
    """Mint a bearer token the way the auth service does."""
    claims = {"sub": user_id, "exp": datetime.now(timezone.utc) + expires_in, "type": token_type}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def webhook_body(event_type: str, obj: dict, event_id: Optional[str] = "evt_1") -> bytes:
    envelope = {"type": event_type, "data": {"object": obj}}
    if event_id is not None:
        envelope["id"] = event_id
    return json.dumps(envelope).encode("utf-8")


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def uow_factory(session_factory):
    return functools.partial(SQLAlchemyUnitOfWork, session_factory)


@pytest.fixture
def orders(session_factory, uow_factory) -> OrderBook:
    return OrderBook(session_factory, uow_factory)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def payment_settings() -> PaymentSettings:
    return PaymentSettings(timeouts={"gateway_call": 0.5})


@pytest.fixture
def orchestrator(uow_factory, gateway, payment_settings) -> PaymentOrchestrator:
    return PaymentOrchestrator(uow_factory=uow_factory, gateway=gateway, settings=payment_settings)


@pytest.fixture
def auth_headers() -> dict:
    token = access_token("user-1")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(orchestrator):
    from main import app
    from api.dependencies import get_payment_orchestrator

    app.dependency_overrides[get_payment_orchestrator] = lambda: orchestrator
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
