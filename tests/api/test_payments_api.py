from datetime import timedelta

import pytest

from application.services.payment_service import PaymentOrchestrator
from core.settings import PaymentSettings, payment_settings as live_payment_settings
from domain.order.entity import OrderStatus, PaymentStatus

from conftest import FakeGateway, access_token, webhook_body


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "healthy"}


@pytest.mark.asyncio
async def test_create_requires_bearer_token(client, orders):
    await orders.add("O1")
    resp = await client.post("/api/payments", json={"orderId": "O1", "method": "CARD", "amount": 50})

    assert resp.status_code == 401
    body = resp.json()
    assert body["code"] == 30001
    assert body["data"] is None
    assert resp.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_create_rejects_garbage_token(client):
    resp = await client.post(
        "/api/payments",
        json={"orderId": "O1", "method": "CARD", "amount": 50},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_create_card_payment(client, orders, auth_headers):
    await orders.add("O1")

    resp = await client.post(
        "/api/payments", json={"orderId": "O1", "method": "CARD", "amount": 50.00}, headers=auth_headers
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["code"] == 0
    assert body["data"] == {
        "type": "card",
        "intentId": "pi_1",
        "clientConfirmationToken": "pi_1_secret_abc",
    }
    assert (await orders.get("O1")).payment_status is PaymentStatus.PENDING


@pytest.mark.asyncio
async def test_create_accepts_snake_case_body(client, orders, auth_headers):
    await orders.add("O2", method="CASH_ON_DELIVERY")

    resp = await client.post(
        "/api/payments",
        json={"order_id": "O2", "method": "cash_on_delivery", "amount": "20"},
        headers=auth_headers,
    )

    assert resp.status_code == 201
    assert resp.json()["data"] == {"type": "cash_on_delivery", "status": "pending"}
    assert (await orders.get("O2")).status is OrderStatus.PROCESSING


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload, status_code, code",
    [
        ({"orderId": "O1", "method": "PAYPAL", "amount": 5}, 400, 20101),
        ({"orderId": "O1", "method": "CARD", "amount": -5}, 400, 20102),
        ({"orderId": "O1", "method": "CARD", "amount": 0}, 400, 20102),
        ({"orderId": "O1", "method": "CARD", "amount": "abc"}, 400, 10003),
        ({"orderId": "O1", "method": "CARD"}, 400, 10003),
        ({"orderId": "missing", "method": "CARD", "amount": 5}, 404, 20100),
    ],
)
async def test_create_errors(client, orders, auth_headers, payload, status_code, code):
    await orders.add("O1")

    resp = await client.post("/api/payments", json=payload, headers=auth_headers)

    assert resp.status_code == status_code
    assert resp.json()["code"] == code


@pytest.mark.asyncio
async def test_gateway_timeout_maps_to_503(client, orders, auth_headers, uow_factory):
    from main import app
    from api.dependencies import get_payment_orchestrator

    slow = PaymentOrchestrator(
        uow_factory=uow_factory,
        gateway=FakeGateway(delay=1.0),
        settings=PaymentSettings(timeouts={"gateway_call": 0.05}),
    )
    app.dependency_overrides[get_payment_orchestrator] = lambda: slow
    await orders.add("O1")

    resp = await client.post(
        "/api/payments", json={"orderId": "O1", "method": "CARD", "amount": 5}, headers=auth_headers
    )

    assert resp.status_code == 503
    assert resp.json()["error"]["type"] == "GatewayUnavailable"


@pytest.mark.asyncio
async def test_confirm_card_payment(client, orders, auth_headers, gateway):
    await orders.add("O1")
    created = await client.post(
        "/api/payments", json={"orderId": "O1", "method": "CARD", "amount": 12.34}, headers=auth_headers
    )
    intent_id = created.json()["data"]["intentId"]
    gateway.set_status(intent_id, "processing")

    resp = await client.post(
        "/api/payments/confirm", json={"paymentId": intent_id, "method": "CARD"}, headers=auth_headers
    )

    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "processing", "amountMajorUnits": 12.34}


@pytest.mark.asyncio
async def test_confirm_cash_on_delivery_is_400(client, auth_headers):
    resp = await client.post(
        "/api/payments/confirm", json={"paymentId": "pi_1", "method": "CASH_ON_DELIVERY"}, headers=auth_headers
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == 20101


@pytest.mark.asyncio
async def test_webhook_needs_no_bearer_and_applies_event(client, orders):
    await orders.add("O1", gateway_intent_id="pi_1")

    resp = await client.post(
        "/api/payments/webhook",
        content=webhook_body("payment_succeeded", {"id": "pi_1"}),
        headers={"content-type": "application/json"},
    )

    assert resp.status_code == 200
    assert resp.json()["data"] == {"received": True, "outcome": "applied", "eventType": "payment_succeeded"}
    assert (await orders.get("O1")).payment_status is PaymentStatus.COMPLETED


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "event_type, obj",
    [
        ("customer.created", {"id": "cus_1"}),
        ("payment_succeeded", {"id": "pi_unknown"}),
        ("charge_refunded", {"id": "ch_1"}),
    ],
)
async def test_webhook_always_acknowledges(client, event_type, obj):
    resp = await client.post("/api/payments/webhook", content=webhook_body(event_type, obj))

    assert resp.status_code == 200
    assert resp.json()["data"]["received"] is True


@pytest.mark.asyncio
async def test_malformed_webhook_is_400(client):
    resp = await client.post("/api/payments/webhook", content=b'{"data": {"object": {}}}')

    assert resp.status_code == 400
    assert resp.json()["error"]["type"] == "MalformedWebhookPayload"


@pytest.mark.asyncio
async def test_integrity_fault_is_500(client, orders):
    await orders.add("O1", gateway_intent_id="pi_dup")
    await orders.add("O2", gateway_intent_id="pi_dup")

    resp = await client.post("/api/payments/webhook", content=webhook_body("payment_succeeded", {"id": "pi_dup"}))

    assert resp.status_code == 500
    assert resp.json()["code"] == 40004


@pytest.mark.asyncio
async def test_order_payment_view(client, orders, auth_headers):
    await orders.add("O1", gateway_intent_id="pi_1")

    resp = await client.get("/api/payments/orders/O1", headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json()["data"] == {
        "orderId": "O1",
        "paymentMethod": "CARD",
        "paymentStatus": "PENDING",
        "status": "PENDING",
        "gatewayIntentId": "pi_1",
    }


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    resp = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"

    generated = await client.get("/health")
    assert generated.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_expired_token_is_401(client):
    token = access_token("user-1", expires_in=timedelta(seconds=-5))
    resp = await client.get("/api/payments/orders/O1", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 401
    assert resp.json()["code"] == 30004


@pytest.mark.asyncio
async def test_non_access_token_is_401(client):
    token = access_token("user-1", token_type="refresh")
    resp = await client.get("/api/payments/orders/O1", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 401
    assert resp.json()["code"] == 30001


@pytest.mark.asyncio
async def test_cash_on_delivery_on_settled_order_is_409(client, orders, auth_headers):
    await orders.add("O1", payment_status="COMPLETED", status="PROCESSING", gateway_intent_id="pi_1")

    resp = await client.post(
        "/api/payments", json={"orderId": "O1", "method": "CASH_ON_DELIVERY", "amount": 50}, headers=auth_headers
    )

    assert resp.status_code == 409
    assert resp.json()["error"]["type"] == "PaymentAlreadySettled"
    assert (await orders.get("O1")).payment_status is PaymentStatus.COMPLETED


@pytest.mark.asyncio
async def test_webhook_from_unlisted_ip_is_403(client, orders, monkeypatch):
    # ASGITransport reports the client as 127.0.0.1
    monkeypatch.setattr(live_payment_settings.webhook, "ip_allowlist", ["10.0.0.0/8"])
    await orders.add("O1", gateway_intent_id="pi_1")

    resp = await client.post("/api/payments/webhook", content=webhook_body("payment_succeeded", {"id": "pi_1"}))

    assert resp.status_code == 403
    assert resp.json()["code"] == 30002
    assert (await orders.get("O1")).payment_status is PaymentStatus.PENDING


@pytest.mark.asyncio
async def test_webhook_from_listed_ip_is_processed(client, orders, monkeypatch):
    monkeypatch.setattr(live_payment_settings.webhook, "ip_allowlist", ["127.0.0.0/8"])
    await orders.add("O1", gateway_intent_id="pi_1")

    resp = await client.post("/api/payments/webhook", content=webhook_body("payment_succeeded", {"id": "pi_1"}))

    assert resp.status_code == 200
    assert resp.json()["data"]["outcome"] == "applied"
