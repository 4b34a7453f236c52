"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
"""
from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from application.dtos.payments import CreateIntent, GatewayIntent


@runtime_checkable
class PaymentGateway(Protocol):
    """Gateway protocol for the card processor.

    Implementations should be async and side-effect free beyond IO.
    """

    provider: str

    async def create_intent(self, req: CreateIntent) -> GatewayIntent: ...

    async def retrieve_intent(self, intent_id: str) -> GatewayIntent: ...

    def verify_webhook(self, headers: Mapping[str, Any], body: bytes) -> None:
        """Raise PaymentSignatureError when the delivery is not authentic."""
        ...
