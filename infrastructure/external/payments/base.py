"""
Base payment client implementing shared concerns: retry, thread offload, logging.

Concrete providers subclass it and implement provider-specific logic.
"""
from __future__ import annotations

import functools
from typing import Any, Callable, Mapping, Optional

import anyio
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential, retry_if_exception_type

from core.logging_config import get_logger
from application.dtos.payments import CreateIntent, GatewayIntent
from application.ports.payment_gateway import PaymentGateway


logger = get_logger(__name__)


class BasePaymentClient(PaymentGateway):
    provider: str = "base"
    # transport-level errors worth another attempt; providers override
    retry_on: tuple[type[BaseException], ...] = (ConnectionError, TimeoutError)

    def __init__(self, *, retry: Optional[dict[str, Any]] = None) -> None:
        self._retry_cfg = retry or {"max": 2, "base": 0.2}

    async def _retry(self, fn: Callable[[], Any]):
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(int(self._retry_cfg["max"]) + 1),
            wait=wait_exponential(multiplier=self._retry_cfg["base"], min=0.1, max=2.0),
            retry=retry_if_exception_type(self.retry_on),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    self._log("payment_provider_retry", attempt=attempt.retry_state.attempt_number)
                return await fn()

    async def _call_blocking(self, fn: Callable[..., Any], /, **kwargs: Any) -> Any:
        """Run a blocking SDK call in a worker thread, retrying transport errors."""
        async def _once():
            return await anyio.to_thread.run_sync(functools.partial(fn, **kwargs))

        return await self._retry(_once)

    async def create_intent(self, req: CreateIntent) -> GatewayIntent:  # type: ignore[override]
        raise NotImplementedError

    async def retrieve_intent(self, intent_id: str) -> GatewayIntent:  # type: ignore[override]
        raise NotImplementedError

    def verify_webhook(self, headers: Mapping[str, Any], body: bytes) -> None:  # type: ignore[override]
        raise NotImplementedError

    def _log(self, event: str, **kwargs) -> None:
        logger.info(
            event,
            provider=self.provider,
            **kwargs,
        )
