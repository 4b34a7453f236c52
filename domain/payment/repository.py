"""
Idempotency ledger repository interface
"""
from abc import ABC, abstractmethod
from typing import List

from .entity import ProcessedWebhookEvent


class ProcessedWebhookEventRepository(ABC):
    """Records reconciled webhook events under a (gateway_intent_id, event_type) uniqueness constraint"""

    @abstractmethod
    async def add(self, event: ProcessedWebhookEvent) -> ProcessedWebhookEvent:
        """Insert the record; raise DuplicateWebhookEventException if the pair already exists"""
        pass

    @abstractmethod
    async def list_by_intent(self, gateway_intent_id: str) -> List[ProcessedWebhookEvent]:
        """All processed events for one gateway intent, oldest first"""
        pass
