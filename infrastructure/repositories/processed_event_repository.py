"""
Webhook idempotency ledger repository - SQLAlchemy implementation
"""
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from domain.common.exceptions import DuplicateWebhookEventException
from domain.payment.entity import ProcessedWebhookEvent, ReconciliationOutcome
from domain.payment.repository import ProcessedWebhookEventRepository
from infrastructure.models.payment import ProcessedWebhookEventModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyProcessedWebhookEventRepository(ProcessedWebhookEventRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: ProcessedWebhookEventModel) -> ProcessedWebhookEvent:
        return ProcessedWebhookEvent(
            id=model.id,
            gateway_intent_id=model.gateway_intent_id,
            event_type=model.event_type,
            event_id=model.event_id,
            order_id=model.order_id,
            outcome=ReconciliationOutcome(model.outcome),
            processed_at=model.processed_at,
        )

    def _to_model(self, entity: ProcessedWebhookEvent) -> ProcessedWebhookEventModel:
        return ProcessedWebhookEventModel(
            id=entity.id,
            gateway_intent_id=entity.gateway_intent_id,
            event_type=entity.event_type,
            event_id=entity.event_id,
            order_id=entity.order_id,
            outcome=entity.outcome.value,
            processed_at=entity.processed_at,
        )

    async def add(self, event: ProcessedWebhookEvent) -> ProcessedWebhookEvent:
        # The caller's unit of work rolls back on the raised exception, undoing
        # any ledger write made earlier in the same transaction.
        try:
            db_event = self._to_model(event)
            self.session.add(db_event)
            await self.session.flush()
            await self.session.refresh(db_event)
            return self._to_entity(db_event)
        except IntegrityError as e:
            logger.info(
                "webhook_event_conflict",
                gateway_intent_id=event.gateway_intent_id,
                event_type=event.event_type,
                error=str(e.orig) if e.orig is not None else str(e),
            )
            raise DuplicateWebhookEventException(event.gateway_intent_id, event.event_type) from e

    async def list_by_intent(self, gateway_intent_id: str) -> List[ProcessedWebhookEvent]:
        result = await self.session.execute(
            select(ProcessedWebhookEventModel)
            .where(ProcessedWebhookEventModel.gateway_intent_id == gateway_intent_id)
            .order_by(ProcessedWebhookEventModel.id)
        )
        return [self._to_entity(m) for m in result.scalars().all()]
