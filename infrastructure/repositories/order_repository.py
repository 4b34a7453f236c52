"""
Order ledger repository - SQLAlchemy implementation
"""
from typing import Iterable, Optional
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from domain.common.exceptions import IntegrityFaultException, OrderNotFoundException
from domain.order.entity import Order, OrderPatch, OrderStatus, PaymentMethod, PaymentStatus
from domain.order.repository import OrderRepository
from infrastructure.models.order import OrderModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyOrderRepository(OrderRepository):
    """Order repository backed by the ``orders`` table"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: OrderModel) -> Order:
        """ORM model -> domain entity"""
        return Order(
            id=model.id,
            user_id=model.user_id,
            total_amount=Decimal(str(model.total_amount or 0)),
            payment_method=PaymentMethod.parse(model.payment_method),
            payment_status=PaymentStatus(model.payment_status),
            status=OrderStatus(model.status),
            gateway_intent_id=model.gateway_intent_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        result = await self.session.execute(
            select(OrderModel).where(OrderModel.id == order_id)
        )
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    async def get_by_gateway_intent_id(self, gateway_intent_id: str) -> Optional[Order]:
        # Fetch up to two rows: one is the normal case, two already proves a fault.
        result = await self.session.execute(
            select(OrderModel)
            .where(OrderModel.gateway_intent_id == gateway_intent_id)
            .order_by(OrderModel.id)
            .limit(2)
        )
        rows = result.scalars().all()
        if not rows:
            return None
        if len(rows) > 1:
            order_ids = [row.id for row in rows]
            logger.error(
                "order_intent_integrity_fault",
                gateway_intent_id=gateway_intent_id,
                order_ids=order_ids,
            )
            raise IntegrityFaultException(gateway_intent_id, order_ids)
        return self._to_entity(rows[0])

    async def update(self, order_id: str, patch: OrderPatch) -> Order:
        values = patch.as_values()
        if values:
            values["updated_at"] = datetime.now(timezone.utc)
            result = await self.session.execute(
                update(OrderModel)
                .where(OrderModel.id == order_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise OrderNotFoundException(order_id)
            logger.info("order_updated", order_id=order_id, **{k: v for k, v in values.items() if k != "updated_at"})

        result = await self.session.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .execution_options(populate_existing=True)
        )
        db_order = result.scalar_one_or_none()
        if db_order is None:
            raise OrderNotFoundException(order_id)
        return self._to_entity(db_order)

    async def transition_payment_status(
        self,
        order_id: str,
        *,
        to_status: PaymentStatus,
        from_statuses: Optional[Iterable[PaymentStatus]] = None,
        order_status: Optional[OrderStatus] = None,
    ) -> bool:
        stmt = update(OrderModel).where(OrderModel.id == order_id)
        if from_statuses is not None:
            allowed = [s.value for s in from_statuses]
            if not allowed:
                return False
            stmt = stmt.where(OrderModel.payment_status.in_(allowed))

        values = {
            "payment_status": to_status.value,
            "updated_at": datetime.now(timezone.utc),
        }
        if order_status is not None:
            values["status"] = order_status.value

        result = await self.session.execute(
            stmt.values(**values).execution_options(synchronize_session=False)
        )
        changed = result.rowcount == 1
        logger.debug(
            "order_payment_transition",
            order_id=order_id,
            to_status=to_status.value,
            guarded=from_statuses is not None,
            changed=changed,
        )
        return changed
