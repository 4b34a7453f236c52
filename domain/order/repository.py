"""
Order ledger repository interface
"""
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from .entity import Order, OrderPatch, OrderStatus, PaymentStatus


class OrderRepository(ABC):
    """Order ledger abstraction - only what the payment engine needs"""

    @abstractmethod
    async def get_by_id(self, order_id: str) -> Optional[Order]:
        """Find an order by id"""
        pass

    @abstractmethod
    async def get_by_gateway_intent_id(self, gateway_intent_id: str) -> Optional[Order]:
        """Find the single order linked to a gateway intent.

        Raises IntegrityFaultException when more than one order shares the id.
        """
        pass

    @abstractmethod
    async def update(self, order_id: str, patch: OrderPatch) -> Order:
        """Apply ``patch`` in a single write and return the updated order"""
        pass

    @abstractmethod
    async def transition_payment_status(
        self,
        order_id: str,
        *,
        to_status: PaymentStatus,
        from_statuses: Optional[Iterable[PaymentStatus]] = None,
        order_status: Optional[OrderStatus] = None,
    ) -> bool:
        """Conditionally set the payment status in one atomic statement.

        When ``from_statuses`` is given the write only happens if the current
        status is one of them (compare-and-swap). Returns True if a row changed.
        """
        pass
