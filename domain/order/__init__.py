"""Order ledger domain (orders are created upstream; this service only transitions them)."""
from .entity import Order, OrderPatch, OrderStatus, PaymentMethod, PaymentStatus
from .repository import OrderRepository

__all__ = ["Order", "OrderPatch", "OrderStatus", "PaymentMethod", "PaymentStatus", "OrderRepository"]
