"""Infrastructure models package exports."""
from .base import Base, metadata
from .order import OrderModel
from .payment import ProcessedWebhookEventModel

__all__ = [
    "Base",
    "metadata",
    "OrderModel",
    "ProcessedWebhookEventModel",
]
