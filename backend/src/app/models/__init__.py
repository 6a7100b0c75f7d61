"""SQLAlchemy ORM models."""

from app.models.base import TimestampMixin
from app.models.enums import (
    BLOCKING_STATUSES,
    OWNER_CONTROLLED_STATUSES,
    TERMINAL_STATUSES,
    EquipmentStatus,
    OrderStatus,
)
from app.models.equipment import Equipment
from app.models.order import Order

__all__ = [
    "TimestampMixin",
    "Equipment",
    "Order",
    "OrderStatus",
    "EquipmentStatus",
    "BLOCKING_STATUSES",
    "OWNER_CONTROLLED_STATUSES",
    "TERMINAL_STATUSES",
]
