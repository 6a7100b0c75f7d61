"""Status enums shared by orders and the equipment mirror."""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_blocking(self) -> bool:
        return self in BLOCKING_STATUSES


TERMINAL_STATUSES = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.REJECTED, OrderStatus.CANCELLED}
)

# Orders in these states reserve the equipment exclusively for their date range
BLOCKING_STATUSES = frozenset({OrderStatus.ACCEPTED, OrderStatus.IN_PROGRESS})


class EquipmentStatus(str, Enum):
    AVAILABLE = "available"
    LOCKED = "locked"
    PENDING_RETURN = "pending_return"
    MAINTENANCE = "maintenance"
    OFFLINE = "offline"

    @property
    def is_owner_controlled(self) -> bool:
        return self in OWNER_CONTROLLED_STATUSES


# Set by the owner; order transitions never write over these
OWNER_CONTROLLED_STATUSES = frozenset({EquipmentStatus.MAINTENANCE, EquipmentStatus.OFFLINE})
