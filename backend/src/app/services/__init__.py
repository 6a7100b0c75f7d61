"""Business logic services."""

from app.services.availability_service import AvailabilityResult, AvailabilityService
from app.services.equipment_catalog import EquipmentCatalog
from app.services.expiry_sweeper import ExpirySweeper, SweepResult
from app.services.lock_service import LocalLockService, LockService, RedisLockService
from app.services.order_service import OrderService
from app.services.order_state_machine import Actor, OrderStateMachine

__all__ = [
    "Actor",
    "AvailabilityResult",
    "AvailabilityService",
    "EquipmentCatalog",
    "ExpirySweeper",
    "LocalLockService",
    "LockService",
    "OrderService",
    "OrderStateMachine",
    "RedisLockService",
    "SweepResult",
]
