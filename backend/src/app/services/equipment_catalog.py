"""Access to the equipment catalog record and its status mirror."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import BLOCKING_STATUSES, EquipmentStatus
from app.models.equipment import Equipment
from app.models.order import Order

logger = logging.getLogger(__name__)


class EquipmentCatalog:
    """Reads equipment and writes its mirror status within the caller's session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_equipment(
        self, equipment_id: UUID, for_update: bool = False
    ) -> Equipment | None:
        """Get equipment by ID.

        Args:
            equipment_id: Equipment UUID
            for_update: Take a row-level lock (SELECT ... FOR UPDATE) for the
                rest of the transaction

        Returns:
            Equipment or None if not found
        """
        stmt = select(Equipment).where(Equipment.equipment_id == equipment_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    def set_mirror_status(self, equipment: Equipment, status: EquipmentStatus) -> None:
        """Stage a mirror change; it is flushed with the order update."""
        if equipment.status is status:
            return
        logger.info(
            f"Equipment {equipment.equipment_id} mirror {equipment.status.value} -> {status.value}"
        )
        equipment.status = status

    async def has_other_blocking_order(
        self, equipment_id: UUID, exclude_order_id: UUID
    ) -> bool:
        """Check whether another accepted or in-progress order holds the equipment."""
        result = await self.db.execute(
            select(Order.order_id)
            .where(Order.equipment_id == equipment_id)
            .where(Order.status.in_(BLOCKING_STATUSES))
            .where(Order.order_id != exclude_order_id)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None
