"""Equipment availability checks against blocking orders."""

import logging
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.models.enums import BLOCKING_STATUSES, EquipmentStatus
from app.models.order import Order
from app.services.exceptions import InvalidDateRangeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    conflicting_order_id: UUID | None = None
    equipment_status: EquipmentStatus | None = None


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Half-open overlap test for [start, end) ranges.

    Back-to-back ranges (one ends the day the other starts) do not overlap.
    """
    return start_a < end_b and start_b < end_a


class AvailabilityService:
    """Read-only conflict detection for a candidate date range.

    Callers that go on to write must run the check while holding the
    equipment lock, inside the same transaction as the write.
    """

    def __init__(self, db: AsyncSession, clock: Clock = system_clock):
        self.db = db
        self.clock = clock

    def validate_date_range(self, start_date: date, end_date: date) -> None:
        """Reject inverted, empty or retroactive ranges.

        Raises:
            InvalidDateRangeError: start >= end, or start before today
        """
        if end_date <= start_date:
            raise InvalidDateRangeError("End date must be after start date")
        if start_date < self.clock.today():
            raise InvalidDateRangeError("Start date cannot be in the past")

    async def find_conflict(
        self,
        equipment_id: UUID,
        start_date: date,
        end_date: date,
        exclude_order_id: UUID | None = None,
    ) -> UUID | None:
        """Return the id of a blocking order overlapping the range, if any."""
        stmt = (
            select(Order.order_id)
            .where(Order.equipment_id == equipment_id)
            .where(Order.status.in_(BLOCKING_STATUSES))
            .where(Order.start_date < end_date)
            .where(Order.end_date > start_date)
            .order_by(Order.start_date.asc())
            .limit(1)
        )
        if exclude_order_id is not None:
            stmt = stmt.where(Order.order_id != exclude_order_id)

        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def check_available(
        self,
        equipment_id: UUID,
        start_date: date,
        end_date: date,
        exclude_order_id: UUID | None = None,
        equipment_status: EquipmentStatus | None = None,
    ) -> AvailabilityResult:
        """Check whether [start_date, end_date) is free on the equipment.

        Args:
            equipment_id: Equipment UUID
            start_date: First rented day
            end_date: Day the rental ends (not occupied)
            exclude_order_id: Order to ignore, e.g. the one being accepted
            equipment_status: Current mirror; Maintenance or Offline is never available

        Returns:
            AvailabilityResult with the first conflicting order if unavailable

        Raises:
            InvalidDateRangeError: invalid or retroactive range
        """
        self.validate_date_range(start_date, end_date)

        if equipment_status is not None and equipment_status.is_owner_controlled:
            return AvailabilityResult(available=False, equipment_status=equipment_status)

        conflicting_order_id = await self.find_conflict(
            equipment_id, start_date, end_date, exclude_order_id
        )
        if conflicting_order_id is not None:
            logger.info(
                f"Equipment {equipment_id} [{start_date}, {end_date}) conflicts "
                f"with order {conflicting_order_id}"
            )
            return AvailabilityResult(
                available=False,
                conflicting_order_id=conflicting_order_id,
                equipment_status=equipment_status,
            )

        return AvailabilityResult(available=True, equipment_status=equipment_status)
