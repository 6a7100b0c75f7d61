"""Tests for date range validation and half-open overlap detection."""

import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

from app.models import EquipmentStatus, Order, OrderStatus
from app.services.availability_service import AvailabilityService, ranges_overlap
from app.services.exceptions import InvalidDateRangeError


class TestRangesOverlap:
    """Test the pure [start, end) overlap predicate."""

    def test_back_to_back_does_not_overlap(self):
        assert not ranges_overlap(
            date(2024, 3, 5), date(2024, 3, 10), date(2024, 3, 10), date(2024, 3, 12)
        )
        assert not ranges_overlap(
            date(2024, 3, 10), date(2024, 3, 12), date(2024, 3, 5), date(2024, 3, 10)
        )

    def test_one_day_overlap(self):
        assert ranges_overlap(
            date(2024, 3, 5), date(2024, 3, 10), date(2024, 3, 9), date(2024, 3, 12)
        )

    def test_containment_overlaps(self):
        assert ranges_overlap(
            date(2024, 3, 1), date(2024, 3, 31), date(2024, 3, 10), date(2024, 3, 11)
        )


async def _add_order(db, equipment, renter_id, start, end, status):
    order = Order(
        order_id=uuid4(),
        equipment_id=equipment.equipment_id,
        renter_id=renter_id,
        provider_id=equipment.owner_id,
        start_date=start,
        end_date=end,
        total_amount=Decimal("0.00"),
        status=status,
    )
    db.add(order)
    await db.commit()
    return order


class TestCheckAvailable:
    """Test conflict detection against stored orders."""

    @pytest.fixture(autouse=True)
    def _today(self, clock):
        clock.set_today(date(2024, 3, 1))

    @pytest.mark.asyncio
    async def test_start_on_previous_end_date_is_available(
        self, db, clock, make_equipment, renter_id
    ):
        """An order ending 2024-03-10 does not block one starting 2024-03-10."""
        equipment = await make_equipment()
        await _add_order(
            db, equipment, renter_id, date(2024, 3, 5), date(2024, 3, 10), OrderStatus.ACCEPTED
        )
        service = AvailabilityService(db, clock)

        result = await service.check_available(
            equipment.equipment_id, date(2024, 3, 10), date(2024, 3, 12)
        )

        assert result.available is True
        assert result.conflicting_order_id is None

    @pytest.mark.asyncio
    async def test_start_one_day_earlier_conflicts(self, db, clock, make_equipment, renter_id):
        equipment = await make_equipment()
        existing = await _add_order(
            db, equipment, renter_id, date(2024, 3, 5), date(2024, 3, 10), OrderStatus.IN_PROGRESS
        )
        service = AvailabilityService(db, clock)

        result = await service.check_available(
            equipment.equipment_id, date(2024, 3, 9), date(2024, 3, 12)
        )

        assert result.available is False
        assert result.conflicting_order_id == existing.order_id

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status",
        [OrderStatus.PENDING, OrderStatus.REJECTED, OrderStatus.CANCELLED, OrderStatus.COMPLETED],
    )
    async def test_non_blocking_orders_are_ignored(
        self, db, clock, make_equipment, renter_id, status
    ):
        equipment = await make_equipment()
        await _add_order(db, equipment, renter_id, date(2024, 3, 5), date(2024, 3, 10), status)
        service = AvailabilityService(db, clock)

        result = await service.check_available(
            equipment.equipment_id, date(2024, 3, 6), date(2024, 3, 8)
        )

        assert result.available is True

    @pytest.mark.asyncio
    async def test_other_equipment_does_not_block(self, db, clock, make_equipment, renter_id):
        busy = await make_equipment()
        free = await make_equipment()
        await _add_order(
            db, busy, renter_id, date(2024, 3, 5), date(2024, 3, 10), OrderStatus.ACCEPTED
        )
        service = AvailabilityService(db, clock)

        result = await service.check_available(
            free.equipment_id, date(2024, 3, 5), date(2024, 3, 10)
        )

        assert result.available is True

    @pytest.mark.asyncio
    async def test_excluded_order_does_not_conflict_with_itself(
        self, db, clock, make_equipment, renter_id
    ):
        equipment = await make_equipment()
        existing = await _add_order(
            db, equipment, renter_id, date(2024, 3, 5), date(2024, 3, 10), OrderStatus.ACCEPTED
        )
        service = AvailabilityService(db, clock)

        result = await service.check_available(
            equipment.equipment_id,
            date(2024, 3, 5),
            date(2024, 3, 10),
            exclude_order_id=existing.order_id,
        )

        assert result.available is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [EquipmentStatus.MAINTENANCE, EquipmentStatus.OFFLINE])
    async def test_owner_controlled_equipment_is_unavailable(
        self, db, clock, make_equipment, status
    ):
        equipment = await make_equipment(status=status)
        service = AvailabilityService(db, clock)

        result = await service.check_available(
            equipment.equipment_id, date(2024, 3, 5), date(2024, 3, 10), equipment_status=status
        )

        assert result.available is False
        assert result.conflicting_order_id is None
        assert result.equipment_status is status

    @pytest.mark.asyncio
    async def test_locked_mirror_still_checks_dates(self, db, clock, make_equipment):
        """A rental elsewhere in time locks the mirror but leaves other dates free."""
        equipment = await make_equipment(status=EquipmentStatus.LOCKED)
        service = AvailabilityService(db, clock)

        result = await service.check_available(
            equipment.equipment_id,
            date(2024, 3, 5),
            date(2024, 3, 10),
            equipment_status=EquipmentStatus.LOCKED,
        )

        assert result.available is True


class TestValidateDateRange:
    """Test input validation, separate from conflict detection."""

    def test_end_must_follow_start(self, clock):
        clock.set_today(date(2024, 3, 1))
        service = AvailabilityService(MagicMock(), clock)

        with pytest.raises(InvalidDateRangeError):
            service.validate_date_range(date(2024, 3, 10), date(2024, 3, 10))
        with pytest.raises(InvalidDateRangeError):
            service.validate_date_range(date(2024, 3, 10), date(2024, 3, 9))

    def test_start_in_past_is_rejected(self, clock):
        clock.set_today(date(2024, 3, 1))
        service = AvailabilityService(MagicMock(), clock)

        with pytest.raises(InvalidDateRangeError):
            service.validate_date_range(date(2024, 2, 29), date(2024, 3, 2))

    def test_start_today_is_allowed(self, clock):
        clock.set_today(date(2024, 3, 1))
        service = AvailabilityService(MagicMock(), clock)

        service.validate_date_range(date(2024, 3, 1), date(2024, 3, 2))
