"""Order service: booking, status transitions and actor-scoped queries."""

import logging
import math
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import AsyncIterator
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.config import settings
from app.middleware.metrics import record_order_created, record_order_transition
from app.models.enums import EquipmentStatus, OrderStatus
from app.models.order import Order
from app.schemas.order import OrderFilter
from app.services.availability_service import AvailabilityService
from app.services.equipment_catalog import EquipmentCatalog
from app.services.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NotAvailableError,
    NotFoundError,
)
from app.services.lock_service import LockNotAcquiredError, LockService, equipment_lock_key
from app.services.order_state_machine import (
    Actor,
    OrderStateMachine,
    Transition,
    order_state_machine,
)

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "created_at": Order.created_at,
    "start_date": Order.start_date,
    "end_date": Order.end_date,
    "total_amount": Order.total_amount,
    "status": Order.status,
}


def calculate_total_amount(start_date: date, end_date: date, daily_price: Decimal) -> Decimal:
    """Price a rental: whole days in [start_date, end_date) times the daily rate."""
    days = (end_date - start_date).days
    return (Decimal(days) * Decimal(daily_price)).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )


@dataclass(frozen=True)
class TransitionResult:
    order: Order
    changed: bool


@dataclass(frozen=True)
class OrderPage:
    items: list[Order]
    total_count: int
    page_number: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.total_count else 0


class OrderService:
    """Service class for rental order operations."""

    # Conditional updates that lose a race are re-evaluated against fresh state
    MAX_TRANSITION_ATTEMPTS = 3

    def __init__(
        self,
        db: AsyncSession,
        lock_service: LockService,
        clock: Clock = system_clock,
        state_machine: OrderStateMachine = order_state_machine,
        lock_ttl: int = settings.EQUIPMENT_LOCK_TTL_SECONDS,
        lock_timeout: float = settings.LOCK_ACQUIRE_TIMEOUT_SECONDS,
    ):
        self.db = db
        self.lock_service = lock_service
        self.clock = clock
        self.state_machine = state_machine
        self.lock_ttl = lock_ttl
        self.lock_timeout = lock_timeout
        self.catalog = EquipmentCatalog(db)
        self.availability = AvailabilityService(db, clock)

    @asynccontextmanager
    async def _equipment_lock(self, equipment_id: UUID) -> AsyncIterator[None]:
        """Serialize check-and-write sections on one piece of equipment."""
        key = equipment_lock_key(equipment_id)
        try:
            async with self.lock_service.hold(key, self.lock_ttl, self.lock_timeout):
                yield
        except LockNotAcquiredError:
            raise ConflictError("Equipment is being booked by another request, try again")

    async def _get_order(self, order_id: UUID, refresh: bool = False) -> Order:
        stmt = select(Order).where(Order.order_id == order_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    # ==================== Creation ====================

    async def create_order(
        self,
        equipment_id: UUID,
        renter_id: UUID,
        start_date: date,
        end_date: date,
    ) -> Order:
        """Create a pending rental request.

        Args:
            equipment_id: Equipment UUID
            renter_id: Requesting user UUID
            start_date: First rented day (today or later)
            end_date: Day the rental ends, strictly after start_date

        Returns:
            Created order in Pending status

        Raises:
            InvalidDateRangeError: bad or retroactive range
            NotFoundError: unknown equipment
            ForbiddenError: renter owns the equipment
            NotAvailableError: equipment mirror is not Available
            ConflictError: range overlaps an accepted or in-progress order
        """
        self.availability.validate_date_range(start_date, end_date)

        async with self._equipment_lock(equipment_id):
            try:
                equipment = await self.catalog.get_equipment(equipment_id, for_update=True)
                if equipment is None:
                    raise NotFoundError(f"Equipment {equipment_id} not found")

                if equipment.owner_id == renter_id:
                    raise ForbiddenError("Cannot rent your own equipment")

                if equipment.status is not EquipmentStatus.AVAILABLE:
                    raise NotAvailableError(
                        f"Equipment is not available ({equipment.status.value})"
                    )

                conflicting_order_id = await self.availability.find_conflict(
                    equipment_id, start_date, end_date
                )
                if conflicting_order_id is not None:
                    raise ConflictError(
                        "Equipment is not available for the selected dates",
                        conflicting_order_id=conflicting_order_id,
                    )

                now = self.clock.now_naive()
                order = Order(
                    order_id=uuid.uuid4(),
                    equipment_id=equipment_id,
                    renter_id=renter_id,
                    provider_id=equipment.owner_id,
                    start_date=start_date,
                    end_date=end_date,
                    total_amount=calculate_total_amount(
                        start_date, end_date, equipment.daily_price
                    ),
                    status=OrderStatus.PENDING,
                    created_at=now,
                    updated_at=now,
                )
                self.db.add(order)
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise

        record_order_created()
        logger.info(
            f"Order {order.order_id} created for equipment {equipment_id} "
            f"[{start_date}, {end_date}) total={order.total_amount}"
        )
        return order

    # ==================== Transitions ====================

    async def update_status(
        self, order_id: UUID, new_status: OrderStatus, actor: Actor
    ) -> Order:
        """Move an order to ``new_status`` on behalf of ``actor``.

        Raises:
            NotFoundError: unknown order
            ForbiddenError: actor may not see the order or trigger the edge
            InvalidTransitionError: edge not in the transition table
            ConflictError: accepting would overlap a blocking order
            NotAvailableError: accepting while the owner has the equipment in
                Maintenance or Offline
        """
        result = await self.transition(order_id, new_status, actor)
        return result.order

    async def transition(
        self, order_id: UUID, new_status: OrderStatus, actor: Actor
    ) -> TransitionResult:
        """Same as update_status but also reports whether anything changed."""
        order = await self._get_order(order_id, refresh=True)

        if not actor.can_view(order):
            raise ForbiddenError("You are not authorized to update this order")

        for _ in range(self.MAX_TRANSITION_ATTEMPTS):
            if self.state_machine.is_idempotent_repeat(order.status, new_status):
                self.state_machine.authorize_repeat(new_status, order, actor)
                logger.debug(f"Order {order_id} already {new_status.value}, nothing to do")
                return TransitionResult(order=order, changed=False)

            edge = self.state_machine.resolve(order.status, new_status)
            self.state_machine.authorize(edge, order, actor)

            if new_status is OrderStatus.ACCEPTED:
                async with self._equipment_lock(order.equipment_id):
                    applied = await self._apply(order, edge)
            else:
                applied = await self._apply(order, edge)

            if applied:
                return TransitionResult(order=order, changed=True)

            order = await self._get_order(order_id, refresh=True)

        raise InvalidTransitionError(
            order.status, new_status, "Order was modified concurrently, try again"
        )

    async def _apply(self, order: Order, edge: Transition) -> bool:
        """Persist one edge with its mirror update in a single transaction.

        Returns:
            False when the order no longer has ``edge.from_status``
        """
        # rollback() expires every instance in the session, keep plain values
        order_id = order.order_id
        equipment_id = order.equipment_id
        start_date, end_date = order.start_date, order.end_date

        try:
            equipment = await self.catalog.get_equipment(equipment_id, for_update=True)
            if equipment is None:
                raise NotFoundError(f"Equipment {equipment_id} not found")

            if edge.to_status is OrderStatus.ACCEPTED:
                if equipment.status.is_owner_controlled:
                    raise NotAvailableError(
                        f"Equipment is not available ({equipment.status.value})"
                    )
                conflicting_order_id = await self.availability.find_conflict(
                    equipment_id, start_date, end_date, exclude_order_id=order_id
                )
                if conflicting_order_id is not None:
                    raise ConflictError(
                        "Another rental was accepted for overlapping dates",
                        conflicting_order_id=conflicting_order_id,
                    )

            if edge.to_status is OrderStatus.COMPLETED and self.clock.today() < end_date:
                raise InvalidTransitionError(
                    edge.from_status, edge.to_status, "Rental period has not ended yet"
                )

            result = await self.db.execute(
                update(Order)
                .where(Order.order_id == order_id)
                .where(Order.status == edge.from_status)
                .values(status=edge.to_status, updated_at=self.clock.now_naive())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await self.db.rollback()
                logger.info(
                    f"Order {order_id} left {edge.from_status.value} before "
                    f"{edge.label} could be applied"
                )
                return False

            mirror = self.state_machine.mirror_after(edge, equipment.status)
            if mirror is EquipmentStatus.AVAILABLE and await self.catalog.has_other_blocking_order(
                equipment_id, order_id
            ):
                mirror = None
            if mirror is not None:
                self.catalog.set_mirror_status(equipment, mirror)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(order)
        record_order_transition(edge.from_status.value, edge.to_status.value)
        logger.info(f"Order {order.order_id} {edge.label}")
        return True

    async def mark_paid(self, order_id: UUID) -> Order:
        """Payment completion: Accepted -> InProgress.

        Duplicate deliveries for an order that is already running or finished
        return it unchanged.

        Raises:
            NotFoundError: unknown order
            InvalidTransitionError: order was never accepted, or was cancelled
        """
        order = await self._get_order(order_id, refresh=True)
        if order.status in (OrderStatus.IN_PROGRESS, OrderStatus.COMPLETED):
            logger.info(f"Duplicate payment signal for order {order_id} ({order.status.value})")
            return order

        result = await self.transition(order_id, OrderStatus.IN_PROGRESS, Actor.system())
        return result.order

    # ==================== Queries ====================

    async def get_order(self, order_id: UUID, actor: Actor) -> Order:
        """Get an order visible to ``actor``.

        Raises:
            NotFoundError: unknown order
            ForbiddenError: actor is not the renter, the provider or an admin
        """
        order = await self._get_order(order_id, refresh=True)
        if not actor.can_view(order):
            raise ForbiddenError("You are not authorized to view this order")
        return order

    async def list_orders(self, filters: OrderFilter, actor: Actor) -> OrderPage:
        """List orders; non-admins only see orders they rent or provide.

        Args:
            filters: Filter, sort and paging options
            actor: Caller

        Returns:
            One page of orders with the total match count
        """
        conditions = []
        if not (actor.is_admin or actor.is_system):
            conditions.append(
                or_(Order.renter_id == actor.actor_id, Order.provider_id == actor.actor_id)
            )
        if filters.status is not None:
            conditions.append(Order.status == filters.status)
        if filters.equipment_id is not None:
            conditions.append(Order.equipment_id == filters.equipment_id)
        if filters.start_date_from is not None:
            conditions.append(Order.start_date >= filters.start_date_from)
        if filters.start_date_to is not None:
            conditions.append(Order.start_date <= filters.start_date_to)
        if filters.end_date_from is not None:
            conditions.append(Order.end_date >= filters.end_date_from)
        if filters.end_date_to is not None:
            conditions.append(Order.end_date <= filters.end_date_to)
        if filters.min_total_amount is not None:
            conditions.append(Order.total_amount >= filters.min_total_amount)
        if filters.max_total_amount is not None:
            conditions.append(Order.total_amount <= filters.max_total_amount)

        count_result = await self.db.execute(
            select(func.count(Order.order_id)).where(*conditions)
        )
        total = count_result.scalar_one()

        column = SORT_COLUMNS[filters.sort_by or "created_at"]
        ordering = column.asc() if filters.ascending else column.desc()

        result = await self.db.execute(
            select(Order)
            .where(*conditions)
            .order_by(ordering, Order.order_id.asc())
            .offset((filters.page_number - 1) * filters.page_size)
            .limit(filters.page_size)
        )
        orders = list(result.scalars().all())

        return OrderPage(
            items=orders,
            total_count=total,
            page_number=filters.page_number,
            page_size=filters.page_size,
        )

    async def find_expired_order_ids(self, limit: int | None = None) -> list[UUID]:
        """Ids of in-progress orders whose end date has been reached."""
        stmt = (
            select(Order.order_id)
            .where(Order.status == OrderStatus.IN_PROGRESS)
            .where(Order.end_date <= self.clock.today())
            .order_by(Order.end_date.asc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
