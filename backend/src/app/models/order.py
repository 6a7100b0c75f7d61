"""Rental order model."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, Enum, ForeignKey, Index, Numeric, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.base import TimestampMixin
from app.models.enums import OrderStatus

if TYPE_CHECKING:
    from app.models.equipment import Equipment


class Order(Base, TimestampMixin):
    """Time-bounded reservation of one piece of equipment.

    ``start_date``, ``end_date``, ``provider_id`` and ``total_amount`` are
    fixed at creation. The rental occupies the half-open range
    ``[start_date, end_date)``.
    """

    __tablename__ = "orders"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    equipment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("equipment.equipment_id"),
        nullable=False,
    )
    renter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
    )
    # Owner of the equipment when the order was placed
    provider_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    end_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    status: Mapped[OrderStatus] = mapped_column(
        Enum(
            OrderStatus,
            name="order_status",
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=OrderStatus.PENDING,
    )

    # Relationships
    equipment: Mapped["Equipment"] = relationship("Equipment", back_populates="orders")

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="chk_order_date_range"),
        CheckConstraint("total_amount >= 0", name="chk_order_total_amount_positive"),
        Index("idx_orders_equipment_status", "equipment_id", "status"),
        Index("idx_orders_renter_created", "renter_id", "created_at"),
        Index("idx_orders_provider_created", "provider_id", "created_at"),
        Index("idx_orders_status_end_date", "status", "end_date"),
    )

    @property
    def rental_days(self) -> int:
        return (self.end_date - self.start_date).days
