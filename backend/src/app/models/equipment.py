"""Equipment record as seen by the order subsystem."""

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, List

from sqlalchemy import CheckConstraint, Enum, Index, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.base import TimestampMixin
from app.models.enums import EquipmentStatus

if TYPE_CHECKING:
    from app.models.order import Order


class Equipment(Base, TimestampMixin):
    """Catalog equipment row.

    The catalog owns name, price and ownership. The order subsystem only
    writes ``status`` (the mirror) between available, locked and
    pending_return.
    """

    __tablename__ = "equipment"

    equipment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    daily_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
    )
    status: Mapped[EquipmentStatus] = mapped_column(
        Enum(
            EquipmentStatus,
            name="equipment_status",
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=EquipmentStatus.AVAILABLE,
    )

    # Relationships
    orders: Mapped[List["Order"]] = relationship("Order", back_populates="equipment")

    __table_args__ = (
        CheckConstraint("daily_price >= 0", name="chk_equipment_daily_price_positive"),
        Index("idx_equipment_owner", "owner_id"),
    )
