"""Order schemas for request/response validation."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.core.config import settings
from app.models.enums import EquipmentStatus, OrderStatus

OrderSortField = Literal["created_at", "start_date", "end_date", "total_amount", "status"]


class OrderCreate(BaseModel):
    """Schema for a rental request."""

    equipment_id: UUID
    start_date: date
    end_date: date


class OrderStatusUpdate(BaseModel):
    """Schema for a status change request."""

    status: OrderStatus


class OrderFilter(BaseModel):
    """List filters, sorting and paging for orders."""

    status: OrderStatus | None = None
    equipment_id: UUID | None = None
    start_date_from: date | None = None
    start_date_to: date | None = None
    end_date_from: date | None = None
    end_date_to: date | None = None
    min_total_amount: Decimal | None = Field(default=None, ge=0)
    max_total_amount: Decimal | None = Field(default=None, ge=0)
    sort_by: OrderSortField | None = None
    ascending: bool = False
    page_number: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, le=settings.ORDER_PAGE_SIZE_MAX)

    @model_validator(mode="after")
    def check_amount_range(self) -> "OrderFilter":
        if (
            self.min_total_amount is not None
            and self.max_total_amount is not None
            and self.min_total_amount > self.max_total_amount
        ):
            raise ValueError("min_total_amount must not exceed max_total_amount")
        return self


class OrderResponse(BaseModel):
    """Schema for order response."""

    order_id: UUID
    equipment_id: UUID
    renter_id: UUID
    provider_id: UUID
    start_date: date
    end_date: date
    total_amount: Decimal
    status: OrderStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OrderListResponse(BaseModel):
    """Schema for a page of orders."""

    items: list[OrderResponse]
    total_count: int
    page_number: int
    page_size: int
    total_pages: int


class AvailabilityResponse(BaseModel):
    """Schema for an equipment availability check."""

    equipment_id: UUID
    start_date: date
    end_date: date
    available: bool
    conflicting_order_id: UUID | None = None
    equipment_status: EquipmentStatus | None = None


class PaymentCompleted(BaseModel):
    """Payment collaborator completion callback body."""

    order_id: UUID


class SweepResultResponse(BaseModel):
    """Schema for one expiry sweep."""

    skipped: bool
    scanned: int
    completed: int
    noop: int
    failed: int
    failed_order_ids: list[UUID]
    aborted: bool
