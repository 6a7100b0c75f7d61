"""Pydantic schemas for request/response validation."""

from app.schemas.order import (
    AvailabilityResponse,
    OrderCreate,
    OrderFilter,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    PaymentCompleted,
    SweepResultResponse,
)

__all__ = [
    "OrderCreate",
    "OrderStatusUpdate",
    "OrderFilter",
    "OrderResponse",
    "OrderListResponse",
    "AvailabilityResponse",
    "PaymentCompleted",
    "SweepResultResponse",
]
