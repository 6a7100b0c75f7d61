"""Rental order API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from app.api.deps import AdminActor, CurrentActor, ExpirySweeperDep, OrderServiceDep
from app.api.errors import to_http_exception
from app.models.enums import OrderStatus
from app.schemas.order import (
    OrderCreate,
    OrderFilter,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    SweepResultResponse,
)
from app.services.exceptions import OrderError

router = APIRouter()


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    actor: CurrentActor,
    service: OrderServiceDep,
):
    """Request a rental; the caller becomes the renter."""
    try:
        order = await service.create_order(
            equipment_id=order_data.equipment_id,
            renter_id=actor.actor_id,
            start_date=order_data.start_date,
            end_date=order_data.end_date,
        )
    except OrderError as e:
        raise to_http_exception(e)

    return OrderResponse.model_validate(order)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    actor: CurrentActor,
    service: OrderServiceDep,
    filters: Annotated[OrderFilter, Query()],
):
    """List orders the caller rents or provides (all orders for admins)."""
    page = await service.list_orders(filters, actor)

    return OrderListResponse(
        items=[OrderResponse.model_validate(o) for o in page.items],
        total_count=page.total_count,
        page_number=page.page_number,
        page_size=page.page_size,
        total_pages=page.total_pages,
    )


@router.post("/sweep", response_model=SweepResultResponse)
async def run_sweep(
    admin: AdminActor,
    sweeper: ExpirySweeperDep,
):
    """Run one expiry sweep now (admin only)."""
    result = await sweeper.run_once()

    return SweepResultResponse(
        skipped=result.skipped,
        scanned=result.scanned,
        completed=result.completed,
        noop=result.noop,
        failed=result.failed,
        failed_order_ids=result.failed_order_ids,
        aborted=result.aborted,
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    actor: CurrentActor,
    service: OrderServiceDep,
):
    """Get an order as its renter, its provider or an admin."""
    try:
        order = await service.get_order(order_id, actor)
    except OrderError as e:
        raise to_http_exception(e)

    return OrderResponse.model_validate(order)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: UUID,
    status_data: OrderStatusUpdate,
    actor: CurrentActor,
    service: OrderServiceDep,
):
    """Accept, reject or cancel an order.

    Providers accept or reject pending requests; renters cancel their own
    pending or accepted orders.
    """
    try:
        order = await service.update_status(order_id, status_data.status, actor)
    except OrderError as e:
        raise to_http_exception(e)

    return OrderResponse.model_validate(order)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: UUID,
    actor: CurrentActor,
    service: OrderServiceDep,
):
    """Cancel an order (renter)."""
    try:
        order = await service.update_status(order_id, OrderStatus.CANCELLED, actor)
    except OrderError as e:
        raise to_http_exception(e)

    return OrderResponse.model_validate(order)
