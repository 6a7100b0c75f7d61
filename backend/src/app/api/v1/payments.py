"""Payment collaborator callback."""

from fastapi import APIRouter

from app.api.deps import OrderServiceDep, PaymentCallbackAuth
from app.api.errors import to_http_exception
from app.schemas.order import OrderResponse, PaymentCompleted
from app.services.exceptions import OrderError

router = APIRouter()


@router.post("/callback", response_model=OrderResponse, dependencies=[PaymentCallbackAuth])
async def payment_completed(
    payment: PaymentCompleted,
    service: OrderServiceDep,
):
    """Payment completed for an accepted order: start the rental.

    Safe to deliver more than once.
    """
    try:
        order = await service.mark_paid(payment.order_id)
    except OrderError as e:
        raise to_http_exception(e)

    return OrderResponse.model_validate(order)
