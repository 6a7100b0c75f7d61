"""Translate order domain errors into HTTP responses."""

from fastapi import HTTPException, status

from app.middleware.metrics import record_order_error
from app.services.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidDateRangeError,
    InvalidTransitionError,
    NotAvailableError,
    NotFoundError,
    OrderError,
)

ERROR_STATUS_CODES: dict[type[OrderError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    InvalidDateRangeError: status.HTTP_400_BAD_REQUEST,
    NotAvailableError: status.HTTP_409_CONFLICT,
    ConflictError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
}


def to_http_exception(exc: OrderError) -> HTTPException:
    """Build the HTTPException for ``exc`` with a stable ``code``."""
    record_order_error(exc.code)

    detail: dict = {"code": exc.code, "message": exc.message}
    if isinstance(exc, ConflictError) and exc.conflicting_order_id is not None:
        detail["conflicting_order_id"] = str(exc.conflicting_order_id)
    if isinstance(exc, InvalidTransitionError):
        detail["from_status"] = exc.from_status.value
        detail["to_status"] = exc.to_status.value

    return HTTPException(
        status_code=ERROR_STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST),
        detail=detail,
    )
