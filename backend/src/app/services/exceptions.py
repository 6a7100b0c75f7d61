"""Domain errors raised by the order subsystem.

Each error carries a stable ``code`` that the API layer returns unchanged so
clients can tell "dates unavailable" apart from "not permitted".
"""

from uuid import UUID

from app.models.enums import OrderStatus


class OrderError(Exception):
    """Base class for order lifecycle errors."""

    code = "ORDER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(OrderError):
    """Raised when an order or equipment id is unknown."""

    code = "NOT_FOUND"


class ForbiddenError(OrderError):
    """Raised when the actor may not perform the requested action."""

    code = "FORBIDDEN"


class InvalidDateRangeError(OrderError):
    """Raised when start/end dates are malformed or in the past."""

    code = "INVALID_DATE_RANGE"


class NotAvailableError(OrderError):
    """Raised when the equipment cannot be booked at all."""

    code = "NOT_AVAILABLE"


class ConflictError(OrderError):
    """Raised when the requested dates overlap a blocking order."""

    code = "CONFLICT"

    def __init__(self, message: str, conflicting_order_id: UUID | None = None):
        super().__init__(message)
        self.conflicting_order_id = conflicting_order_id


class InvalidTransitionError(OrderError):
    """Raised when a status change is not a legal edge."""

    code = "INVALID_TRANSITION"

    def __init__(
        self,
        from_status: OrderStatus,
        to_status: OrderStatus,
        message: str | None = None,
    ):
        super().__init__(
            message
            or f"Invalid status transition from {from_status.value} to {to_status.value}"
        )
        self.from_status = from_status
        self.to_status = to_status
