"""API v1 routers."""

from app.api.v1 import equipment, orders, payments

__all__ = ["equipment", "orders", "payments"]
