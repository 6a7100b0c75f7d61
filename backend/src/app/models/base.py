"""Audit timestamps shared by equipment and order rows."""

from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.clock import system_clock


class TimestampMixin:
    """created_at / updated_at in naive UTC.

    Services that run on an injected Clock pass both values explicitly; the
    defaults only cover rows written outside them (seed data, catalog edits).
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=system_clock.now_naive,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=system_clock.now_naive,
        server_default=func.now(),
        onupdate=system_clock.now_naive,
    )
