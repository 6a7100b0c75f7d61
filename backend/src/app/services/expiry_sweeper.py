"""Expiry sweeper: completes in-progress rentals whose end date has passed."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.clock import Clock, system_clock
from app.core.config import settings
from app.middleware.metrics import record_sweep
from app.models.enums import OrderStatus
from app.services.exceptions import OrderError
from app.services.lock_service import SWEEPER_LOCK_KEY, LockService
from app.services.order_service import OrderService
from app.services.order_state_machine import Actor

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Outcome of one sweep."""

    skipped: bool = False
    scanned: int = 0
    completed: int = 0
    noop: int = 0
    failed_order_ids: list[UUID] = field(default_factory=list)
    aborted: bool = False

    @property
    def failed(self) -> int:
        return len(self.failed_order_ids)

    @property
    def outcome(self) -> str:
        if self.skipped:
            return "skipped"
        if self.aborted:
            return "aborted"
        return "completed"


class ExpirySweeper:
    """Periodic scan-and-complete pass over in-progress orders.

    Each order is completed in its own session through OrderService, so one
    bad record never rolls back the others and overlapping runs only ever see
    already-completed orders as no-ops.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        lock_service: LockService,
        clock: Clock = system_clock,
        interval_seconds: float = settings.SWEEPER_INTERVAL_SECONDS,
        max_run_seconds: int = settings.SWEEPER_MAX_RUN_SECONDS,
    ):
        self.session_factory = session_factory
        self.lock_service = lock_service
        self.clock = clock
        self.interval_seconds = interval_seconds
        self.max_run_seconds = max_run_seconds

    def _order_service(self, db: AsyncSession) -> OrderService:
        return OrderService(db, self.lock_service, clock=self.clock)

    async def run_once(self) -> SweepResult:
        """Run one sweep.

        Returns:
            SweepResult; ``skipped`` is set when another sweep holds the lock
        """
        started = time.monotonic()
        result = SweepResult()

        owner_id = await self.lock_service.acquire(SWEEPER_LOCK_KEY, ttl=self.max_run_seconds)
        if owner_id is None:
            logger.info("Another sweep is running, skipping this one")
            result.skipped = True
            record_sweep(result.outcome, 0, 0, 0, time.monotonic() - started)
            return result

        try:
            async with self.session_factory() as db:
                order_ids = await self._order_service(db).find_expired_order_ids()
            result.scanned = len(order_ids)
            if order_ids:
                logger.info(f"Found {len(order_ids)} expired in-progress orders")

            for order_id in order_ids:
                if time.monotonic() - started > self.max_run_seconds:
                    logger.warning(
                        f"Sweep exceeded {self.max_run_seconds}s, leaving "
                        f"{result.scanned - result.completed - result.noop - result.failed} "
                        f"orders for the next run"
                    )
                    result.aborted = True
                    break
                await self._complete_one(order_id, result)
        finally:
            await self.lock_service.release(SWEEPER_LOCK_KEY, owner_id)

        duration = time.monotonic() - started
        record_sweep(result.outcome, result.completed, result.noop, result.failed, duration)
        logger.info(
            f"Sweep finished in {duration:.2f}s. Scanned: {result.scanned}, "
            f"Completed: {result.completed}, No-op: {result.noop}, Failed: {result.failed}"
        )
        return result

    async def _complete_one(self, order_id: UUID, result: SweepResult) -> None:
        try:
            async with self.session_factory() as db:
                outcome = await self._order_service(db).transition(
                    order_id, OrderStatus.COMPLETED, Actor.system()
                )
        except OrderError as e:
            logger.error(f"Could not complete order {order_id}: [{e.code}] {e.message}")
            result.failed_order_ids.append(order_id)
            return
        except Exception:
            logger.error(f"Unexpected error completing order {order_id}", exc_info=True)
            result.failed_order_ids.append(order_id)
            return

        if outcome.changed:
            result.completed += 1
        else:
            result.noop += 1

    async def run_forever(self) -> None:
        """Sweep every ``interval_seconds`` until cancelled."""
        logger.info(f"Expiry sweeper started, interval {self.interval_seconds}s")
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                logger.info("Expiry sweeper cancelled")
                raise
            except Exception:
                logger.error("Error in expiry sweeper loop", exc_info=True)

            try:
                await asyncio.sleep(self.interval_seconds)
            except asyncio.CancelledError:
                logger.info("Expiry sweeper cancelled")
                raise
