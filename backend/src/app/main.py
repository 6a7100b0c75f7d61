import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.deps import get_lock_service
from app.api.v1 import equipment, orders, payments
from app.core.config import settings
from app.core.database import async_session_maker
from app.core.redis import close_redis
from app.middleware.metrics import PrometheusMiddleware, metrics_endpoint
from app.services.expiry_sweeper import ExpirySweeper

logger = logging.getLogger(__name__)

# Background task control
_sweeper_task: asyncio.Task | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    global _sweeper_task

    # Startup
    logger.info("Starting application...")

    if settings.SWEEPER_ENABLED:
        logger.info("Starting expiry sweeper...")
        sweeper = ExpirySweeper(async_session_maker, await get_lock_service())
        _sweeper_task = asyncio.create_task(sweeper.run_forever())

    yield

    # Shutdown
    logger.info("Stopping background tasks")

    if _sweeper_task:
        _sweeper_task.cancel()
        try:
            await _sweeper_task
        except asyncio.CancelledError:
            pass
        _sweeper_task = None

    await close_redis()


app = FastAPI(
    title="Equipment Rental Orders",
    version="1.0.0",
    description="Rental order lifecycle: booking, approval, payment and expiry",
    lifespan=lifespan,
)

# Prometheus Metrics Middleware (must be first to capture all requests)
app.add_middleware(PrometheusMiddleware)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include API routers
app.include_router(orders.router, prefix="/api/v1/orders", tags=["orders"])
app.include_router(equipment.router, prefix="/api/v1/equipment", tags=["equipment"])
app.include_router(payments.router, prefix="/api/v1/payments", tags=["payments"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# Prometheus metrics endpoint
app.add_route("/metrics", metrics_endpoint)
