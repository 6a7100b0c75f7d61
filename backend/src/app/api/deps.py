"""API dependencies for actor resolution, database access and services."""

import hmac
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.config import settings
from app.core.database import async_session_maker, get_db
from app.core.redis import get_redis
from app.core.security import decode_access_token
from app.services.expiry_sweeper import ExpirySweeper
from app.services.lock_service import LocalLockService, LockService, RedisLockService
from app.services.order_service import OrderService
from app.services.order_state_machine import Actor

security = HTTPBearer()

# Shared by every request in this process when LOCK_BACKEND == "local"
_local_lock_service = LocalLockService()


async def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> Actor:
    """Resolve the calling actor from a bearer JWT.

    Raises:
        HTTPException: If token is invalid or carries no usable subject
    """
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    subject = payload.get("sub")
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        actor_id = UUID(subject)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID in token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Actor(actor_id=actor_id, is_admin=bool(payload.get("is_admin", False)))


async def get_current_admin(
    actor: Annotated[Actor, Depends(get_current_actor)],
) -> Actor:
    """Get current actor and verify they are an admin."""
    if not actor.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return actor


async def verify_payment_callback(
    x_payment_secret: Annotated[str | None, Header()] = None,
) -> None:
    """Only the payment collaborator knows the callback secret."""
    if x_payment_secret is None or not hmac.compare_digest(
        x_payment_secret.encode(), settings.PAYMENT_CALLBACK_SECRET.encode()
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid payment callback credentials",
        )


async def get_lock_service() -> LockService:
    """Lock backend selected by LOCK_BACKEND."""
    if settings.LOCK_BACKEND == "local":
        return _local_lock_service
    redis = await get_redis()
    return RedisLockService(redis, retry_interval=settings.LOCK_RETRY_INTERVAL_SECONDS)


async def get_clock() -> Clock:
    return system_clock


async def get_order_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    lock_service: Annotated[LockService, Depends(get_lock_service)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> OrderService:
    """Get OrderService instance with injected dependencies."""
    return OrderService(db, lock_service, clock=clock)


async def get_expiry_sweeper(
    lock_service: Annotated[LockService, Depends(get_lock_service)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> ExpirySweeper:
    return ExpirySweeper(async_session_maker, lock_service, clock=clock)


# Type aliases for cleaner dependency injection
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
AdminActor = Annotated[Actor, Depends(get_current_admin)]
OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
ExpirySweeperDep = Annotated[ExpirySweeper, Depends(get_expiry_sweeper)]
PaymentCallbackAuth = Depends(verify_payment_callback)
