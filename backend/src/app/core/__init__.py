from app.core.clock import Clock, system_clock
from app.core.config import settings
from app.core.database import Base, async_session_maker, engine, get_db
from app.core.redis import close_redis, get_redis
from app.core.security import create_access_token, decode_access_token

__all__ = [
    "settings",
    "Base",
    "engine",
    "async_session_maker",
    "get_db",
    "get_redis",
    "close_redis",
    "Clock",
    "system_clock",
    "create_access_token",
    "decode_access_token",
]
