"""Reset database to empty state.

Clears all data from:
- orders
- equipment

Also clears lock keys from Redis.

Usage:
    cd backend && uv run python -m scripts.reset_db
"""

import asyncio

from sqlalchemy import text

from app.core.database import async_session_maker, engine
from app.core.redis import close_redis, get_redis


async def reset_database():
    """Clear all data from the database."""
    print("=" * 60)
    print("Resetting database to empty state...")
    print("=" * 60)

    async with async_session_maker() as session:
        # Delete in correct order due to foreign key constraints
        tables = ["orders", "equipment"]

        for table in tables:
            result = await session.execute(text(f"DELETE FROM {table}"))
            print(f"  Deleted {result.rowcount} rows from {table}")

        await session.commit()
        print("\nDatabase cleared successfully!")


async def reset_locks():
    """Remove leftover equipment and sweeper locks."""
    print("\nResetting Redis locks...")

    try:
        redis = await get_redis()
        removed = 0
        async for key in redis.scan_iter(match="lock:*"):
            removed += await redis.delete(key)
        print(f"  Removed {removed} lock keys")
    except Exception as e:
        print(f"  Warning: Could not clear Redis locks: {e}")
        print("  (This is OK if Redis is not running locally)")
    finally:
        await close_redis()


async def main():
    await reset_database()
    await reset_locks()

    print("\n" + "=" * 60)
    print("Reset complete!")
    print("=" * 60)
    print("\nTo re-seed the database, run:")
    print("  cd backend && uv run python -m scripts.seed_data")
    print("=" * 60)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
