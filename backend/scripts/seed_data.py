"""Seed data script for development and testing.

Creates:
- 1 provider owning EQUIPMENT_COUNT pieces of equipment (all available)
- bearer tokens for the provider, a renter and an admin

Environment Variables:
    EQUIPMENT_COUNT: Number of equipment rows to create (default: 5)
    RESET_DATA: Set to "true" to clear orders/equipment before seeding (default: false)

Usage:
    uv run python -m scripts.seed_data

    RESET_DATA=true EQUIPMENT_COUNT=20 uv run python -m scripts.seed_data
"""

import asyncio
import os
import uuid
from decimal import Decimal

# Configuration from environment variables
EQUIPMENT_COUNT = int(os.getenv("EQUIPMENT_COUNT", "5"))
RESET_DATA = os.getenv("RESET_DATA", "false").lower() == "true"

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import async_session_maker, engine
from app.core.security import create_access_token
from app.models import Equipment, EquipmentStatus

# Fixed identities so tokens stay valid across re-seeds
PROVIDER_ID = uuid.UUID("00000000-0000-0000-0000-00000000a001")
RENTER_ID = uuid.UUID("00000000-0000-0000-0000-00000000b001")
ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-00000000c001")

EQUIPMENT_NAMES = [
    "Camping Tent 4P",
    "Mountain Bike",
    "Power Drill",
    "Kayak",
    "DSLR Camera",
    "Projector",
    "Pressure Washer",
    "Ladder 6m",
]


async def reset_rental_data(session: AsyncSession) -> None:
    """Clear orders and equipment."""
    print("Resetting rental data...")
    await session.execute(text("DELETE FROM orders"))
    await session.execute(text("DELETE FROM equipment"))
    await session.commit()
    print("  Cleared orders, equipment")


async def seed_equipment(session: AsyncSession) -> list[Equipment]:
    """Create EQUIPMENT_COUNT available equipment rows owned by the provider."""
    print("Seeding equipment...")

    result = await session.execute(select(Equipment).limit(1))
    if result.scalar_one_or_none():
        print("  Equipment already exists, skipping...")
        result = await session.execute(select(Equipment))
        return list(result.scalars().all())

    equipment = []
    for i in range(EQUIPMENT_COUNT):
        name = EQUIPMENT_NAMES[i % len(EQUIPMENT_NAMES)]
        if i >= len(EQUIPMENT_NAMES):
            name = f"{name} #{i // len(EQUIPMENT_NAMES) + 1}"
        equipment.append(
            Equipment(
                owner_id=PROVIDER_ID,
                name=name,
                daily_price=Decimal(25 + 5 * i),
                status=EquipmentStatus.AVAILABLE,
            )
        )

    session.add_all(equipment)
    await session.commit()

    for item in equipment:
        await session.refresh(item)

    print(f"  Created {len(equipment)} equipment rows")
    return equipment


async def main():
    """Main seed function."""
    print("=" * 60)
    print("Equipment Rental Orders - Seed Data Script")
    print("=" * 60)
    print(f"  RESET_DATA: {RESET_DATA}")
    print(f"  EQUIPMENT_COUNT: {EQUIPMENT_COUNT}")
    print("=" * 60)

    async with async_session_maker() as session:
        if RESET_DATA:
            await reset_rental_data(session)
        equipment = await seed_equipment(session)

    print("=" * 60)
    print("Seed data complete!")
    for item in equipment:
        print(f"  {item.equipment_id}  {item.name}  ({item.daily_price}/day)")
    print("")
    print("Bearer tokens (valid 24h):")
    print(f"  provider: {create_access_token(str(PROVIDER_ID), expires_minutes=1440)}")
    print(f"  renter:   {create_access_token(str(RENTER_ID), expires_minutes=1440)}")
    print(f"  admin:    {create_access_token(str(ADMIN_ID), is_admin=True, expires_minutes=1440)}")
    print("=" * 60)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
