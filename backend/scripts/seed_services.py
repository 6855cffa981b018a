"""
Seed the laundry service catalog.

Skips seeding when any service already exists.

Run from the backend/ directory:
    python scripts/seed_services.py
"""
import asyncio
import os
import sys

# Add backend/ to path so we can import config and models
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select, func

from database import async_session, init_db
from db_models import Service

SERVICES = [
    {
        "name": "Regular Wash",
        "base_price": 15000,
        "unit": "kg",
        "description": "Standard washing service for everyday clothes",
    },
    {
        "name": "Dry Clean",
        "base_price": 25000,
        "unit": "piece",
        "description": "Professional dry cleaning for delicate fabrics",
    },
    {
        "name": "Express Wash",
        "base_price": 20000,
        "unit": "kg",
        "description": "Fast washing service (same day)",
    },
    {
        "name": "Ironing Only",
        "base_price": 5000,
        "unit": "piece",
        "description": "Ironing service only",
    },
]


async def seed():
    os.makedirs("data", exist_ok=True)
    await init_db()

    async with async_session() as db:
        existing = (await db.execute(select(func.count(Service.id)))).scalar_one()
        if existing:
            print(f"✅ {existing} service(s) already exist. Nothing to do.")
            return

        print("🔧 Seeding services...")
        for data in SERVICES:
            db.add(Service(active=True, **data))
            print(f"   + {data['name']} (Rp {data['base_price']}/{data['unit']})")
        await db.commit()

    print("✅ Services seeded successfully!")


if __name__ == "__main__":
    asyncio.run(seed())
