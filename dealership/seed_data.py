"""
Database seeding script for development.

Creates one user per role and a few vehicles on the lot, then prints a
bearer token for each user (the identity provider issues these in
production).
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from dealership.app.core.jwt import create_access_token
from dealership.app.db.session import AsyncSessionLocal, engine, Base
from dealership.app.models.enums import UserRole
from dealership.app.models.inventory_enums import VehicleStatus
from dealership.app.models.user import User
from dealership.app.models.vehicle import Vehicle
from dealership.app.models.sale import Sale
from dealership.app.models.transaction import Transaction
from dealership.app.models.test_drive import TestDrive
from dealership.app.models.audit_log import AuditLog

SEED_USERS = [
    ("admin@dealership.local", "Avery Admin", UserRole.ADMIN),
    ("sales@dealership.local", "Sam Sales", UserRole.SALES),
    ("cashier@dealership.local", "Casey Cashier", UserRole.CASHIER),
    ("customer@dealership.local", "Jordan Customer", UserRole.CUSTOMER),
]

SEED_VEHICLES = [
    dict(make="Toyota", model="Camry", year=2023, color="Silver", vin="4T1B11HK5KU000001", price=27500.0, mileage=12000),
    dict(make="Honda", model="CR-V", year=2022, color="Blue", vin="2HKRW2H85NH000002", price=29900.0, mileage=18500),
    dict(make="Ford", model="F-150", year=2021, color="Black", vin="1FTFW1E50MF000003", price=38900.0, mileage=30200),
    dict(make="Tesla", model="Model 3", year=2024, color="White", vin="5YJ3E1EA7RF000004", price=41990.0, mileage=800),
]


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")

        result = await db.execute(select(User).where(User.email == SEED_USERS[0][0]))
        if result.scalar_one_or_none():
            print("ℹ️  Seed users already exist, skipping seeding")
        else:
            for email, name, role in SEED_USERS:
                db.add(User(email=email, name=name, role=role, is_active=True))
                print(f"✅ Created {role.value} user ({email})")

            for data in SEED_VEHICLES:
                db.add(Vehicle(status=VehicleStatus.AVAILABLE, **data))
                print(f"✅ Added {data['year']} {data['make']} {data['model']}")

            await db.commit()

        print("\nDevelopment tokens:")
        result = await db.execute(select(User).order_by(User.id))
        for user in result.scalars().all():
            token = create_access_token({"sub": user.email, "user_id": user.id, "role": user.role.value})
            print(f"  - {user.role.value:<8} {token}")

    await engine.dispose()
    print("\n🎉 Seeding completed successfully!")


if __name__ == "__main__":
    asyncio.run(seed())
