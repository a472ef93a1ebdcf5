"""
Database seeding script for a fresh office database.

Creates the default settings (company profile, GR and bill numbering) and
an OWNER plus a STAFF login for development.
Run this script after database is set up but before first use.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.app.db.session import AsyncSessionLocal, engine, Base
from backend.app.models.user import User
from backend.app.models.enums import UserRole
from backend.app.core.security import get_password_hash
from backend.app.services.settings_service import SettingsService
from sqlalchemy import select

# Import models to ensure they are registered with Base
from backend.app.models.audit_log import AuditLog
from backend.app.models.setting import SystemSetting
from backend.app.models.party import Party
from backend.app.models.vehicle import Vehicle, VehicleDocument, VehicleIncident
from backend.app.models.consignment import Consignment, ConsignmentLog
from backend.app.models.bill import Bill
from backend.app.models.payment import Payment, VehiclePayment
from backend.app.models.ledger_entry import LedgerEntry
from backend.app.models.notification import Notification

SEED_USERS = [
    ("owner@raghhavroadways.com", "Office Owner", "owner123", UserRole.OWNER),
    ("staff@raghhavroadways.com", "Booking Clerk", "staff123", UserRole.STAFF),
]


async def seed_users():
    """
    Seed settings and initial users.

    Existing settings and users are left untouched, so the script can be
    re-run safely.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")

        created = await SettingsService.seed_defaults(db)
        print(f"✅ {created} default setting(s) written")

        for email, name, password, role in SEED_USERS:
            result = await db.execute(select(User).where(User.email == email))
            if result.scalar_one_or_none():
                print(f"ℹ️  {role.value} user {email} already exists, skipping")
                continue

            db.add(User(
                email=email,
                name=name,
                hashed_password=get_password_hash(password),
                role=role,
                is_active=True,
            ))
            print(f"✅ Created {role.value} user ({email} / {password})")

        await db.commit()

    await engine.dispose()
    print("\n🎉 Seeding completed successfully!")
    print("\nNote: further users are added by an OWNER via POST /v1/auth/users")


if __name__ == "__main__":
    asyncio.run(seed_users())
