"""
Database seeding script for first-run setup.

Creates the tables, the default ADMIN and STAFF accounts and the default
settings. Safe to run repeatedly: existing users and settings are kept.
The API performs the same step on startup; this script is for preparing
a database before the first deploy.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from billing_backend.app.core.config import settings
from billing_backend.app.db.session import AsyncSessionLocal, Base, engine
from billing_backend.app.models.user import User
from billing_backend.app.services.bootstrap import seed_defaults
from billing_backend.app.services.settings_service import get_all_settings

# Register every table with Base
from billing_backend.app.models import activity_log, customer, message_log, setting, transaction  # noqa: F401


async def seed_database(bind: AsyncEngine = engine, session_factory: async_sessionmaker = AsyncSessionLocal) -> dict:
    """
    Create tables and seed defaults.

    Returns:
        Summary with the usernames and setting keys now present
    """
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as db:
        await seed_defaults(db)

        result = await db.execute(select(User.username).order_by(User.username))
        usernames = list(result.scalars().all())
        setting_keys = sorted(await get_all_settings(db))

    return {"users": usernames, "settings": setting_keys}


async def main():
    print(f"Seeding {settings.database_url} ...")
    summary = await seed_database()
    print(f"Users: {', '.join(summary['users'])}")
    print(f"Settings: {', '.join(summary['settings'])}")
    print(
        f"Default logins: {settings.default_admin_username}/{settings.default_admin_password} (admin), "
        f"{settings.default_staff_username}/{settings.default_staff_password} (staff). Change them after first login."
    )
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
