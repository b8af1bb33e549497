"""
First-run bootstrap: default accounts and settings.
"""

import logging
from sqlalchemy.ext.asyncio import AsyncSession

from billing_backend.app.core.config import settings
from billing_backend.app.core.security import get_password_hash
from billing_backend.app.models.enums import UserRole
from billing_backend.app.models.user import User
from billing_backend.app.services.settings_service import ensure_defaults
from billing_backend.app.services.user_service import get_user_by_username

logger = logging.getLogger("billing.bootstrap")


async def seed_defaults(db: AsyncSession) -> None:
    """
    Create the default admin and staff accounts if their usernames are free,
    then insert any missing default settings.
    """
    seeds = [
        (settings.default_admin_username, settings.default_admin_password,
         settings.default_admin_full_name, UserRole.ADMIN),
        (settings.default_staff_username, settings.default_staff_password,
         settings.default_staff_full_name, UserRole.STAFF),
    ]

    for username, password, full_name, role in seeds:
        if await get_user_by_username(db, username):
            continue
        db.add(User(
            username=username,
            password_hash=get_password_hash(password),
            full_name=full_name,
            role=role,
            is_active=True
        ))
        logger.info("Created default %s user '%s'", role.value, username)

    await db.commit()
    await ensure_defaults(db)
