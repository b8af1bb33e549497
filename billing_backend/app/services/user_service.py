"""
User management service (admin operations).
"""

from typing import List
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from billing_backend.app.core.exceptions import ConflictError, NotFoundError, ValidationError
from billing_backend.app.core.security import get_password_hash
from billing_backend.app.models.user import User
from billing_backend.app.schemas.user import UserCreate, UserUpdate
from billing_backend.app.services.audit import AuditAction, log_activity


async def list_users(db: AsyncSession) -> List[User]:
    result = await db.execute(select(User).order_by(User.role, User.full_name))
    return list(result.scalars().all())


async def get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise NotFoundError("User", user_id)

    return user


async def get_user_by_username(db: AsyncSession, username: str):
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, data: UserCreate, actor_id: int = None) -> User:
    """Create a user. Usernames are unique."""
    if await get_user_by_username(db, data.username):
        raise ConflictError("Username already taken", {"username": data.username})

    user = User(
        username=data.username,
        password_hash=get_password_hash(data.password),
        full_name=data.full_name,
        role=data.role,
        is_active=True
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race with a concurrent create of the same username
        await db.rollback()
        raise ConflictError("Username already taken", {"username": data.username})

    await log_activity(db, actor_id, AuditAction.CREATE_USER, f"Created user: {data.username}")
    await db.commit()
    await db.refresh(user)

    return user


async def update_user(db: AsyncSession, user_id: int, data: UserUpdate, actor_id: int = None) -> User:
    """Update profile, role and active flag; the password only when supplied."""
    user = await get_user(db, user_id)

    user.full_name = data.full_name
    user.role = data.role
    user.is_active = data.is_active
    if data.password:
        user.password_hash = get_password_hash(data.password)

    await log_activity(db, actor_id, AuditAction.UPDATE_USER, f"Updated user: {user.username}")
    await db.commit()
    await db.refresh(user)

    return user


async def delete_user(db: AsyncSession, user_id: int, actor_id: int = None) -> None:
    """Hard-delete a user. An admin cannot delete their own account."""
    if actor_id is not None and user_id == actor_id:
        raise ValidationError("You cannot delete your own account")

    user = await get_user(db, user_id)
    username = user.username

    await db.delete(user)
    await db.flush()

    await log_activity(db, actor_id, AuditAction.DELETE_USER, f"Deleted user: {username}")
    await db.commit()
