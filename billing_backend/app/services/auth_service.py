"""
Credential & session service.

Login, token validation and role checks. Validation always re-reads the
user row so deactivation takes effect on the next request, without a
revocation list.
"""

import logging
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from billing_backend.app.core.exceptions import (
    AccountDisabledError,
    AuthorizationError,
    InvalidCredentialsError,
    PrincipalInactiveError,
    TokenInvalidError,
)
from billing_backend.app.core.jwt import create_access_token, decode_access_token
from billing_backend.app.core.security import verify_password
from billing_backend.app.models.enums import UserRole
from billing_backend.app.models.user import User
from billing_backend.app.schemas.auth import LoginData, Principal
from billing_backend.app.services.audit import AuditAction, log_activity

logger = logging.getLogger("billing.auth")


async def authenticate(
    db: AsyncSession,
    username: str,
    password: str,
    ip_address: Optional[str] = None
) -> LoginData:
    """
    Verify credentials and issue a 24-hour session token.

    Raises:
        InvalidCredentialsError: unknown username or wrong password
        AccountDisabledError: correct credentials on a deactivated account
    """
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()

    if not user or not verify_password(password, user.password_hash):
        logger.info("Rejected login for '%s'", username)
        raise InvalidCredentialsError()

    if not user.is_active:
        logger.info("Rejected login for disabled account '%s'", username)
        raise AccountDisabledError()

    token = create_access_token(data={
        "sub": user.username,
        "user_id": user.id,
        "role": user.role.value,
    })

    await log_activity(db, user.id, AuditAction.LOGIN, "User logged in", ip_address)
    await db.commit()

    return LoginData(token=token, user=Principal.model_validate(user))


async def validate_token(db: AsyncSession, token: str) -> Principal:
    """
    Resolve a bearer token to the live principal.

    Raises:
        TokenInvalidError: malformed, bad signature or missing user_id claim
        TokenExpiredError: validity window elapsed
        PrincipalInactiveError: user deleted or deactivated since issuance
    """
    payload = decode_access_token(token)

    user_id = payload.get("user_id")
    if not isinstance(user_id, int):
        raise TokenInvalidError("Invalid token payload")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        raise PrincipalInactiveError()

    return Principal.model_validate(user)


def require_role(principal: Principal, role: UserRole) -> Principal:
    """Raise AuthorizationError unless the principal holds exactly `role`."""
    if principal.role != role:
        raise AuthorizationError(f"Access denied. Required role: {role.value}")
    return principal
