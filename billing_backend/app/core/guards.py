"""
Security guards for role-based access control.

Provides dependencies for protecting endpoints.
"""

from fastapi import Depends
from billing_backend.app.core.dependencies import get_current_user
from billing_backend.app.models.enums import UserRole
from billing_backend.app.schemas.auth import Principal
from billing_backend.app.services.auth_service import require_role as check_role


def require_role(role: UserRole):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/users")
        async def list_users(current_user: Principal = Depends(require_role(UserRole.ADMIN))):
            ...

    Raises:
        AuthorizationError 403 if the user's role does not match
    """
    async def role_checker(current_user: Principal = Depends(get_current_user)) -> Principal:
        return check_role(current_user, role)

    return role_checker


# Dependency for admin-only endpoints (user management, settings writes,
# backup/restore, activity log)
require_admin = require_role(UserRole.ADMIN)
