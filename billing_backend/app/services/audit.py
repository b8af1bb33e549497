"""
Audit logging service for tracking significant user actions.

Entries are added to the caller's session and flushed, never committed
here: the caller commits them together with the mutation they describe.
"""

from typing import Optional, List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from billing_backend.app.models.activity_log import ActivityLog
from billing_backend.app.models.user import User


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    LOGIN = "LOGIN"

    CREATE_USER = "CREATE_USER"
    UPDATE_USER = "UPDATE_USER"
    DELETE_USER = "DELETE_USER"

    CREATE_CUSTOMER = "CREATE_CUSTOMER"
    UPDATE_CUSTOMER = "UPDATE_CUSTOMER"
    DELETE_CUSTOMER = "DELETE_CUSTOMER"

    CREATE_TRANSACTION = "CREATE_TRANSACTION"
    PAYMENT = "PAYMENT"
    DELETE_TRANSACTION = "DELETE_TRANSACTION"

    UPDATE_SETTING = "UPDATE_SETTING"
    RESTORE_DATA = "RESTORE_DATA"

    START_MESSAGING = "START_MESSAGING"
    STOP_MESSAGING = "STOP_MESSAGING"
    SEND_MESSAGE = "SEND_MESSAGE"
    BROADCAST_MESSAGE = "BROADCAST_MESSAGE"


async def log_activity(
    db: AsyncSession,
    user_id: Optional[int],
    action: str,
    details: str = "",
    ip_address: Optional[str] = None
) -> Optional[ActivityLog]:
    """
    Record an action in the activity log.

    Args:
        db: Database session (caller commits)
        user_id: Acting user; None for internal/system calls, which are not logged
        action: Action being performed (use AuditAction constants)
        details: Human-readable description
        ip_address: Origin address of the request, when known

    Returns:
        Created ActivityLog instance, or None if nothing was logged
    """
    if user_id is None:
        return None

    entry = ActivityLog(
        user_id=user_id,
        action=action,
        details=details,
        ip_address=ip_address
    )
    db.add(entry)
    await db.flush()

    return entry


async def get_activity_logs(
    db: AsyncSession,
    action: Optional[str] = None,
    user_id: Optional[int] = None,
    limit: int = 100
) -> List[Tuple[ActivityLog, Optional[str]]]:
    """
    Retrieve the activity trail with the actor's username, most recent first.

    Args:
        db: Database session
        action: Filter by action type
        user_id: Filter by acting user
        limit: Maximum number of records to return
    """
    query = (
        select(ActivityLog, User.username)
        .outerjoin(User, ActivityLog.user_id == User.id)
        .order_by(desc(ActivityLog.created_at), desc(ActivityLog.id))
    )

    if action:
        query = query.where(ActivityLog.action == action)

    if user_id:
        query = query.where(ActivityLog.user_id == user_id)

    result = await db.execute(query.limit(limit))
    return [(row[0], row[1]) for row in result.all()]
