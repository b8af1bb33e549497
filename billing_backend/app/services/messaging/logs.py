"""
Message log queries.
"""

from typing import List, Optional, Tuple
from sqlalchemy import select, func, case, desc
from sqlalchemy.ext.asyncio import AsyncSession

from billing_backend.app.models.enums import MessageStatus
from billing_backend.app.models.message_log import MessageLog
from billing_backend.app.models.user import User
from billing_backend.app.schemas.messaging import MessageStats


async def list_message_logs(db: AsyncSession, limit: int = 50) -> List[Tuple[MessageLog, Optional[str]]]:
    """Most recent send attempts first, each with the sender's username."""
    query = (
        select(MessageLog, User.username)
        .outerjoin(User, MessageLog.sent_by == User.id)
        .order_by(desc(MessageLog.sent_at), desc(MessageLog.id))
        .limit(limit)
    )
    result = await db.execute(query)
    return [(row[0], row[1]) for row in result.all()]


async def message_stats(db: AsyncSession) -> MessageStats:
    query = select(
        func.count(MessageLog.id),
        func.coalesce(func.sum(case((MessageLog.status == MessageStatus.SUCCESS, 1), else_=0)), 0),
        func.coalesce(func.sum(case((MessageLog.status == MessageStatus.FAILED, 1), else_=0)), 0),
    )
    result = await db.execute(query)
    total, success, failed = (int(value) for value in result.one())
    return MessageStats(total=total, success=success, failed=failed)
