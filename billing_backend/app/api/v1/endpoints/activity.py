"""
Activity log endpoint (admin only).
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from billing_backend.app.db.session import get_db
from billing_backend.app.core.guards import require_admin
from billing_backend.app.schemas.activity import ActivityLogResponse
from billing_backend.app.schemas.auth import Principal
from billing_backend.app.schemas.common import ApiResponse
from billing_backend.app.services.audit import get_activity_logs

router = APIRouter(prefix="/activity-logs", tags=["Activity Logs"])


@router.get("", response_model=ApiResponse[List[ActivityLogResponse]])
async def list_activity_logs(
    action: Optional[str] = Query(None, description="Filter by action, e.g. LOGIN"),
    user_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    rows = await get_activity_logs(db, action=action, user_id=user_id, limit=limit)
    logs = []
    for entry, username in rows:
        item = ActivityLogResponse.model_validate(entry)
        item.username = username
        logs.append(item)
    return ApiResponse(data=logs)
