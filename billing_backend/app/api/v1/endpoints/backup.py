"""
Backup and restore endpoints (admin only).
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from billing_backend.app.db.session import get_db
from billing_backend.app.core.dependencies import get_client_ip, get_event_broker
from billing_backend.app.core.guards import require_admin
from billing_backend.app.schemas.auth import Principal
from billing_backend.app.schemas.backup import BackupExport, RestoreRequest, RestoreResult
from billing_backend.app.schemas.common import ApiResponse
from billing_backend.app.services import backup_service
from billing_backend.app.services.events import EventBroker, EventType

router = APIRouter(tags=["Backup"])


@router.get("/backup", response_model=BackupExport)
async def export_backup(
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Full export of customers, transactions, settings and users.

    Returned as the bare document (no envelope) so it can be saved and
    posted back to /restore. User passwords are never exported.
    """
    return await backup_service.export_backup(db, exported_by=admin.username)


@router.post("/restore", response_model=ApiResponse[RestoreResult])
async def restore_backup(
    payload: RestoreRequest,
    request: Request,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    broker: EventBroker = Depends(get_event_broker)
):
    """
    Restore customers (as new records) and settings from a backup.

    Users and transactions in the document are ignored.
    """
    result = await backup_service.restore_backup(db, payload, actor_id=admin.id, ip_address=get_client_ip(request))

    broker.publish(EventType.DATA_RESTORED)
    return ApiResponse(message="Data restored", data=result)
