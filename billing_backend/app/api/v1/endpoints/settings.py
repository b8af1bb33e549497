"""
Application settings endpoints.

Any signed-in user can read settings (prices, business details);
only admins can change them.
"""

from typing import Dict, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from billing_backend.app.db.session import get_db
from billing_backend.app.core.dependencies import get_current_user, get_event_broker
from billing_backend.app.core.guards import require_admin
from billing_backend.app.schemas.auth import Principal
from billing_backend.app.schemas.common import ApiResponse
from billing_backend.app.schemas.setting import SettingUpdate
from billing_backend.app.services import settings_service
from billing_backend.app.services.events import EventBroker, EventType

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=ApiResponse[Dict[str, Optional[str]]])
async def get_settings(
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return ApiResponse(data=await settings_service.get_all_settings(db))


@router.post("", response_model=ApiResponse[Dict[str, Optional[str]]])
async def update_setting(
    data: SettingUpdate,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    broker: EventBroker = Depends(get_event_broker)
):
    """Insert or overwrite one setting; the value is stored as text."""
    value = await settings_service.set_setting(db, data.key, data.value, actor_id=admin.id)

    broker.publish(EventType.SETTINGS_UPDATED, {"key": data.key, "value": value})
    return ApiResponse(message="Setting saved", data={data.key: value})
