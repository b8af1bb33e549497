"""
Settings service: a flat key/value store with upsert semantics.
"""

from typing import Dict, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from billing_backend.app.models.setting import Setting
from billing_backend.app.services.audit import AuditAction, log_activity

DEFAULT_SETTINGS = {
    "price_internet": "150000",
    "price_gas": "22000",
    "app_name": "PPPoE Billing Pro",
    "business_address": "-",
}


async def get_all_settings(db: AsyncSession) -> Dict[str, Optional[str]]:
    result = await db.execute(select(Setting).order_by(Setting.key))
    return {row.key: row.value for row in result.scalars().all()}


async def _upsert(db: AsyncSession, key: str, value: Optional[str]) -> None:
    setting = await db.get(Setting, key)
    if setting is None:
        db.add(Setting(key=key, value=value))
    else:
        setting.value = value
    await db.flush()


async def set_setting(db: AsyncSession, key: str, value, actor_id: int = None) -> str:
    """Insert or overwrite one setting. Values are stored as text."""
    text = None if value is None else str(value)
    await _upsert(db, key, text)

    await log_activity(db, actor_id, AuditAction.UPDATE_SETTING, f"Setting {key} = {text}")
    await db.commit()

    return text


async def set_many(db: AsyncSession, values: Dict[str, object]) -> int:
    """Upsert several settings without auditing or committing."""
    for key, value in values.items():
        await _upsert(db, key, None if value is None else str(value))
    return len(values)


async def ensure_defaults(db: AsyncSession, defaults: Dict[str, str] = None) -> None:
    """Insert default settings whose keys are missing; never overwrite."""
    existing = await get_all_settings(db)
    for key, value in (defaults or DEFAULT_SETTINGS).items():
        if key not in existing:
            db.add(Setting(key=key, value=value))
    await db.commit()
