"""
Backup export and restore.

Restore re-creates customers (with fresh ids) and upserts settings only.
Users and transactions in a backup are ignored.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from billing_backend.app.models.customer import Customer
from billing_backend.app.schemas.backup import BackupExport, BackupUser, RestoreRequest, RestoreResult
from billing_backend.app.schemas.customer import CustomerResponse
from billing_backend.app.schemas.transaction import TransactionResponse
from billing_backend.app.services import customer_service, settings_service, transaction_service, user_service
from billing_backend.app.services.audit import AuditAction, log_activity

logger = logging.getLogger("billing.backup")


async def export_backup(db: AsyncSession, exported_by: str) -> BackupExport:
    customers = await customer_service.list_customers(db)
    transactions = await transaction_service.list_transactions(db)
    settings = await settings_service.get_all_settings(db)
    users = await user_service.list_users(db)

    return BackupExport(
        exported_at=datetime.now(timezone.utc),
        exported_by=exported_by,
        customers=[CustomerResponse.model_validate(c) for c in customers],
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        settings=settings,
        users=[BackupUser.model_validate(u) for u in users],
    )


async def restore_backup(
    db: AsyncSession,
    payload: RestoreRequest,
    actor_id: int = None,
    ip_address: Optional[str] = None
) -> RestoreResult:
    """Create every backup customer as a new row and upsert the backup settings."""
    customers = payload.customers or []
    for item in customers:
        db.add(Customer(**item.model_dump(), created_by=actor_id))
    await db.flush()

    settings_count = 0
    if payload.settings:
        settings_count = await settings_service.set_many(db, payload.settings)

    await log_activity(
        db, actor_id, AuditAction.RESTORE_DATA,
        f"Restored {len(customers)} customer(s) and {settings_count} setting(s) from backup",
        ip_address
    )
    await db.commit()

    logger.info("Backup restored: %d customers, %d settings", len(customers), settings_count)
    return RestoreResult(customers_created=len(customers), settings_updated=settings_count)
