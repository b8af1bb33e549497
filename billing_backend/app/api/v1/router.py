"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from billing_backend.app.api.v1.endpoints import (
    auth, users, customers, transactions, settings,
    messaging, backup, activity, events
)

router = APIRouter()

# Authentication
router.include_router(auth.router)

# Admin: user management
router.include_router(users.router)

# Billing data
router.include_router(customers.router)
router.include_router(transactions.router)
router.include_router(settings.router)

# WhatsApp gateway
router.include_router(messaging.router)

# Admin: backup/restore and audit trail
router.include_router(backup.router)
router.include_router(activity.router)

# Live updates (SSE)
router.include_router(events.router)
