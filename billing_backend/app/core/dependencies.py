"""
Request dependencies for FastAPI.

Authentication plus accessors for the process-wide services kept on
`app.state` (event broker, messaging gateway, broadcast jobs), so tests
can swap them through `app.dependency_overrides`.
"""

from typing import Optional
from fastapi import Depends, Query, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from billing_backend.app.core.exceptions import AuthenticationError
from billing_backend.app.db.session import get_db
from billing_backend.app.schemas.auth import Principal
from billing_backend.app.services.auth_service import validate_token
from billing_backend.app.services.events import EventBroker
from billing_backend.app.services.messaging.broadcast import BroadcastJobManager
from billing_backend.app.services.messaging.gateway import MessagingGateway

# HTTP Bearer security scheme; missing headers are reported as 401 by us
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Principal:
    """
    FastAPI dependency for JWT authentication.

    Security checks:
    1. Validates JWT token signature and expiry
    2. Verifies the user still exists and is active (real-time check)

    Raises:
        AuthenticationError: 401 if authentication fails for any reason
    """
    if credentials is None:
        raise AuthenticationError("Bearer token required")

    return await validate_token(db, credentials.credentials)


async def get_stream_user(
    token: Optional[str] = Query(None, description="Token for EventSource clients that cannot send headers"),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Principal:
    """Like get_current_user, but also accepts ?token= for the event stream."""
    raw = credentials.credentials if credentials else token
    if not raw:
        raise AuthenticationError("Bearer token required")

    return await validate_token(db, raw)


def get_client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def get_event_broker(request: Request) -> EventBroker:
    return request.app.state.event_broker


def get_messaging_gateway(request: Request) -> MessagingGateway:
    return request.app.state.messaging_gateway


def get_broadcast_jobs(request: Request) -> BroadcastJobManager:
    return request.app.state.broadcast_jobs
