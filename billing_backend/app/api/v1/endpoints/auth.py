"""
Authentication API endpoints.

Login and token verification for the web dashboard.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from billing_backend.app.db.session import get_db
from billing_backend.app.schemas.auth import LoginData, Principal, UserLogin
from billing_backend.app.schemas.common import ApiResponse
from billing_backend.app.services.auth_service import authenticate
from billing_backend.app.core.dependencies import get_client_ip, get_current_user

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=ApiResponse[LoginData])
async def login(
    credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Login with username and password.

    Wrong username/password and disabled accounts both return 401,
    with different error codes.
    """
    data = await authenticate(db, credentials.username, credentials.password, get_client_ip(request))
    return ApiResponse(message="Login successful", data=data)


@router.get("/verify", response_model=ApiResponse[Principal])
async def verify(current_user: Principal = Depends(get_current_user)):
    """
    Return the principal behind the bearer token.

    Role and active flag come from the live users row.
    """
    return ApiResponse(data=current_user)
