"""
User management endpoints (admin only).
"""

from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from billing_backend.app.db.session import get_db
from billing_backend.app.core.guards import require_admin
from billing_backend.app.schemas.auth import Principal
from billing_backend.app.schemas.common import ApiResponse
from billing_backend.app.schemas.user import UserCreate, UserResponse, UserUpdate
from billing_backend.app.services import user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=ApiResponse[List[UserResponse]])
async def list_users(
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    users = await user_service.list_users(db)
    return ApiResponse(data=[UserResponse.model_validate(u) for u in users])


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user(
    user_id: int,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.get_user(db, user_id)
    return ApiResponse(data=UserResponse.model_validate(user))


@router.post("", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create a dashboard user. 400 if the username is taken."""
    user = await user_service.create_user(db, data, actor_id=admin.id)
    return ApiResponse(message="User created", data=UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=ApiResponse[UserResponse])
async def update_user(
    user_id: int,
    data: UserUpdate,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Update profile, role and active flag; the password only when provided.

    Deactivating a user invalidates their tokens on the next request.
    """
    user = await user_service.update_user(db, user_id, data, actor_id=admin.id)
    return ApiResponse(message="User updated", data=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=ApiResponse[None])
async def delete_user(
    user_id: int,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete a user. Admins cannot delete themselves."""
    await user_service.delete_user(db, user_id, actor_id=admin.id)
    return ApiResponse(message="User deleted")
