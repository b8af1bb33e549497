"""
User management schemas (admin only).
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from billing_backend.app.models.enums import UserRole


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, description="Unique username")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    full_name: str = Field(..., min_length=1, max_length=255)
    role: UserRole = Field(default=UserRole.STAFF, description="User role (defaults to staff)")


class UserUpdate(BaseModel):
    """Profile, role and active flag are always written; password only when given."""
    full_name: str = Field(..., min_length=1, max_length=255)
    role: UserRole
    is_active: bool = True
    password: Optional[str] = Field(default=None, min_length=6)


class UserResponse(BaseModel):
    id: int
    username: str
    full_name: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
