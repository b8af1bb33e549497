"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import BaseModel, Field
from billing_backend.app.models.enums import UserRole


class UserLogin(BaseModel):
    """
    Schema for user login.

    Used by POST /auth/login endpoint.
    """
    username: str = Field(..., min_length=1, description="Username")
    password: str = Field(..., min_length=1, description="Password")


class Principal(BaseModel):
    """
    Authenticated identity attached to a request after token validation.

    Always built from the live users row, never from token claims alone.
    """
    id: int
    username: str
    full_name: str
    role: UserRole

    class Config:
        from_attributes = True


class LoginData(BaseModel):
    """Returned by a successful login."""
    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: Principal
