"""
Activity log schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class ActivityLogResponse(BaseModel):
    """Schema for activity log entry."""
    id: int
    user_id: Optional[int]
    username: Optional[str] = None
    action: str
    details: Optional[str]
    ip_address: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
