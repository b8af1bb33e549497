"""
Settings schemas.
"""

from pydantic import BaseModel, Field
from typing import Union


class SettingUpdate(BaseModel):
    key: str = Field(..., min_length=1, max_length=100)
    value: Union[str, int, float] = Field(..., description="Stored as text")
