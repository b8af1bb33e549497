"""
Response envelope shared by every endpoint.
"""

from pydantic import BaseModel
from typing import Generic, Optional, TypeVar

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """Uniform success envelope: {"success": true, "data": ...}."""
    success: bool = True
    message: Optional[str] = None
    data: Optional[DataT] = None
