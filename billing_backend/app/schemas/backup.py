"""
Backup / restore schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Dict, List, Optional, Union
from billing_backend.app.schemas.customer import CustomerCreate, CustomerResponse
from billing_backend.app.schemas.transaction import TransactionResponse
from billing_backend.app.schemas.user import UserResponse

REDACTED_PASSWORD = "***HIDDEN***"


class BackupUser(UserResponse):
    password: str = REDACTED_PASSWORD


class BackupExport(BaseModel):
    version: str = "1.0"
    exported_at: datetime
    exported_by: str
    customers: List[CustomerResponse]
    transactions: List[TransactionResponse]
    settings: Dict[str, Optional[str]]
    users: List[BackupUser]


class RestoreRequest(BaseModel):
    """
    Only customers and settings are restored. Users and transactions in
    the payload are accepted and ignored.
    """
    customers: Optional[List[CustomerCreate]] = None
    settings: Optional[Dict[str, Union[str, int, float, None]]] = None


class RestoreResult(BaseModel):
    customers_created: int
    settings_updated: int
