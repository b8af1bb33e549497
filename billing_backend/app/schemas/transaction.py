"""
Transaction schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional
from billing_backend.app.models.enums import CustomerCategory, TransactionDirection, TransactionStatus


class TransactionCreate(BaseModel):
    """
    Customer name/category are not accepted from the client; they are
    snapshotted from the customer row at creation time.
    """
    customer_id: int
    category: str = Field(..., min_length=1, max_length=100, description="Label, e.g. 'Monthly internet'")
    amount: int = Field(..., gt=0, description="Amount in minor units")
    direction: TransactionDirection
    status: TransactionStatus = TransactionStatus.PENDING
    description: Optional[str] = None


class TransactionResponse(BaseModel):
    id: int
    customer_id: int
    customer_name: str
    customer_category: CustomerCategory
    category: str
    amount: int
    direction: TransactionDirection
    status: TransactionStatus
    description: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TransactionStats(BaseModel):
    income: int = 0
    expense: int = 0
    pending: int = 0
    balance: int = 0


class MonthlyTotals(BaseModel):
    month: int = Field(..., ge=1, le=12)
    income: int = 0
    expense: int = 0


class PendingTransactions(BaseModel):
    transactions: List[TransactionResponse]
    total: int
