"""
Messaging Gateway schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional
from billing_backend.app.models.enums import GatewayState, MessageStatus


class GatewayStatus(BaseModel):
    status: GatewayState
    timestamp: datetime


class SendMessageRequest(BaseModel):
    customer_id: int
    template: str = Field(..., min_length=1)
    amount: Optional[int] = Field(default=None, ge=0, description="Substituted for {jumlah}/{amount}")


class BroadcastRequest(BaseModel):
    template: str = Field(..., min_length=1)


class SendResult(BaseModel):
    success: bool
    customer: Optional[str] = None
    phone: Optional[str] = None
    error: Optional[str] = None


class BroadcastDetail(BaseModel):
    customer: str
    status: MessageStatus
    error: Optional[str] = None


class BroadcastSummary(BaseModel):
    total: int = 0
    success: int = 0
    failed: int = 0
    details: List[BroadcastDetail] = []


class BroadcastJobResponse(BaseModel):
    id: str
    state: str = Field(..., description="running | completed | failed")
    started_at: datetime
    finished_at: Optional[datetime] = None
    summary: BroadcastSummary
    error: Optional[str] = None


class MessageLogResponse(BaseModel):
    id: int
    customer_id: Optional[int]
    customer_name: Optional[str]
    phone: str
    message_type: str
    status: MessageStatus
    message_preview: Optional[str]
    error_message: Optional[str]
    sent_by: Optional[int]
    sent_by_username: Optional[str] = None
    sent_at: datetime

    class Config:
        from_attributes = True


class MessageStats(BaseModel):
    total: int = 0
    success: int = 0
    failed: int = 0


class MessageLogList(BaseModel):
    logs: List[MessageLogResponse]
    stats: MessageStats
