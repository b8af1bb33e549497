"""
Message Log Database Model.

Append-only record of every attempted outbound WhatsApp notification,
successful or not.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from billing_backend.app.db.session import Base
from billing_backend.app.models.enums import MessageStatus


class MessageLog(Base):
    __tablename__ = "message_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Target (customer_id is NULL when the lookup failed before sending)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    customer_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=False, default="")

    message_type = Column(String(50), nullable=False)
    status = Column(Enum(MessageStatus), nullable=False, index=True)
    message_preview = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)

    sent_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    sent_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<MessageLog(id={self.id}, phone='{self.phone}', status='{self.status.value}')>"
