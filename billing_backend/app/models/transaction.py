"""
Transaction database model.

Financial records tied to a customer. Customer name and category are
copied at creation time and never re-synced with later customer edits.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from billing_backend.app.db.session import Base
from billing_backend.app.models.enums import CustomerCategory, TransactionDirection, TransactionStatus


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Customer reference + point-in-time snapshot
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    customer_name = Column(String(255), nullable=False)
    customer_category = Column(Enum(CustomerCategory), nullable=False)

    category = Column(String(100), nullable=False)
    amount = Column(Integer, nullable=False)  # minor units
    direction = Column(Enum(TransactionDirection), nullable=False, index=True)
    status = Column(Enum(TransactionStatus), default=TransactionStatus.PENDING, nullable=False, index=True)
    description = Column(Text, nullable=True)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return (
            f"<Transaction(id={self.id}, customer={self.customer_id}, amount={self.amount}, "
            f"direction='{self.direction.value}', status='{self.status.value}')>"
        )
