"""
Customer database model.

A billable party on either the internet (PPPoE) or gas service line.
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from billing_backend.app.db.session import Base
from billing_backend.app.models.enums import CustomerCategory


class Customer(Base):
    """
    Customer model.

    PPPoE credentials only make sense for INTERNET customers but are
    stored as given for any category.
    """
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    category = Column(Enum(CustomerCategory), nullable=False, index=True)
    phone = Column(String(50), nullable=False)

    # PPPoE account (internet customers)
    pppoe_username = Column(String(100), nullable=True)
    pppoe_password = Column(String(100), nullable=True)

    address = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}', category='{self.category.value}')>"
