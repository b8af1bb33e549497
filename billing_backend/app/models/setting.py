"""
Setting database model.

Flat key/value store for business parameters (prices, display name, address).
"""

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from billing_backend.app.db.session import Base


class Setting(Base):
    __tablename__ = "settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Setting(key='{self.key}', value='{self.value}')>"
