"""
Activity Log Database Model.

Audit trail of significant actions performed by authenticated users.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from billing_backend.app.db.session import Base


class ActivityLog(Base):
    """
    Activity log model.

    Events logged:
    - LOGIN
    - CREATE_USER / UPDATE_USER / DELETE_USER
    - CREATE_CUSTOMER / UPDATE_CUSTOMER / DELETE_CUSTOMER
    - CREATE_TRANSACTION / PAYMENT / DELETE_TRANSACTION
    - UPDATE_SETTING / RESTORE_DATA
    - START_MESSAGING / STOP_MESSAGING / SEND_MESSAGE / BROADCAST_MESSAGE
    """
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)
    details = Column(Text, nullable=True)

    # IP address for login tracking
    ip_address = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<ActivityLog(id={self.id}, action='{self.action}', user={self.user_id})>"
