"""
Domain enumerations.

Defines the closed value sets used by users, customers, transactions,
message logs and the messaging gateway.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Manages users, settings, backups and reads the activity log
        STAFF: Day-to-day cashier work on customers and transactions (default role)
    """
    ADMIN = "admin"
    STAFF = "staff"


class CustomerCategory(str, enum.Enum):
    """Billable service line of a customer."""
    INTERNET = "internet"
    GAS = "gas"


class TransactionDirection(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TransactionStatus(str, enum.Enum):
    """Transactions only move PENDING -> SETTLED."""
    PENDING = "pending"
    SETTLED = "settled"


class MessageStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"


class GatewayState(str, enum.Enum):
    """Connection lifecycle of the WhatsApp gateway."""
    DISCONNECTED = "disconnected"
    INITIALIZING = "initializing"
    QR_PENDING = "qr_pending"
    AUTHENTICATED = "authenticated"
    READY = "ready"
    ERROR = "error"
