"""
Configuration settings for the Billing Backend.

This module handles application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "PPPoE Billing Pro"
    api_prefix: str = "/api"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    # Database Configuration
    database_url: str = "sqlite+aiosqlite:///./billing.db"
    db_echo: bool = False

    # Security Configuration (JWT)
    secret_key: str = "pppoe-billing-secret-key-change-this-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    bcrypt_rounds: int = 12

    # First-run bootstrap accounts
    default_admin_username: str = "admin"
    default_admin_password: str = "admin123"
    default_admin_full_name: str = "Administrator"
    default_staff_username: str = "staff"
    default_staff_password: str = "staff123"
    default_staff_full_name: str = "Staff Kasir"

    # WhatsApp HTTP gateway (WAHA-compatible)
    whatsapp_gateway_url: str = "http://localhost:3000"
    whatsapp_api_key: Optional[str] = None
    whatsapp_session: str = "default"
    whatsapp_poll_seconds: float = 3.0
    whatsapp_timeout_seconds: float = 15.0
    broadcast_delay_seconds: float = 1.5

    # Real-time event stream
    event_queue_size: int = 100
    event_keepalive_seconds: float = 15.0

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
