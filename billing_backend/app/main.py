"""
FastAPI Application Entry Point.

This is the main application file for the PPPoE Billing backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from billing_backend.app.core.config import settings
from billing_backend.app.api.v1.router import router as api_router
from billing_backend.app.db.session import engine, Base, AsyncSessionLocal
from billing_backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    store_exception_handler,
    generic_exception_handler
)
from billing_backend.app.core.observability import ObservabilityMiddleware, configure_logging
from billing_backend.app.services.bootstrap import seed_defaults
from billing_backend.app.services.events import EventBroker
from billing_backend.app.services.messaging.broadcast import BroadcastJobManager
from billing_backend.app.services.messaging.gateway import MessagingGateway
from billing_backend.app.services.messaging.transport import WahaTransport

# Import models to ensure they are registered with Base
from billing_backend.app.models.user import User
from billing_backend.app.models.customer import Customer
from billing_backend.app.models.transaction import Transaction
from billing_backend.app.models.setting import Setting
from billing_backend.app.models.message_log import MessageLog
from billing_backend.app.models.activity_log import ActivityLog

configure_logging(settings.log_level)
logger = logging.getLogger("billing")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables and seeds default accounts/settings.
    2. On shutdown, cancels running broadcasts, stops the WhatsApp
       session and closes every open event stream.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        await seed_defaults(db)

    logger.info("%s started", settings.app_name)
    yield

    await app.state.broadcast_jobs.shutdown()
    await app.state.messaging_gateway.shutdown()
    app.state.event_broker.close_all()
    await engine.dispose()
    logger.info("%s stopped", settings.app_name)


def init_services(app: FastAPI) -> None:
    """Create the process-wide event broker, WhatsApp gateway and broadcast jobs."""
    broker = EventBroker(max_queue_size=settings.event_queue_size)
    transport = WahaTransport(
        settings.whatsapp_gateway_url,
        session=settings.whatsapp_session,
        api_key=settings.whatsapp_api_key,
        timeout=settings.whatsapp_timeout_seconds
    )
    gateway = MessagingGateway(
        transport,
        broker,
        AsyncSessionLocal,
        poll_seconds=settings.whatsapp_poll_seconds,
        broadcast_delay=settings.broadcast_delay_seconds
    )
    # New subscribers receive the gateway status right after the ack
    broker.status_provider = gateway.current_status

    app.state.event_broker = broker
    app.state.messaging_gateway = gateway
    app.state.broadcast_jobs = BroadcastJobManager(gateway, broker)


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    description="Billing backend for a small PPPoE internet and LPG gas business",
    lifespan=lifespan,
)

init_services(app)

# Middleware
app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, store_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application name and WhatsApp gateway state
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "whatsapp": app.state.messaging_gateway.current_status()["status"],
        "event_subscribers": app.state.event_broker.subscriber_count,
    }


# Include API router
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": f"Welcome to {settings.app_name} API",
        "docs": "/docs",
        "health": "/health",
    }
