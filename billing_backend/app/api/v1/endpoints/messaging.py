"""
WhatsApp messaging endpoints.

Gateway lifecycle, single billing messages, background debtor
broadcasts and the message log.
"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from billing_backend.app.db.session import get_db
from billing_backend.app.core.dependencies import (
    get_broadcast_jobs,
    get_client_ip,
    get_current_user,
    get_messaging_gateway,
)
from billing_backend.app.core.exceptions import GatewayError, NotFoundError
from billing_backend.app.schemas.auth import Principal
from billing_backend.app.schemas.common import ApiResponse
from billing_backend.app.schemas.messaging import (
    BroadcastJobResponse,
    BroadcastRequest,
    GatewayStatus,
    MessageLogList,
    MessageLogResponse,
    SendMessageRequest,
    SendResult,
)
from billing_backend.app.services.audit import AuditAction, log_activity
from billing_backend.app.services.customer_service import get_customer
from billing_backend.app.services.messaging.broadcast import BroadcastJobManager
from billing_backend.app.services.messaging.gateway import MessagingGateway
from billing_backend.app.services.messaging.logs import list_message_logs, message_stats
from billing_backend.app.services.messaging.templates import render_template

router = APIRouter(prefix="/messaging", tags=["Messaging"])


@router.get("/status", response_model=ApiResponse[GatewayStatus])
async def get_status(
    current_user: Principal = Depends(get_current_user),
    gateway: MessagingGateway = Depends(get_messaging_gateway)
):
    return ApiResponse(data=GatewayStatus(**gateway.current_status()))


@router.post("/start", response_model=ApiResponse[GatewayStatus])
async def start_gateway(
    request: Request,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: MessagingGateway = Depends(get_messaging_gateway)
):
    """
    Start the WhatsApp session.

    A QR code to scan is pushed as a `wa_qr` event; 503 if the gateway
    cannot be reached.
    """
    current = await gateway.start()

    await log_activity(db, current_user.id, AuditAction.START_MESSAGING, "Started WhatsApp gateway", get_client_ip(request))
    await db.commit()
    return ApiResponse(message="WhatsApp gateway starting", data=GatewayStatus(**current))


@router.post("/stop", response_model=ApiResponse[GatewayStatus])
async def stop_gateway(
    request: Request,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: MessagingGateway = Depends(get_messaging_gateway)
):
    current = await gateway.stop()

    await log_activity(db, current_user.id, AuditAction.STOP_MESSAGING, "Stopped WhatsApp gateway", get_client_ip(request))
    await db.commit()
    return ApiResponse(message="WhatsApp gateway stopped", data=GatewayStatus(**current))


@router.post("/send", response_model=ApiResponse[SendResult])
async def send_message(
    data: SendMessageRequest,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: MessagingGateway = Depends(get_messaging_gateway)
):
    """
    Render a billing template for one customer and send it.

    The attempt is always written to the message log. A failed send
    returns 503 with the send result in `details`.
    """
    customer = await get_customer(db, data.customer_id)
    message = render_template(data.template, customer, data.amount)

    result = await gateway.send_to(customer.id, message, actor_id=current_user.id)
    if not result.success:
        raise GatewayError(result.error or "Message not sent", details=result.model_dump())

    await log_activity(db, current_user.id, AuditAction.SEND_MESSAGE, f"Billing message sent to {customer.name}")
    await db.commit()
    return ApiResponse(message="Message sent", data=result)


@router.post("/broadcast", response_model=ApiResponse[BroadcastJobResponse], status_code=status.HTTP_202_ACCEPTED)
async def start_broadcast(
    data: BroadcastRequest,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: MessagingGateway = Depends(get_messaging_gateway),
    jobs: BroadcastJobManager = Depends(get_broadcast_jobs)
):
    """
    Send the template to every customer with outstanding debt.

    Runs in the background; follow it through `wa_broadcast` events or
    GET /messaging/broadcast/{job_id}.
    """
    if not gateway.is_ready:
        raise GatewayError("WhatsApp client not ready", details=gateway.current_status())

    await log_activity(db, current_user.id, AuditAction.BROADCAST_MESSAGE, "Broadcast to debtors started")
    await db.commit()

    job = jobs.launch(data.template, actor_id=current_user.id)
    return ApiResponse(message="Broadcast started", data=job.to_response())


@router.get("/broadcast/{job_id}", response_model=ApiResponse[BroadcastJobResponse])
async def get_broadcast(
    job_id: str,
    current_user: Principal = Depends(get_current_user),
    jobs: BroadcastJobManager = Depends(get_broadcast_jobs)
):
    job = jobs.get(job_id)
    if job is None:
        raise NotFoundError("Broadcast job", job_id)
    return ApiResponse(data=job.to_response())


@router.get("/logs", response_model=ApiResponse[MessageLogList])
async def get_logs(
    limit: int = Query(50, ge=1, le=1000),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    rows = await list_message_logs(db, limit)
    logs = []
    for entry, username in rows:
        item = MessageLogResponse.model_validate(entry)
        item.sent_by_username = username
        logs.append(item)

    return ApiResponse(data=MessageLogList(logs=logs, stats=await message_stats(db)))
