"""
Server-Sent Events stream of data changes and gateway status.

Each connection gets its own channel. The first two frames are always
the `connected` ack and the current `wa_status`.
"""

import asyncio
import json
import logging
from typing import AsyncIterator, Dict, Any
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from billing_backend.app.core.config import settings
from billing_backend.app.core.dependencies import get_event_broker, get_stream_user
from billing_backend.app.schemas.auth import Principal
from billing_backend.app.services.events import Channel, EventBroker

logger = logging.getLogger("billing.events")

router = APIRouter(tags=["Events"])

KEEPALIVE_FRAME = ": keepalive\n\n"


def format_sse(event: Dict[str, Any]) -> str:
    return f"data: {json.dumps(event, default=str)}\n\n"


async def sse_stream(
    request: Request,
    broker: EventBroker,
    channel: Channel,
    keepalive_seconds: float
) -> AsyncIterator[str]:
    """
    Yield SSE frames from `channel` until the client disconnects or the
    channel is closed. The channel is always unsubscribed on exit.
    """
    try:
        while True:
            if await request.is_disconnected():
                break

            try:
                event = await asyncio.wait_for(channel.get(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                yield KEEPALIVE_FRAME
                continue

            if event is None:
                break
            yield format_sse(event)
    finally:
        broker.unsubscribe(channel)


@router.get("/events")
async def stream_events(
    request: Request,
    current_user: Principal = Depends(get_stream_user),
    broker: EventBroker = Depends(get_event_broker)
):
    """Open a live event stream. Accepts the token as ?token= for EventSource."""
    channel = broker.subscribe()
    logger.info("User %s opened event stream (channel %d)", current_user.username, channel.id)

    return StreamingResponse(
        sse_stream(request, broker, channel, settings.event_keepalive_seconds),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}
    )
