"""
Real-time change notification fan-out.

Every open browser session holds one Channel. Publishing copies the event
into each channel's own bounded queue without awaiting, so a stalled
client can never delay the others: when its queue is full the channel is
closed and dropped, and the client is expected to reconnect and refetch.
"""

import asyncio
import itertools
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("billing.events")


class EventType:
    """Event type tags sent to subscribers."""
    CONNECTED = "connected"
    CUSTOMER_UPDATED = "customer_updated"
    TRANSACTION_UPDATED = "transaction_updated"
    SETTINGS_UPDATED = "settings_updated"
    DATA_RESTORED = "data_restored"
    WA_STATUS = "wa_status"
    WA_QR = "wa_qr"
    WA_BROADCAST = "wa_broadcast"


def make_event(event_type: str, data: Any = None) -> Dict[str, Any]:
    """Build the {type, data, timestamp} envelope. data=None means 'refetch'."""
    return {
        "type": event_type,
        "data": data,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class Channel:
    """A single subscriber connection with its own buffered queue."""

    _ids = itertools.count(1)

    def __init__(self, max_queue_size: int):
        self.id = next(self._ids)
        self.closed = False
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)

    def offer(self, event: Dict[str, Any]) -> bool:
        """Enqueue without waiting. Returns False if the channel is closed or full."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    async def get(self) -> Optional[Dict[str, Any]]:
        """Next event, or None once the channel has been closed."""
        if self.closed and self._queue.empty():
            return None
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        """Discard buffered events and wake up any reader with the None sentinel."""
        if self.closed:
            return
        self.closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(None)


class EventBroker:
    """
    Registry of open channels with subscribe/unsubscribe/publish.

    All operations run on the event loop and publish iterates over a
    snapshot, so registration changes during a publish are safe.
    """

    def __init__(
        self,
        max_queue_size: int = 100,
        status_provider: Optional[Callable[[], Any]] = None
    ):
        self.max_queue_size = max_queue_size
        self.status_provider = status_provider
        self._channels: Dict[int, Channel] = {}

    @property
    def subscriber_count(self) -> int:
        return len(self._channels)

    def channels(self) -> List[Channel]:
        return list(self._channels.values())

    def subscribe(self) -> Channel:
        """
        Register a new channel.

        The connection ack and the current gateway status are queued before
        the channel becomes visible to publish, so they are always its
        first two events.
        """
        channel = Channel(self.max_queue_size)
        channel.offer(make_event(EventType.CONNECTED))

        status = self.status_provider() if self.status_provider else None
        channel.offer(make_event(EventType.WA_STATUS, status))

        self._channels[channel.id] = channel
        logger.debug("Channel %d subscribed (%d open)", channel.id, len(self._channels))
        return channel

    def unsubscribe(self, channel: Channel) -> None:
        if self._channels.pop(channel.id, None) is not None:
            logger.debug("Channel %d unsubscribed (%d open)", channel.id, len(self._channels))
        channel.close()

    def publish(self, event_type: str, data: Any = None) -> int:
        """
        Deliver an event to every open channel.

        Returns:
            Number of channels the event was queued on
        """
        event = make_event(event_type, data)
        delivered = 0

        for channel in list(self._channels.values()):
            if channel.offer(event):
                delivered += 1
            else:
                logger.warning("Dropping stalled channel %d (%d events buffered)", channel.id, channel.pending())
                self.unsubscribe(channel)

        return delivered

    def close_all(self) -> None:
        for channel in list(self._channels.values()):
            self.unsubscribe(channel)
