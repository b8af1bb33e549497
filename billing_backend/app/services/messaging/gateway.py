"""
Messaging Gateway.

Owns the WhatsApp connection lifecycle, reports every state change to the
event broker, sends single messages and runs debtor broadcasts. Every send
attempt, successful or not, is written to the message log.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from billing_backend.app.core.exceptions import GatewayError
from billing_backend.app.models.customer import Customer
from billing_backend.app.models.enums import GatewayState, MessageStatus
from billing_backend.app.models.message_log import MessageLog
from billing_backend.app.schemas.messaging import BroadcastDetail, BroadcastSummary, SendResult
from billing_backend.app.services.customer_service import customers_with_outstanding_balance
from billing_backend.app.services.events import EventBroker, EventType
from billing_backend.app.services.messaging.templates import normalize_phone, render_template, to_chat_id
from billing_backend.app.services.messaging.transport import WhatsAppTransport

logger = logging.getLogger("billing.messaging")

PREVIEW_LENGTH = 200

# States in which the session is already up or coming up
ACTIVE_STATES = {
    GatewayState.INITIALIZING,
    GatewayState.QR_PENDING,
    GatewayState.AUTHENTICATED,
    GatewayState.READY,
}


class MessagingGateway:

    def __init__(
        self,
        transport: WhatsAppTransport,
        broker: EventBroker,
        session_factory: async_sessionmaker,
        poll_seconds: float = 3.0,
        broadcast_delay: float = 1.5
    ):
        self.transport = transport
        self.broker = broker
        self.session_factory = session_factory
        self.poll_seconds = poll_seconds
        self.broadcast_delay = broadcast_delay

        self.state = GatewayState.DISCONNECTED
        self.updated_at = datetime.now(timezone.utc)
        self._last_qr: Optional[str] = None
        self._watcher: Optional[asyncio.Task] = None

    # ---- lifecycle -------------------------------------------------------

    def current_status(self) -> dict:
        return {"status": self.state.value, "timestamp": self.updated_at.isoformat()}

    @property
    def is_ready(self) -> bool:
        return self.state == GatewayState.READY

    def _set_state(self, state: GatewayState) -> None:
        if state == self.state:
            return
        logger.info("WhatsApp gateway: %s -> %s", self.state.value, state.value)
        self.state = state
        self.updated_at = datetime.now(timezone.utc)
        self.broker.publish(EventType.WA_STATUS, self.current_status())

    async def start(self) -> dict:
        """
        Start the WhatsApp session and begin polling its state.

        Raises:
            GatewayError: the transport refused to start (state becomes ERROR)
        """
        if self.state in ACTIVE_STATES and self._watcher and not self._watcher.done():
            return self.current_status()

        self._set_state(GatewayState.INITIALIZING)
        try:
            await self.transport.start()
        except GatewayError:
            self._set_state(GatewayState.ERROR)
            raise

        await self.refresh_status()
        await self._cancel_watcher()
        self._watcher = asyncio.create_task(self._watch())
        return self.current_status()

    async def stop(self) -> dict:
        """Stop polling, end the session and report DISCONNECTED."""
        await self._cancel_watcher()

        try:
            await self.transport.stop()
        except GatewayError as exc:
            logger.warning("WhatsApp session did not stop cleanly: %s", exc.message)

        self._last_qr = None
        self._set_state(GatewayState.DISCONNECTED)
        return self.current_status()

    async def refresh_status(self) -> None:
        """Poll the transport once and publish any state or QR change."""
        try:
            snapshot = await self.transport.fetch_state()
        except GatewayError as exc:
            logger.error("WhatsApp status poll failed: %s", exc.message)
            self._set_state(GatewayState.ERROR)
            return

        if snapshot.state == GatewayState.READY and self.state == GatewayState.QR_PENDING:
            self._set_state(GatewayState.AUTHENTICATED)
        self._set_state(snapshot.state)

        if snapshot.qr and snapshot.qr != self._last_qr:
            self._last_qr = snapshot.qr
            logger.info("WhatsApp QR code generated")
            self.broker.publish(EventType.WA_QR, snapshot.qr)

    async def _cancel_watcher(self) -> None:
        if self._watcher:
            self._watcher.cancel()
            try:
                await self._watcher
            except asyncio.CancelledError:
                pass
            self._watcher = None

    async def _watch(self) -> None:
        while True:
            await asyncio.sleep(self.poll_seconds)
            try:
                await self.refresh_status()
            except Exception:
                logger.exception("WhatsApp status poll crashed")
                self._set_state(GatewayState.ERROR)

    async def shutdown(self) -> None:
        if self.state != GatewayState.DISCONNECTED or self._watcher:
            await self.stop()
        await self.transport.aclose()

    # ---- sending ---------------------------------------------------------

    async def send_to(
        self,
        customer_id: int,
        message: str,
        actor_id: Optional[int] = None,
        message_type: str = "billing"
    ) -> SendResult:
        """
        Send `message` to a customer's WhatsApp number.

        Never raises for delivery problems; the outcome is returned and
        always recorded in the message log.
        """
        async with self.session_factory() as db:
            customer = await db.get(Customer, customer_id)
            phone = normalize_phone(customer.phone) if customer else ""
            error = None

            if customer is None:
                error = "Customer not found"
            elif not self.is_ready:
                error = "WhatsApp client not ready"
            else:
                try:
                    await self.transport.send_text(to_chat_id(phone), message)
                except GatewayError as exc:
                    error = exc.message

            db.add(MessageLog(
                customer_id=customer.id if customer else None,
                customer_name=customer.name if customer else None,
                phone=phone,
                message_type=message_type,
                status=MessageStatus.FAILED if error else MessageStatus.SUCCESS,
                message_preview=(message or "")[:PREVIEW_LENGTH],
                error_message=error,
                sent_by=actor_id
            ))
            await db.commit()

        name = customer.name if customer else None
        if error:
            logger.warning("Message to customer %s failed: %s", customer_id, error)
            return SendResult(success=False, customer=name, phone=phone or None, error=error)

        logger.info("Message sent to %s (%s)", name, phone)
        return SendResult(success=True, customer=name, phone=phone)

    async def broadcast_to_debtors(
        self,
        template: str,
        actor_id: Optional[int] = None,
        on_progress: Optional[Callable[[BroadcastSummary], None]] = None
    ) -> BroadcastSummary:
        """
        Send the rendered template to every debtor, one at a time with a
        fixed delay between sends. A failed send is counted and the loop
        continues.
        """
        async with self.session_factory() as db:
            debtors = await customers_with_outstanding_balance(db)

        logger.info("Broadcasting to %d debtor(s)", len(debtors))
        summary = BroadcastSummary()

        for index, (customer, total_debt) in enumerate(debtors):
            if index and self.broadcast_delay:
                await asyncio.sleep(self.broadcast_delay)

            message = render_template(template, customer, total_debt)
            result = await self.send_to(customer.id, message, actor_id, message_type="broadcast")

            summary.total += 1
            if result.success:
                summary.success += 1
            else:
                summary.failed += 1
            summary.details.append(BroadcastDetail(
                customer=customer.name,
                status=MessageStatus.SUCCESS if result.success else MessageStatus.FAILED,
                error=result.error
            ))

            if on_progress:
                on_progress(summary)

        logger.info("Broadcast finished: %d sent, %d failed", summary.success, summary.failed)
        return summary
