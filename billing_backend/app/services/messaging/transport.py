"""
WhatsApp transports.

The gateway only needs four capabilities from a transport: start and stop
a session, report its state (plus a QR image while pairing), and send a
text. WahaTransport provides them over the HTTP API of a WAHA-compatible
WhatsApp gateway.
"""

import abc
import logging
from typing import Optional

import httpx

from billing_backend.app.core.exceptions import GatewayError
from billing_backend.app.models.enums import GatewayState

logger = logging.getLogger("billing.messaging.transport")


class TransportState:
    """State reported by a transport poll."""

    def __init__(self, state: GatewayState, qr: Optional[str] = None):
        self.state = state
        self.qr = qr

    def __repr__(self):
        return f"<TransportState(state='{self.state.value}', qr={'yes' if self.qr else 'no'})>"


class WhatsAppTransport(abc.ABC):

    @abc.abstractmethod
    async def start(self) -> None:
        """Begin (or resume) the WhatsApp session."""

    @abc.abstractmethod
    async def stop(self) -> None:
        """Terminate the WhatsApp session."""

    @abc.abstractmethod
    async def fetch_state(self) -> TransportState:
        """Poll the current session state."""

    @abc.abstractmethod
    async def send_text(self, chat_id: str, text: str) -> None:
        """Send a text message. Raises GatewayError on failure."""

    async def aclose(self) -> None:
        """Release network resources."""


# WAHA session status -> gateway state
WAHA_STATES = {
    "STOPPED": GatewayState.DISCONNECTED,
    "STARTING": GatewayState.INITIALIZING,
    "SCAN_QR_CODE": GatewayState.QR_PENDING,
    "WORKING": GatewayState.READY,
    "FAILED": GatewayState.ERROR,
}


class WahaTransport(WhatsAppTransport):
    """
    Transport backed by a WAHA-compatible HTTP API.

    Endpoints used:
        POST /api/sessions/{session}/start
        POST /api/sessions/{session}/stop
        GET  /api/sessions/{session}
        GET  /api/{session}/auth/qr
        POST /api/sendText
    """

    def __init__(
        self,
        base_url: str,
        session: str = "default",
        api_key: Optional[str] = None,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.session = session
        headers = {"Accept": "application/json"}
        if api_key:
            headers["X-Api-Key"] = api_key
        self._client = client or httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout)

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise GatewayError(
                f"WhatsApp gateway returned {exc.response.status_code}",
                {"url": url, "body": exc.response.text[:200]}
            )
        except httpx.HTTPError as exc:
            raise GatewayError(f"WhatsApp gateway unreachable: {exc}", {"url": url})
        return response

    async def _request_json(self, method: str, url: str, **kwargs) -> dict:
        response = await self._request(method, url, **kwargs)
        try:
            body = response.json()
        except ValueError:
            raise GatewayError(
                "WhatsApp gateway returned a non-JSON response",
                {"url": url, "body": response.text[:200]}
            )
        if not isinstance(body, dict):
            raise GatewayError("WhatsApp gateway returned an unexpected response", {"url": url})
        return body

    async def start(self) -> None:
        await self._request("POST", f"/api/sessions/{self.session}/start")

    async def stop(self) -> None:
        await self._request("POST", f"/api/sessions/{self.session}/stop")

    async def fetch_state(self) -> TransportState:
        body = await self._request_json("GET", f"/api/sessions/{self.session}")
        status = str(body.get("status", "")).upper()
        state = WAHA_STATES.get(status, GatewayState.ERROR)

        qr = None
        if state == GatewayState.QR_PENDING:
            qr = await self._fetch_qr()

        return TransportState(state, qr)

    async def _fetch_qr(self) -> Optional[str]:
        body = await self._request_json("GET", f"/api/{self.session}/auth/qr")
        if not body.get("data"):
            return None
        return f"data:{body.get('mimetype', 'image/png')};base64,{body['data']}"

    async def send_text(self, chat_id: str, text: str) -> None:
        await self._request("POST", "/api/sendText", json={
            "session": self.session,
            "chatId": chat_id,
            "text": text,
        })
        logger.debug("Sent text to %s", chat_id)

    async def aclose(self) -> None:
        await self._client.aclose()
