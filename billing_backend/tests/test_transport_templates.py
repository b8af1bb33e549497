"""
Tests for the WAHA HTTP transport and billing message templates.
"""

import json
import pytest
import httpx
from datetime import date

from billing_backend.app.core.exceptions import GatewayError
from billing_backend.app.models.customer import Customer
from billing_backend.app.models.enums import CustomerCategory, GatewayState
from billing_backend.app.services.formatting import format_idr, format_long_date, format_number, format_period
from billing_backend.app.services.messaging.gateway import MessagingGateway
from billing_backend.app.services.messaging.templates import normalize_phone, render_template, to_chat_id
from billing_backend.app.services.messaging.transport import WahaTransport


def make_transport(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://waha.local")
    return WahaTransport("http://waha.local", session="billing", client=client)


@pytest.mark.asyncio
async def test_waha_state_with_qr():
    def handler(request):
        if request.url.path == "/api/sessions/billing":
            return httpx.Response(200, json={"name": "billing", "status": "SCAN_QR_CODE"})
        if request.url.path == "/api/billing/auth/qr":
            return httpx.Response(200, json={"mimetype": "image/png", "data": "QUJD"})
        return httpx.Response(404)

    transport = make_transport(handler)
    snapshot = await transport.fetch_state()
    await transport.aclose()

    assert snapshot.state == GatewayState.QR_PENDING
    assert snapshot.qr == "data:image/png;base64,QUJD"


@pytest.mark.asyncio
async def test_waha_working_is_ready_without_qr():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        return httpx.Response(200, json={"status": "WORKING"})

    transport = make_transport(handler)
    snapshot = await transport.fetch_state()

    assert snapshot.state == GatewayState.READY
    assert snapshot.qr is None
    assert calls == ["/api/sessions/billing"]


@pytest.mark.asyncio
async def test_waha_unknown_status_is_error():
    transport = make_transport(lambda request: httpx.Response(200, json={"status": "SOMETHING_NEW"}))
    assert (await transport.fetch_state()).state == GatewayState.ERROR


@pytest.mark.asyncio
async def test_waha_start_stop_paths():
    calls = []

    def handler(request):
        calls.append((request.method, request.url.path))
        return httpx.Response(201, json={})

    transport = make_transport(handler)
    await transport.start()
    await transport.stop()

    assert calls == [("POST", "/api/sessions/billing/start"), ("POST", "/api/sessions/billing/stop")]


@pytest.mark.asyncio
async def test_waha_send_text_payload():
    captured = {}

    def handler(request):
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(201, json={"id": "msg-1"})

    transport = make_transport(handler)
    await transport.send_text("628123@c.us", "Halo")

    assert captured["path"] == "/api/sendText"
    assert captured["body"] == {"session": "billing", "chatId": "628123@c.us", "text": "Halo"}


@pytest.mark.asyncio
async def test_waha_http_error_becomes_gateway_error():
    transport = make_transport(lambda request: httpx.Response(500, text="session crashed"))

    with pytest.raises(GatewayError) as exc_info:
        await transport.send_text("628123@c.us", "Halo")

    assert exc_info.value.status_code == 503
    assert "500" in exc_info.value.message
    assert exc_info.value.details["body"] == "session crashed"


@pytest.mark.asyncio
async def test_waha_unreachable_becomes_gateway_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    transport = make_transport(handler)
    with pytest.raises(GatewayError) as exc_info:
        await transport.start()

    assert "unreachable" in exc_info.value.message


@pytest.mark.asyncio
async def test_waha_non_json_reply_becomes_gateway_error():
    transport = make_transport(lambda request: httpx.Response(200, text="<html>proxy</html>"))

    with pytest.raises(GatewayError) as exc_info:
        await transport.fetch_state()

    assert "non-JSON" in exc_info.value.message
    assert exc_info.value.details["body"] == "<html>proxy</html>"


@pytest.mark.asyncio
async def test_waha_non_object_reply_becomes_gateway_error():
    def handler(request):
        if request.url.path == "/api/sessions/billing":
            return httpx.Response(200, json={"status": "SCAN_QR_CODE"})
        return httpx.Response(200, json=["not", "an", "object"])

    transport = make_transport(handler)
    with pytest.raises(GatewayError):
        await transport.fetch_state()


@pytest.mark.asyncio
async def test_gateway_poll_of_html_reply_sets_error(broker, session_factory):
    transport = make_transport(lambda request: httpx.Response(200, text="<html>proxy</html>"))
    gateway = MessagingGateway(transport, broker, session_factory, poll_seconds=3600, broadcast_delay=0)

    await gateway.refresh_status()

    assert gateway.state == GatewayState.ERROR
    await gateway.shutdown()


def test_waha_sends_api_key_header():
    transport = WahaTransport("http://waha.local", api_key="s3cret")
    assert transport._client.headers["X-Api-Key"] == "s3cret"


@pytest.mark.parametrize("raw, expected", [
    ("0812-3456-789", "628123456789"),
    ("+62 812 3456", "628123456"),
    ("628123", "628123"),
    ("", ""),
])
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_to_chat_id():
    assert to_chat_id("62811") == "62811@c.us"


def test_formatting():
    assert format_number(1500000) == "1.500.000"
    assert format_idr(12500) == "Rp 12.500"
    assert format_long_date(date(2026, 10, 19)) == "19 Oktober 2026"
    assert format_period(date(2026, 1, 5)) == "Januari 2026"


def test_render_template_legacy_and_english_placeholders():
    customer = Customer(
        name="Siti", category=CustomerCategory.GAS, phone="0811", pppoe_username=None, pppoe_password=None
    )
    template = "{nama}/{name} {jumlah}/{amount} {tipe}/{category} {tanggal}/{date} {periode}/{period} {username} {password}"

    message = render_template(template, customer, 22000, today=date(2026, 10, 19))

    assert message == (
        "Siti/Siti 22.000/22.000 LPG 3kg/LPG 3kg 19 Oktober 2026/19 Oktober 2026 "
        "Oktober 2026/Oktober 2026 - -"
    )


def test_render_template_without_amount():
    customer = Customer(name="Andi", category=CustomerCategory.INTERNET, phone="0811", pppoe_username="andi")
    assert render_template("{jumlah} {username}", customer) == "0 andi"
