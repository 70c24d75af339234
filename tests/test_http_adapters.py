"""HTTP adapters against a local aiohttp server.

Covers what the fakes cannot: status handling, the bearer header on the wire,
and connection / timeout errors mapped to domain errors.
"""
import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import pytest
from aiohttp import test_utils, web

from app.services.config_resolver import DeliveryConfig
from app.services.delivery import DeliveryMessage, ResilientSender
from app.services.dispatcher import HttpReportJobClient, ReportDispatcher, ReportJobError
from app.services.email_transport import ResendTransport
from app.services.errors import EmailTransportError

MONTH_END = datetime(2025, 4, 30, 17, 30, tzinfo=timezone.utc)
PAYLOAD = {"from": "Pharmacy <reports@pharmacy.example.com>", "to": "owner@pharmacy.example.com", "subject": "s", "html": "<p>h</p>"}


@asynccontextmanager
async def serve(*routes):
    app = web.Application()
    app.add_routes(routes)
    server = test_utils.TestServer(app)
    await server.start_server()
    try:
        yield server
    finally:
        await server.close()


def _closed_port_url(path: str) -> str:
    return f"http://127.0.0.1:{test_utils.unused_port()}{path}"


# ---------- Resend transport ----------

def test_resend_sends_bearer_and_json_payload():
    seen = []

    async def handler(request):
        seen.append((request.headers.get("Authorization"), await request.json()))
        return web.json_response({"id": "email_123"})

    async def run():
        async with serve(web.post("/emails", handler)) as server:
            return await ResendTransport(api_url=str(server.make_url("/emails"))).send("re_key", PAYLOAD)

    assert asyncio.run(run()) == {"id": "email_123"}
    assert seen == [("Bearer re_key", PAYLOAD)]


def test_resend_2xx_with_non_json_body_is_delivered_once(recording_sleep):
    hits = []

    async def handler(request):
        hits.append(1)
        return web.Response(text="<html>accepted</html>", content_type="text/html")

    async def run():
        async with serve(web.post("/emails", handler)) as server:
            sender = ResilientSender(ResendTransport(api_url=str(server.make_url("/emails"))), sleep=recording_sleep)
            config = DeliveryConfig(api_key="re_key", recipient="owner@pharmacy.example.com", sender_address="reports@pharmacy.example.com")
            message = DeliveryMessage(from_address="reports@pharmacy.example.com", to="owner@pharmacy.example.com", subject="s", html="h")
            return await sender.send(config, message)

    outcome = asyncio.run(run())
    assert outcome.sent is True
    assert outcome.attempts == 1
    assert len(hits) == 1
    assert recording_sleep.delays == []


def test_resend_2xx_with_non_object_json_returns_empty_dict():
    async def handler(request):
        return web.json_response(["queued"], status=202)

    async def run():
        async with serve(web.post("/emails", handler)) as server:
            return await ResendTransport(api_url=str(server.make_url("/emails"))).send("re_key", PAYLOAD)

    assert asyncio.run(run()) == {}


def test_resend_rejection_raises_with_status():
    async def handler(request):
        return web.json_response({"message": "invalid from address"}, status=422)

    async def run():
        async with serve(web.post("/emails", handler)) as server:
            await ResendTransport(api_url=str(server.make_url("/emails"))).send("re_key", PAYLOAD)

    with pytest.raises(EmailTransportError) as exc_info:
        asyncio.run(run())
    assert exc_info.value.status_code == 422
    assert "422" in str(exc_info.value)


def test_resend_connection_refused_raises_transport_error():
    with pytest.raises(EmailTransportError) as exc_info:
        asyncio.run(ResendTransport(api_url=_closed_port_url("/emails")).send("re_key", PAYLOAD))
    assert exc_info.value.status_code is None


def test_resend_timeout_raises_transport_error():
    async def handler(request):
        await asyncio.sleep(0.5)
        return web.json_response({"id": "late"})

    async def run():
        async with serve(web.post("/emails", handler)) as server:
            transport = ResendTransport(api_url=str(server.make_url("/emails")), timeout_seconds=0.05)
            await transport.send("re_key", PAYLOAD)

    with pytest.raises(EmailTransportError):
        asyncio.run(run())


# ---------- Report job client ----------

def _report_routes(statuses, seen):
    async def handler(request):
        job = request.match_info["job"]
        seen.append((job, request.headers.get("Authorization")))
        return web.json_response({"success": True}, status=statuses.get(job, 200))

    return web.post("/api/v1/reports/{job}", handler)


def test_job_client_forwards_bearer_and_returns_status():
    seen = []

    async def run():
        async with serve(_report_routes({}, seen)) as server:
            client = HttpReportJobClient(base_url=str(server.make_url("/api/v1")))
            return await client.trigger("daily", {"Authorization": "Bearer s3cret"})

    assert asyncio.run(run()) == 200
    assert seen == [("daily", "Bearer s3cret")]


def test_dispatch_over_http_records_non_2xx_and_continues():
    seen = []

    async def run():
        async with serve(_report_routes({"daily": 503}, seen)) as server:
            client = HttpReportJobClient(base_url=str(server.make_url("/api/v1")))
            return await ReportDispatcher(client, secret="s3cret").dispatch(MONTH_END)

    report = asyncio.run(run())
    assert report.http_status == 207
    assert report.to_payload()["results"] == {
        "daily": {"status": 503, "ok": False},
        "monthly": {"status": 200, "ok": True},
    }
    assert seen == [("daily", "Bearer s3cret"), ("monthly", "Bearer s3cret")]


def test_job_client_connection_refused_raises_job_error():
    client = HttpReportJobClient(base_url=_closed_port_url("/api/v1"))
    with pytest.raises(ReportJobError):
        asyncio.run(client.trigger("daily", {}))


def test_job_client_timeout_raises_job_error():
    async def slow(request):
        await asyncio.sleep(0.5)
        return web.json_response({"success": True})

    async def run():
        async with serve(web.post("/api/v1/reports/{job}", slow)) as server:
            client = HttpReportJobClient(base_url=str(server.make_url("/api/v1")), timeout_seconds=0.05)
            await client.trigger("daily", {})

    with pytest.raises(ReportJobError):
        asyncio.run(run())


def test_dispatch_over_http_records_unreachable_job_as_500():
    client = HttpReportJobClient(base_url=_closed_port_url("/api/v1"))
    report = asyncio.run(ReportDispatcher(client).dispatch(MONTH_END))
    assert report.to_payload()["results"] == {
        "daily": {"status": 500, "ok": False},
        "monthly": {"status": 500, "ok": False},
    }
