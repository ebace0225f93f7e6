"""End-to-end tests for the webhook server."""

import json

import httpx
import pytest
from aiohttp.test_utils import TestClient, TestServer

from vercord.config import ServerConfig, Settings
from vercord.notify.composer import FAILURE_COLOR, SUCCESS_COLOR
from vercord.notify.notifier import create_notifier
from vercord.webhooks.handlers import compute_signature
from vercord.webhooks.server import WebhookServer


SECRET = "integration-secret"
DISCORD_URL = "https://discord.com/api/webhooks/1/token"
PATH = "/api/vercel-webhook"


class FakeUpstream:
    """Stands in for both Discord and the Vercel API."""

    def __init__(self, discord_status=204, logs=None):
        self.discord_status = discord_status
        self.logs = logs if logs is not None else []
        self.discord_requests = []
        self.vercel_requests = []

    def __call__(self, request):
        if request.url.host == "api.vercel.com":
            self.vercel_requests.append(request)
            return httpx.Response(200, json=self.logs)
        self.discord_requests.append(request)
        return httpx.Response(self.discord_status, text="" if self.discord_status < 400 else "bad request")

    @property
    def sent(self):
        return [json.loads(r.content) for r in self.discord_requests]


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def settings():
    return Settings(
        webhook_integration_secret=SECRET,
        discord_webhook_url=DISCORD_URL,
        vercel_token="tok_123",
    )


@pytest.fixture
async def client(settings, upstream):
    http = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    server = WebhookServer(
        ServerConfig(port=0),
        settings.webhook_integration_secret,
        create_notifier(settings, http),
    )
    async with TestClient(TestServer(server._build_app())) as c:
        yield c
    await http.aclose()


async def post_event(client, event, signature=None):
    body = json.dumps(event).encode()
    if signature is None:
        signature = compute_signature(body, SECRET)
    return await client.post(
        PATH,
        data=body,
        headers={"Content-Type": "application/json", "x-vercel-signature": signature},
    )


class TestWebhookServer:
    async def test_succeeded_scenario(self, client, upstream, make_event):
        resp = await post_event(client, make_event("deployment.succeeded"))

        assert resp.status == 200
        assert await resp.text() == "Notification sent to Discord."
        assert len(upstream.sent) == 1
        embed = upstream.sent[0]["embeds"][0]
        assert "MAIN: SUCCEEDED" in embed["title"]
        assert embed["color"] == SUCCESS_COLOR
        assert len(embed["fields"]) == 4
        assert "Build Logs" not in [f["name"] for f in embed["fields"]]
        assert upstream.vercel_requests == []

    async def test_error_scenario_with_build_logs(self, client, upstream, make_event):
        upstream.logs = [
            {"type": "stdout", "payload": {"text": "Running build"}},
            {"type": "error", "payload": {"text": "Error: build failed"}},
        ]
        resp = await post_event(client, make_event("deployment.error"))

        assert resp.status == 200
        assert len(upstream.vercel_requests) == 1
        embed = upstream.sent[0]["embeds"][0]
        assert embed["color"] == FAILURE_COLOR
        logs_field = embed["fields"][-1]
        assert logs_field["name"] == "Build Logs"
        assert logs_field["value"] == "```\nError: build failed\n```"

    async def test_invalid_signature_scenario(self, client, upstream, make_event):
        resp = await post_event(client, make_event(), signature="0" * 40)

        assert resp.status == 200
        assert await resp.json() == {"code": "invalid_signature", "error": "signature didn't match"}
        assert upstream.discord_requests == []

    async def test_missing_signature_header(self, client, upstream, make_event):
        resp = await client.post(PATH, data=json.dumps(make_event()).encode())

        assert resp.status == 200
        assert (await resp.json())["code"] == "invalid_signature"
        assert upstream.discord_requests == []

    async def test_delivery_failure_scenario(self, client, upstream, make_event):
        upstream.discord_status = 400
        resp = await post_event(client, make_event())

        assert resp.status == 500
        assert await resp.text() == "Internal server error."
        # No retry
        assert len(upstream.discord_requests) == 1

    async def test_unrecognized_type_is_noop(self, client, upstream, make_event):
        resp = await post_event(client, make_event("deployment.ping"))

        assert resp.status == 200
        assert upstream.discord_requests == []

    async def test_malformed_json_returns_500(self, client, upstream):
        body = b"not json"
        resp = await client.post(
            PATH,
            data=body,
            headers={"x-vercel-signature": compute_signature(body, SECRET)},
        )

        assert resp.status == 500
        assert await resp.text() == "Internal server error."
        assert upstream.discord_requests == []

    async def test_malformed_deployment_returns_500(self, client, upstream):
        resp = await post_event(client, {"type": "deployment.error", "payload": {}})

        assert resp.status == 500
        assert upstream.discord_requests == []
        assert upstream.vercel_requests == []

    async def test_landing_page(self, client):
        resp = await client.get("/")
        assert resp.status == 200
        assert PATH in await resp.text()

    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status == 200
        assert await resp.json() == {"status": "ok", "service": "vercord"}


class TestWebhookPath:
    def test_leading_slash_added(self):
        server = WebhookServer(ServerConfig(path="hooks/vercel"), SECRET, notifier=None)
        assert server.path == "/hooks/vercel"


class TestIgnoredEnvelopes:
    @pytest.mark.parametrize("payload", [None, [], "text", 3])
    async def test_ignored_type_with_any_payload(self, client, upstream, payload):
        resp = await post_event(client, {"type": "deployment.created", "payload": payload})

        assert resp.status == 200
        assert upstream.discord_requests == []

    async def test_missing_type_is_ignored(self, client, upstream):
        resp = await post_event(client, {"payload": {}})

        assert resp.status == 200
        assert upstream.discord_requests == []

    async def test_terminal_type_with_null_payload_returns_500(self, client, upstream):
        resp = await post_event(client, {"type": "deployment.succeeded", "payload": None})

        assert resp.status == 500
        assert upstream.discord_requests == []

    async def test_non_object_body_returns_500(self, client, upstream):
        resp = await post_event(client, ["deployment.succeeded"])

        assert resp.status == 500
        assert upstream.discord_requests == []


class TestRequestLogging:
    async def test_lines_carry_event_id(self, client, upstream, make_event, log_output):
        upstream.logs = [{"type": "error", "payload": {"text": "Error: build failed"}}]
        resp = await post_event(client, make_event("deployment.error"))
        assert resp.status == 200

        by_event = {entry["event"]: entry for entry in log_output.entries}
        for name in ("deployment_event", "build_logs_fetched", "discord_delivery_sent"):
            assert by_event[name]["event_id"] == "evt_123"
            assert by_event[name]["event_type"] == "deployment.error"

    async def test_context_cleared_after_request(self, client, make_event, log_output):
        await post_event(client, make_event())
        await client.get("/health")
        await post_event(client, make_event(), signature="0" * 40)

        mismatch = [e for e in log_output.entries if e["event"] == "signature_mismatch"]
        assert mismatch
        assert "event_id" not in mismatch[0]

    async def test_body_preview_is_debug_and_bounded(self, client, make_event, log_output):
        event = make_event(githubCommitMessage="x" * 500)
        await post_event(client, event)

        previews = [e for e in log_output.entries if e["event"] == "webhook_body_preview"]
        assert len(previews) == 1
        assert previews[0]["log_level"] == "debug"
        assert len(previews[0]["preview"]) == 200
        assert json.dumps(event).startswith(previews[0]["preview"])
        # Full body never logged
        assert not any("x" * 500 in str(e) for e in log_output.entries)
