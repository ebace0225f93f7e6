"""Webhook HTTP server using aiohttp."""

from __future__ import annotations

from aiohttp import web

from vercord.config import ServerConfig
from vercord.errors import InvalidSignature, MalformedPayload
from vercord.notify.notifier import DeploymentNotifier
from vercord.utils.logging import event_context, get_logger
from vercord.webhooks.handlers import SIGNATURE_HEADER, authenticate, parse_event

log = get_logger(__name__)

INVALID_SIGNATURE_BODY = {
    "code": "invalid_signature",
    "error": "signature didn't match",
}

_LANDING_TEXT = """Vercel -> Discord

Webhook bridge for Vercel deployment notifications.

Features:
  - Deployment status notifications
  - Build logs on failures
  - Commit info & links

Endpoint:
  POST {path}
"""


class WebhookServer:
    """Receives Vercel webhooks and forwards deployment events to Discord."""

    def __init__(
        self,
        config: ServerConfig,
        secret: str,
        notifier: DeploymentNotifier,
    ) -> None:
        self._config = config
        self._secret = secret
        self._notifier = notifier
        self._runner: web.AppRunner | None = None

    @property
    def path(self) -> str:
        path = self._config.path
        return path if path.startswith("/") else f"/{path}"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        app = self._build_app()
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.bind, self._config.port)
        await site.start()
        log.info(
            "webhook_server_started",
            bind=self._config.bind,
            port=self._config.port,
            path=self.path,
        )

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        log.info("webhook_server_stopped")

    # ------------------------------------------------------------------
    # App construction
    # ------------------------------------------------------------------

    def _build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post(self.path, self._handle_webhook)
        app.router.add_get("/", self._handle_landing)
        app.router.add_get("/health", self._handle_health)
        return app

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def _handle_webhook(self, request: web.Request) -> web.Response:
        body = await request.read()
        log.info("webhook_received", length=len(body))
        log.debug("webhook_body_preview", preview=body[:200].decode("utf-8", "replace"))

        # Mismatches answer 200 so Vercel does not keep redelivering
        try:
            authenticate(body, request.headers.get(SIGNATURE_HEADER, ""), self._secret)
        except InvalidSignature:
            log.warning("signature_mismatch")
            return web.json_response(INVALID_SIGNATURE_BODY)

        try:
            event = parse_event(body)
        except MalformedPayload:
            log.exception("webhook_payload_malformed")
            return web.Response(status=500, text="Internal server error.")

        with event_context(event.id, event.type):
            log.info("webhook_event_parsed", kind=event.kind.name)
            try:
                await self._notifier.handle(event)
            except Exception:
                log.exception("webhook_processing_failed")
                return web.Response(status=500, text="Internal server error.")
            log.info("webhook_processing_complete")

        return web.Response(status=200, text="Notification sent to Discord.")

    async def _handle_landing(self, request: web.Request) -> web.Response:
        return web.Response(text=_LANDING_TEXT.format(path=self.path))

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "service": "vercord"})
