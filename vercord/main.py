"""Vercord entry point: wires everything together and serves webhooks."""

from __future__ import annotations

import asyncio
import signal
import sys

import click
import httpx

from vercord import __version__
from vercord.config import Settings, load_settings
from vercord.errors import ConfigurationMissing
from vercord.notify.notifier import create_notifier
from vercord.utils.logging import get_logger, setup_logging
from vercord.webhooks.server import WebhookServer

log = get_logger(__name__)


class Vercord:
    """Main application: one shared HTTP client and the webhook server."""

    def __init__(self, settings: Settings) -> None:
        settings.check_required()
        self.settings = settings
        # Library default timeouts apply
        self.http = httpx.AsyncClient()
        self.notifier = create_notifier(settings, self.http)
        self.server = WebhookServer(
            settings.server,
            settings.webhook_integration_secret,
            self.notifier,
        )

    async def start(self) -> None:
        log.info(
            "vercord_starting",
            version=__version__,
            build_logs=bool(self.settings.vercel_token),
            team_scoped=bool(self.settings.vercel_team_id),
        )
        await self.server.start()
        log.info("vercord_ready")

    async def stop(self) -> None:
        log.info("vercord_stopping")
        await self.server.stop()
        await self.http.aclose()
        log.info("vercord_stopped")


async def run(settings: Settings) -> None:
    app = Vercord(settings)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    await app.start()

    try:
        if sys.platform == "win32":
            while not stop_event.is_set():
                await asyncio.sleep(1)
        else:
            await stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        await app.stop()


@click.command()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--port", type=int, default=None, help="Port to listen on")
@click.version_option(__version__, prog_name="vercord")
def cli(config_path: str | None, log_level: str | None, port: int | None) -> None:
    """Forward Vercel deployment webhooks to Discord."""
    settings = load_settings(config_path)
    updates: dict[str, object] = {}
    if log_level:
        updates["log_level"] = log_level
    if port is not None:
        updates["server"] = settings.server.model_copy(update={"port": port})
    if updates:
        settings = settings.model_copy(update=updates)

    setup_logging(level=settings.log_level, json_output=settings.log_json)

    try:
        settings.check_required()
    except ConfigurationMissing as exc:
        log.error("configuration_missing", missing=exc.missing)
        raise click.ClickException(str(exc)) from exc

    asyncio.run(run(settings))


if __name__ == "__main__":
    cli()
