"""Deployment event dispatch: kind → log fetch → compose → deliver."""

from __future__ import annotations

import httpx

from vercord.config import Settings
from vercord.notify.composer import compose_message, deployment_status, wants_build_logs
from vercord.notify.delivery import DiscordWebhook
from vercord.utils.logging import get_logger
from vercord.vercel.logs import BuildLogFetcher
from vercord.webhooks.handlers import parse_deployment
from vercord.webhooks.models import VercelEvent

log = get_logger(__name__)


class DeploymentNotifier:
    """Turns terminal deployment events into Discord notifications."""

    def __init__(
        self,
        delivery: DiscordWebhook,
        log_fetcher: BuildLogFetcher | None = None,
    ) -> None:
        self._delivery = delivery
        self._log_fetcher = log_fetcher

    async def handle(self, event: VercelEvent) -> bool:
        """Notify for ``event``. Returns False when the event type is ignored."""
        kind = event.kind
        if not kind.is_terminal:
            log.info("deployment_event_ignored", event_type=event.type)
            return False

        payload = parse_deployment(event)
        deployment = payload.deployment
        status = deployment_status(event.type)

        log.info(
            "deployment_event",
            kind=kind.name,
            project=deployment.name,
            deployment_id=deployment.id,
            url=deployment.url,
            branch=deployment.meta.commit_ref,
            commit=(deployment.meta.commit_sha or "")[:7],
            message=(deployment.meta.commit_message or "")[:50],
        )

        build_logs = None
        if self._log_fetcher is not None and wants_build_logs(status):
            build_logs = await self._log_fetcher.fetch(deployment.id)

        message = compose_message(event.type, payload, build_logs)
        await self._delivery.send(message)
        return True


def create_notifier(settings: Settings, client: httpx.AsyncClient) -> DeploymentNotifier:
    """Wire the notifier from settings, sharing one HTTP client."""
    fetcher = BuildLogFetcher(
        client,
        token=settings.vercel_token,
        team_id=settings.vercel_team_id,
        api_url=settings.vercel_api_url,
    )
    delivery = DiscordWebhook(client, settings.discord_webhook_url)
    return DeploymentNotifier(delivery, fetcher)
