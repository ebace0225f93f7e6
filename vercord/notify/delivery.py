"""Posts composed messages to a Discord webhook."""

from __future__ import annotations

from urllib.parse import urlsplit

import httpx

from vercord.errors import DeliveryFailed
from vercord.notify.composer import DiscordMessage
from vercord.utils.logging import get_logger

log = get_logger(__name__)


class DiscordWebhook:
    def __init__(self, client: httpx.AsyncClient, url: str) -> None:
        self._client = client
        self._url = url

    async def send(self, message: DiscordMessage) -> None:
        """POST the message once. Raises DeliveryFailed on a non-2xx response."""
        # The webhook path embeds its token; only the host is logged
        log.info("discord_delivery_sending", host=urlsplit(self._url).netloc)

        resp = await self._client.post(
            self._url,
            json=message.to_dict(),
            headers={"Content-Type": "application/json"},
        )

        if not resp.is_success:
            log.error("discord_delivery_failed", status=resp.status_code, body=resp.text)
            raise DeliveryFailed(resp.status_code, resp.text)

        log.info("discord_delivery_sent", status=resp.status_code)
