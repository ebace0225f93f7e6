"""Build log excerpts for failed deployments via the Vercel events API."""

from __future__ import annotations

from typing import Any

import httpx

from vercord.config import DEFAULT_VERCEL_API_URL
from vercord.errors import LogFetchFailure
from vercord.utils.logging import get_logger

log = get_logger(__name__)

MAX_LOG_CHARS = 1500
TAIL_LINES = 30

NO_TOKEN_PLACEHOLDER = "Build logs unavailable (VERCEL_TOKEN not configured)"
NO_LOGS_PLACEHOLDER = "No logs available"

_ERROR_TYPES = frozenset({"stderr", "error"})
_OUTPUT_TYPES = frozenset({"stdout", "stderr"})


# ---------------------------------------------------------------------------
# Selection policy
# ---------------------------------------------------------------------------

def _event_text(event: dict[str, Any]) -> str:
    payload = event.get("payload")
    if isinstance(payload, dict) and payload.get("text"):
        return str(payload["text"])
    return str(event.get("text") or "")


def _is_error_line(event: dict[str, Any], text: str) -> bool:
    kind = event.get("type")
    if kind in _ERROR_TYPES:
        return True
    return kind == "stdout" and "error" in text.lower()


def select_log_excerpt(events: list[Any]) -> str:
    """Pick the log lines worth showing in a failure notification.

    Error lines win; otherwise the last ``TAIL_LINES`` output lines are used.
    The result never exceeds ``MAX_LOG_CHARS`` characters and may be empty.
    """
    entries = [event for event in events if isinstance(event, dict)]

    error_lines: list[str] = []
    for event in entries:
        text = _event_text(event)
        if text and _is_error_line(event, text):
            error_lines.append(text)
    if error_lines:
        return "\n".join(error_lines)[:MAX_LOG_CHARS]

    output = [event for event in entries if event.get("type") in _OUTPUT_TYPES]
    lines = [text for text in map(_event_text, output[-TAIL_LINES:]) if text]
    return "\n".join(lines)[:MAX_LOG_CHARS]


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------

class BuildLogFetcher:
    """Fetches a build log excerpt; every failure degrades to placeholder text."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str = "",
        team_id: str = "",
        api_url: str = DEFAULT_VERCEL_API_URL,
    ) -> None:
        self._client = client
        self._token = token
        self._team_id = team_id
        self._api_url = api_url.rstrip("/")

    async def fetch(self, deployment_id: str) -> str:
        if not self._token:
            log.warning("build_logs_skipped", reason="VERCEL_TOKEN not configured")
            return NO_TOKEN_PLACEHOLDER

        try:
            events = await self._fetch_events(deployment_id)
        except LogFetchFailure as exc:
            log.error("build_logs_fetch_failed", deployment_id=deployment_id, error=str(exc))
            return str(exc)

        excerpt = select_log_excerpt(events)
        log.info(
            "build_logs_fetched",
            deployment_id=deployment_id,
            events=len(events),
            length=len(excerpt),
        )
        return excerpt or NO_LOGS_PLACEHOLDER

    async def _fetch_events(self, deployment_id: str) -> list[Any]:
        url = f"{self._api_url}/v3/deployments/{deployment_id}/events"
        params = {"teamId": self._team_id} if self._team_id else None

        try:
            resp = await self._client.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {self._token}"},
            )
        except httpx.HTTPError as exc:
            raise LogFetchFailure(f"Error fetching build logs: {exc}") from exc

        log.debug("vercel_events_response", status=resp.status_code)
        if not resp.is_success:
            log.debug("vercel_events_error_body", body=resp.text[:500])
            raise LogFetchFailure(f"Failed to fetch build logs: {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise LogFetchFailure(f"Error fetching build logs: {exc}") from exc
        if not isinstance(data, list):
            raise LogFetchFailure("Error fetching build logs: unexpected response shape")
        return data
