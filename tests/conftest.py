"""Shared fixtures: Vercel event bodies."""

from typing import Any

import pytest
import structlog
from structlog.testing import LogCapture


DEFAULT_META = {
    "githubCommitRef": "main",
    "githubCommitSha": "abc1234",
    "githubCommitOrg": "acme",
    "githubCommitRepo": "site",
    "githubCommitMessage": "fix bug",
}


_SETTINGS_ENV = (
    "WEBHOOK_INTEGRATION_SECRET",
    "DISCORD_WEBHOOK_URL",
    "VERCEL_TOKEN",
    "VERCEL_TEAM_ID",
    "VERCEL_API_URL",
    "SERVER__BIND",
    "SERVER__PORT",
    "SERVER__PATH",
    "LOG_LEVEL",
    "LOG_JSON",
    "VERCORD_CONFIG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of Settings()."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def log_output():
    """Capture structlog entries, including bound contextvars."""
    capture = LogCapture()
    structlog.configure(processors=[structlog.contextvars.merge_contextvars, capture])
    yield capture
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


@pytest.fixture
def make_event():
    """Build a Vercel webhook body as a dict."""

    def _make(event_type: str = "deployment.succeeded", **meta: Any) -> dict[str, Any]:
        return {
            "id": "evt_123",
            "type": event_type,
            "createdAt": 1700000000000,
            "payload": {
                "deployment": {
                    "id": "dpl_abc",
                    "name": "site",
                    "url": "site-abc.vercel.app",
                    "meta": {**DEFAULT_META, **meta},
                },
                "links": {
                    "deployment": "https://vercel.com/acme/site/dpl_abc",
                    "project": "https://vercel.com/acme/site",
                },
            },
        }

    return _make
