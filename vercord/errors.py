"""Error taxonomy for the webhook bridge."""

from __future__ import annotations


class BridgeError(Exception):
    """Base class for all Vercord errors."""


class ConfigurationMissing(BridgeError):
    """Required configuration is absent; the service must not start."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing required configuration: {', '.join(self.missing)}")


class InvalidSignature(BridgeError):
    """The request body does not match the signature header."""


class MalformedPayload(BridgeError):
    """The request body could not be parsed as a Vercel event."""


class LogFetchFailure(BridgeError):
    """Build logs could not be retrieved.

    The message is the placeholder text shown in place of the logs.
    """


class DeliveryFailed(BridgeError):
    """Discord rejected the notification."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Discord API returned {status_code}: {body}")
