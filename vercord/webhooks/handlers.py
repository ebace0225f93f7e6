"""Webhook signature validation and event parsing."""

from __future__ import annotations

import hashlib
import hmac

from pydantic import ValidationError

from vercord.errors import InvalidSignature, MalformedPayload
from vercord.webhooks.models import DeploymentPayload, VercelEvent

SIGNATURE_HEADER = "x-vercel-signature"


# ---------------------------------------------------------------------------
# Signature validation
# ---------------------------------------------------------------------------

def compute_signature(body: bytes, secret: str) -> str:
    """Lowercase hex HMAC-SHA1 of the raw body, as Vercel sends it."""
    return hmac.new(secret.encode(), body, hashlib.sha1).hexdigest()


def verify_signature(body: bytes, signature: str, secret: str) -> bool:
    """Validate the Vercel signature header via constant-time comparison.

    Returns False if no secret is configured (rejects unauthenticated requests).
    """
    if not secret:
        return False
    if not signature or not signature.isascii():
        return False
    return hmac.compare_digest(compute_signature(body, secret), signature)


def authenticate(body: bytes, signature: str, secret: str) -> None:
    if not verify_signature(body, signature, secret):
        raise InvalidSignature("signature didn't match")


# ---------------------------------------------------------------------------
# Event parsing
# ---------------------------------------------------------------------------

def parse_event(body: bytes) -> VercelEvent:
    """Parse the raw body into an event envelope."""
    try:
        return VercelEvent.model_validate_json(body)
    except ValidationError as exc:
        raise MalformedPayload(f"invalid webhook body: {exc}") from exc


def parse_deployment(event: VercelEvent) -> DeploymentPayload:
    """Parse the deployment payload carried by a terminal deployment event."""
    try:
        return DeploymentPayload.model_validate(event.payload)
    except ValidationError as exc:
        raise MalformedPayload(f"invalid deployment payload in {event.type}: {exc}") from exc
