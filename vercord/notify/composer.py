"""Builds the Discord embed for a deployment event."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from vercord.webhooks.models import DeploymentPayload

SUCCESS_STATUS = "SUCCEEDED"
SUCCESS_COLOR = 3066993
FAILURE_COLOR = 15158332

COMMIT_URL_TEMPLATE = "https://github.com/{org}/{repo}/commit/{sha}"
LOG_FENCE = "```"

# Statuses whose notification carries a build log excerpt
LOG_STATUSES = frozenset({"ERROR", "CANCELED"})

_UNKNOWN = "unknown"


@dataclass(frozen=True)
class EmbedField:
    name: str
    value: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "value": self.value}


@dataclass
class Embed:
    title: str
    url: str
    description: str
    color: int
    fields: list[EmbedField] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "color": self.color,
            "fields": [f.to_dict() for f in self.fields],
        }
        if self.url:
            data["url"] = self.url
        return data


@dataclass
class DiscordMessage:
    embeds: list[Embed]
    content: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "embeds": [e.to_dict() for e in self.embeds],
        }


def deployment_status(event_type: str) -> str:
    """``deployment.error`` -> ``ERROR``."""
    _, _, state = event_type.partition(".")
    return (state or event_type).upper()


def status_color(status: str) -> int:
    return SUCCESS_COLOR if status == SUCCESS_STATUS else FAILURE_COLOR


def wants_build_logs(status: str) -> bool:
    return status in LOG_STATUSES


def commit_url(org: str, repo: str, sha: str) -> str:
    return COMMIT_URL_TEMPLATE.format(org=org, repo=repo, sha=sha)


def compose_message(
    event_type: str,
    payload: DeploymentPayload,
    build_logs: str | None = None,
) -> DiscordMessage:
    """Build the notification.

    ``build_logs`` is only rendered for ERROR/CANCELED statuses and only when
    it is non-empty.
    """
    deployment = payload.deployment
    meta = deployment.meta
    name = deployment.name
    status = deployment_status(event_type)

    branch = meta.commit_ref or _UNKNOWN
    sha = meta.commit_sha or _UNKNOWN
    url = commit_url(meta.commit_org or _UNKNOWN, meta.commit_repo or _UNKNOWN, sha)

    fields = [
        EmbedField("Project", f"[{name}]({payload.links.project})"),
        EmbedField("Branch", branch),
        EmbedField("Commit", f"[{sha}]({url})"),
        EmbedField("Commit Message", meta.commit_message or _UNKNOWN),
    ]
    if wants_build_logs(status) and build_logs:
        fields.append(EmbedField("Build Logs", f"{LOG_FENCE}\n{build_logs}\n{LOG_FENCE}"))

    embed = Embed(
        title=f"Deployment of {name} in {branch.upper()}: {status}.",
        url=payload.links.deployment,
        description=f"The deployment for {name} is now {status}.",
        color=status_color(status),
        fields=fields,
    )
    return DiscordMessage(embeds=[embed])
