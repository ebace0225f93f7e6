"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from vercord.errors import ConfigurationMissing

DEFAULT_VERCEL_API_URL = "https://api.vercel.com"
DEFAULT_WEBHOOK_PATH = "/api/vercel-webhook"

_REQUIRED = ("webhook_integration_secret", "discord_webhook_url")


class ServerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    bind: str = "0.0.0.0"
    port: int = 3000
    path: str = DEFAULT_WEBHOOK_PATH


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
        frozen=True,
    )

    webhook_integration_secret: str = ""
    discord_webhook_url: str = ""
    # Build log enrichment is only attempted with a token
    vercel_token: str = ""
    vercel_team_id: str = ""
    vercel_api_url: str = DEFAULT_VERCEL_API_URL
    server: ServerConfig = Field(default_factory=ServerConfig)
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over values passed in from the YAML file
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    def check_required(self) -> None:
        """Raise ConfigurationMissing listing every absent required value."""
        missing = [name.upper() for name in _REQUIRED if not getattr(self, name)]
        if missing:
            raise ConfigurationMissing(missing)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config."""
    yaml_data: dict[str, Any] = {}

    if config_path is None:
        config_path = os.environ.get("VERCORD_CONFIG")

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    # YAML values as defaults, env vars override
    return Settings(**yaml_data)
