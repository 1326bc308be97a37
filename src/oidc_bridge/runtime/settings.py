from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from oidc_bridge.runtime.config.config_data import ConfigData
from oidc_bridge.runtime.config.config_template import load_templated_yaml


class EnvironmentVariables(BaseSettings):
    """Simple primitive values loaded from environment variables and .env files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] | None = Field(
        default=None, validation_alias="APP_ENVIRONMENT"
    )
    log_level: str | None = Field(default=None, validation_alias="LOG_LEVEL")
    database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")
    config_file: Path = Field(
        default=Path("config.yaml"), validation_alias="OIDC_BRIDGE_CONFIG"
    )


def load_config(env: EnvironmentVariables | None = None) -> ConfigData:
    """Load config.yaml and apply environment overrides on top of it."""
    env = env or EnvironmentVariables()
    config = load_templated_yaml(env.config_file)

    if env.environment:
        config.app.environment = env.environment
    if env.log_level:
        config.logging.level = env.log_level
    if env.database_url:
        config.database.url = env.database_url
    return config
