from __future__ import annotations

from collections.abc import Generator
from typing import Any

import pytest
from sqlmodel import Session

from oidc_bridge.core.services import DbSessionService
from oidc_bridge.runtime.config import ConfigData, OpenIdConfig
from oidc_bridge.runtime.config.config_data import AppConfig, DatabaseConfig

__all__ = [
    "build_openid_config",
    "config_data",
    "database_service",
    "db_session",
    "openid_config",
]


def build_openid_config(data: dict[str, Any] | None = None, **fields: Any) -> OpenIdConfig:
    """Build an OpenID configuration from hyphenated keys and/or field names."""
    return OpenIdConfig.model_validate({**(data or {}), **fields})


@pytest.fixture
def openid_config() -> OpenIdConfig:
    """Userid mode on ``sub`` with provisioning and group sync enabled."""
    return build_openid_config(
        {
            "mode": "userid",
            "search-attribute": "sub",
            "auto-provision": {
                "enabled": True,
                "email-claim": "email",
                "display-name-claim": "name",
            },
            "group-sync": {"enabled": True},
        }
    )


@pytest.fixture
def config_data(openid_config: OpenIdConfig) -> ConfigData:
    return ConfigData(
        database=DatabaseConfig(url="sqlite://"),
        app=AppConfig(environment="test"),
        openid_connect=openid_config.model_dump(by_alias=True),
    )


@pytest.fixture
def database_service(config_data: ConfigData) -> Generator[DbSessionService, None, None]:
    """In-memory database with every table created."""
    service = DbSessionService(config_data.database, environment="test")
    service.create_tables()
    yield service
    service.close()


@pytest.fixture
def db_session(database_service: DbSessionService) -> Generator[Session, None, None]:
    session = database_service.get_session()
    yield session
    session.close()
