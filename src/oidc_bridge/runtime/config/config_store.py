"""Configuration slots and resolution of the OpenID configuration."""

import json
from collections.abc import Mapping
from typing import Any, Protocol

from loguru import logger
from pydantic import ValidationError
from sqlmodel import Session

from oidc_bridge.core.exceptions import ConfigurationError
from oidc_bridge.entities.app_value import AppValueRepository
from oidc_bridge.runtime.config.config_data import ConfigData, OpenIdConfig

OPENID_CONFIG_KEY = "openid-connect"


class ConfigStore(Protocol):
    """Read access to the system (installation) and app (deployment) slots."""

    def get_system_value(self, key: str) -> Any | None: ...

    def get_app_value(self, key: str) -> str | None: ...


class StaticConfigStore:
    """Config store backed by in-memory values."""

    def __init__(
        self,
        system: Mapping[str, Any] | None = None,
        app: Mapping[str, str] | None = None,
    ):
        self._system = dict(system or {})
        self._app = dict(app or {})

    def get_system_value(self, key: str) -> Any | None:
        return self._system.get(key)

    def get_app_value(self, key: str) -> str | None:
        return self._app.get(key)


class SqlConfigStore:
    """System slot from config.yaml, app slot from the ``appvalue`` table."""

    def __init__(self, config: ConfigData, session: Session):
        self._config = config
        self._app_values = AppValueRepository(session)

    def get_system_value(self, key: str) -> Any | None:
        if key == OPENID_CONFIG_KEY:
            return self._config.openid_connect
        return None

    def get_app_value(self, key: str) -> str | None:
        return self._app_values.get_value(self._config.app.app_id, key)


class OpenIdConfigLoader:
    """Resolves the OpenID configuration from a config store.

    The app slot takes precedence when it holds a non-empty value. A value
    that is not valid JSON is logged and the system slot is used instead.
    Nothing is cached: every call reads the store again.
    """

    def __init__(self, store: ConfigStore):
        self._store = store

    def load_raw(self) -> dict[str, Any] | None:
        raw = self._store.get_app_value(OPENID_CONFIG_KEY)
        if raw:
            try:
                value = json.loads(raw)
            except json.JSONDecodeError as e:
                logger.error(
                    "Loaded config from DB is not valid (malformed JSON): {}", e
                )
            else:
                if isinstance(value, dict):
                    return value
                logger.error(
                    "Loaded config from DB is not a JSON object, got {}",
                    type(value).__name__,
                )
        return self._store.get_system_value(OPENID_CONFIG_KEY)

    def load(self) -> OpenIdConfig | None:
        raw = self.load_raw()
        if raw is None:
            return None
        try:
            return OpenIdConfig.model_validate(raw)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid OpenID configuration: {e}") from e

    def require(self) -> OpenIdConfig:
        config = self.load()
        if config is None:
            raise ConfigurationError("Configuration issue in openidconnect app")
        return config
