from collections.abc import Callable
from dataclasses import dataclass

from oidc_bridge.core.interfaces import HttpFetcher, TokenSource
from oidc_bridge.core.services import AuthlibTokenSource, DbSessionService, HttpxFetcher
from oidc_bridge.core.storage import InMemorySessionStorage, SessionStorage
from oidc_bridge.runtime.config import ConfigData, OpenIdConfig

TokenSourceFactory = Callable[[OpenIdConfig], TokenSource]


@dataclass
class ApplicationDependencies:
    config: ConfigData
    database_service: DbSessionService
    session_storage: SessionStorage
    http_fetcher: HttpFetcher
    token_source_factory: TokenSourceFactory = AuthlibTokenSource

    @classmethod
    def from_config(cls, config: ConfigData) -> "ApplicationDependencies":
        return cls(
            config=config,
            database_service=DbSessionService(config.database, config.app.environment),
            session_storage=InMemorySessionStorage(
                ttl_seconds=config.app.auth_session_ttl_seconds
            ),
            http_fetcher=HttpxFetcher(),
        )
