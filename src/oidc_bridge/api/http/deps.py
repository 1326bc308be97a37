"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, Request
from sqlmodel import Session

from oidc_bridge.api.http.app_data import ApplicationDependencies
from oidc_bridge.core.interfaces import TokenSource
from oidc_bridge.core.services import (
    AutoProvisioningService,
    GroupSyncService,
    LoginFlowService,
    UserLookupService,
)
from oidc_bridge.core.storage import SessionStorage
from oidc_bridge.entities import (
    GroupMappingRepository,
    IdentityRepository,
    SqlAccountStore,
    SqlGroupStore,
)
from oidc_bridge.runtime.config import OpenIdConfigLoader, SqlConfigStore


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_db_session(
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
) -> Iterator[Session]:
    """Yield a database session that is closed after the request."""
    session = app_deps.database_service.get_session()
    try:
        yield session
    finally:
        session.close()


def get_session_storage(
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
) -> SessionStorage:
    return app_deps.session_storage


def get_config_loader(
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
    db: Session = Depends(get_db_session),
) -> OpenIdConfigLoader:
    return OpenIdConfigLoader(SqlConfigStore(app_deps.config, db))


def get_token_source(
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
    loader: OpenIdConfigLoader = Depends(get_config_loader),
) -> TokenSource:
    """Build a token source for the configuration in effect right now."""
    return app_deps.token_source_factory(loader.require())


def get_login_flow_service(
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
    db: Session = Depends(get_db_session),
    loader: OpenIdConfigLoader = Depends(get_config_loader),
) -> LoginFlowService:
    accounts = SqlAccountStore(db)
    groups = SqlGroupStore(db)
    identities = IdentityRepository(db)
    provisioning = AutoProvisioningService(accounts, groups, app_deps.http_fetcher)
    return LoginFlowService(
        config_loader=loader,
        accounts=accounts,
        identities=identities,
        lookup=UserLookupService(accounts, identities, provisioning),
        group_sync=GroupSyncService(groups, GroupMappingRepository(db)),
    )
