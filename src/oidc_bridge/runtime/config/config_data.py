"""Pydantic models for the bridge configuration.

``ConfigData`` mirrors the ``config:`` section of config.yaml. The
``openid-connect`` entry is kept as a raw mapping: it is only the system slot
of the OpenID configuration, which is resolved per login by
``OpenIdConfigLoader`` and validated into ``OpenIdConfig``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class _HyphenatedModel(BaseModel):
    """Accepts the hyphenated keys used in stored configuration."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class AutoProvisionConfig(_HyphenatedModel):
    """Creation of local accounts on first login."""

    enabled: bool = Field(default=False, description="Create missing accounts")
    email_claim: str | None = Field(default=None, alias="email-claim")
    display_name_claim: str | None = Field(default=None, alias="display-name-claim")
    picture_claim: str | None = Field(default=None, alias="picture-claim")
    groups: list[str] = Field(
        default_factory=list, description="Groups every new account joins"
    )
    strip_userid_domain: bool = Field(
        default=False,
        alias="strip-userid-domain",
        description="Drop everything from '@' when deriving a username",
    )
    provisioning_claim: str | None = Field(default=None, alias="provisioning-claim")
    provisioning_attribute: str | None = Field(
        default=None, alias="provisioning-attribute"
    )


class AutoUpdateConfig(_HyphenatedModel):
    """Refresh of account attributes on every login."""

    enabled: bool = Field(default=False)
    email_claim: str | None = Field(default=None, alias="email-claim")
    display_name_claim: str | None = Field(default=None, alias="display-name-claim")


class GroupSyncConfig(_HyphenatedModel):
    """Reconciliation of group membership against an entitlement claim."""

    enabled: bool = Field(default=False)
    groups_claim: str | None = Field(
        default="eduperson_entitlement_extended", alias="groups-claim"
    )
    groups_namespace: str = Field(default="geant", alias="groups-namespace")
    groups_realm: str = Field(default="cesnet.cz", alias="groups-realm")
    protected_groups: list[str] = Field(
        default_factory=lambda: ["admin"], alias="protected-groups"
    )


class OpenIdConfig(_HyphenatedModel):
    """The ``openid-connect`` configuration object."""

    # Provider connection, consumed by the token source
    provider_url: str | None = Field(default=None, alias="provider-url")
    client_id: str | None = Field(default=None, alias="client-id")
    client_secret: str | None = Field(default=None, alias="client-secret")
    scopes: list[str] = Field(
        default_factory=lambda: ["openid", "profile", "email"]
    )
    insecure: bool = Field(default=False, description="Skip TLS verification")
    provider_params: dict[str, Any] | None = Field(
        default=None,
        alias="provider-params",
        description="Endpoint overrides for providers without discovery",
    )
    auth_params: dict[str, Any] | None = Field(
        default=None,
        alias="auth-params",
        description="Extra parameters for the authorization request",
    )
    redirect_url: str | None = Field(default=None, alias="redirect-url")
    use_access_token_payload_for_user_info: bool = Field(
        default=False, alias="use-access-token-payload-for-user-info"
    )

    # Identity resolution
    mode: str = Field(default="userid", description="'email' or 'userid'")
    search_attribute: str = Field(default="email", alias="search-attribute")
    allowed_user_backends: list[str] | None = Field(
        default=None, alias="allowed-user-backends"
    )

    auto_provision: AutoProvisionConfig = Field(
        default_factory=AutoProvisionConfig, alias="auto-provision"
    )
    auto_update: AutoUpdateConfig = Field(
        default_factory=AutoUpdateConfig, alias="auto-update"
    )
    group_sync: GroupSyncConfig = Field(
        default_factory=GroupSyncConfig, alias="group-sync"
    )

    # Login eligibility
    eligible_timestamp_claim: str | None = Field(
        default=None, alias="eligible-timestamp-claim"
    )
    eligible_expiry: str = Field(default="-1 year", alias="eligible-expiry")
    eligible_exception_urn: str | None = Field(
        default=None, alias="eligible-exception-urn"
    )

    @property
    def search_by_email(self) -> bool:
        return self.mode == "email"

    @property
    def identity_claim(self) -> str:
        return self.search_attribute

    @property
    def email_claim(self) -> str | None:
        return self.auto_provision.email_claim or self.auto_update.email_claim

    @property
    def display_name_claim(self) -> str | None:
        return (
            self.auto_provision.display_name_claim
            or self.auto_update.display_name_claim
        )

    @property
    def picture_claim(self) -> str | None:
        return self.auto_provision.picture_claim


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="plain", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of rotated log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./oidc_bridge.db", description="Database connection URL"
    )
    echo: bool = Field(default=False, description="Echo SQL statements")
    pool_size: int = Field(default=5, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")


class AppConfig(BaseModel):
    """HTTP application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    app_id: str = Field(
        default="openidconnect", description="Key namespace of the app config slot"
    )
    auth_session_ttl_seconds: int = Field(
        default=600, description="Lifetime of a pending login"
    )

    @property
    def base_url(self) -> str:
        scheme = "https" if self.environment == "production" else "http"
        return f"{scheme}://{self.host}:{self.port}"


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    model_config = ConfigDict(populate_by_name=True)

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    app: AppConfig = Field(default_factory=AppConfig)
    openid_connect: dict[str, Any] | None = Field(
        default=None,
        alias="openid-connect",
        description="System slot of the OpenID configuration",
    )
