"""Capabilities the bridge consumes from its host environment."""

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from oidc_bridge.core.types.claims import Claims


@runtime_checkable
class Account(Protocol):
    """A local user account."""

    @property
    def uid(self) -> str: ...

    @property
    def backend(self) -> str:
        """Name of the user backend the account belongs to."""
        ...

    @property
    def email(self) -> str | None: ...

    @property
    def display_name(self) -> str | None: ...

    @property
    def enabled(self) -> bool: ...


class AccountStore(Protocol):
    """Host user store."""

    def find_by_email(self, email: str) -> list[Account]: ...

    def find_by_username(self, username: str) -> Account | None: ...

    def create(self, username: str, secret: str) -> Account | None:
        """Create an account, returning None when the store rejects it."""
        ...

    def set_email(self, account: Account, email: str | None) -> None: ...

    def set_display_name(self, account: Account, display_name: str | None) -> None: ...

    def set_enabled(self, account: Account, enabled: bool) -> None: ...

    def set_avatar(self, account: Account, data: bytes) -> None: ...


class Group(Protocol):
    """A local group."""

    @property
    def gid(self) -> str: ...

    def is_member(self, account: Account) -> bool: ...

    def add_member(self, account: Account) -> None: ...

    def remove_member(self, account: Account) -> None: ...


class GroupStore(Protocol):
    """Host group store."""

    def exists(self, gid: str) -> bool: ...

    def get(self, gid: str) -> Group | None: ...

    def create(self, gid: str) -> Group: ...

    def list_member_group_ids(self, account: Account) -> list[str]: ...


class HttpFetcher(Protocol):
    """Outbound HTTP, used to download avatars."""

    def get(self, url: str) -> bytes: ...


class TokenResponse(BaseModel):
    """OIDC token endpoint response."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    id_token: str | None = None


class AuthorizationRequest(BaseModel):
    """Everything needed to send the user to the provider and back."""

    url: str
    state: str
    code_verifier: str
    nonce: str


class TokenSource(Protocol):
    """The OIDC protocol handshake, delegated to a client library."""

    def authorization_request(self, redirect_uri: str) -> AuthorizationRequest: ...

    def authenticate(
        self, code: str, code_verifier: str, redirect_uri: str
    ) -> TokenResponse: ...

    def fetch_claims(self, tokens: TokenResponse) -> Claims: ...

    def well_known_config(self) -> dict[str, Any]: ...
