from typing import Any

from pydantic import Field

from oidc_bridge.entities._base import Entity

DEFAULT_BACKEND = "Database"


class Account(Entity):
    """A local user account."""

    username: str = Field(description="Unique login name")
    email: str | None = Field(default=None)
    display_name: str | None = Field(default=None)
    enabled: bool = Field(default=False)
    backend: str = Field(default=DEFAULT_BACKEND, description="User backend name")

    @property
    def uid(self) -> str:
        return self.username

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Account):
            return False
        return self.username == other.username

    def __hash__(self) -> int:
        return hash(self.username)
