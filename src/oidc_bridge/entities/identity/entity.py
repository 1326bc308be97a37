from datetime import datetime

from pydantic import Field

from oidc_bridge.entities._base import Entity


class Identity(Entity):
    """Identity mapping linking an external user id to a local account.

    Mappings predate username based lookup and are consulted only when no
    account carries the external user id as its username.
    """

    oidc_userid: str = Field(description="User identifier asserted by the provider")
    local_userid: str = Field(description="Local account this identity maps to")
    nickname: str | None = Field(default=None, description="Nickname of the user")
    last_seen: datetime | None = Field(default=None, description="Time of last login")
