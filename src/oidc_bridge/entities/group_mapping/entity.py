from pydantic import Field

from oidc_bridge.entities._base import Entity


class GroupMapping(Entity):
    """Link between an external (provider side) group and a local group."""

    oidc_group_uuid: str = Field(description="Persistent UUID of the external group")
    local_group_id: str = Field(description="Identifier of the local group")
