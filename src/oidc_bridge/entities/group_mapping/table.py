from sqlalchemy import Column, String, UniqueConstraint
from sqlmodel import Field

from oidc_bridge.entities._base import EntityTable


class GroupMappingTable(EntityTable, table=True):
    """Persistence model for external group mappings."""

    __tablename__ = "oidc_groups_mapping"
    __table_args__ = (
        UniqueConstraint("oidc_group_uuid", name="uq_groups_mapping_uuid"),
    )

    oidc_group_uuid: str = Field(sa_column=Column(String(255), nullable=False))
    local_group_id: str = Field(
        sa_column=Column(String(255), nullable=False, index=True)
    )
