from datetime import datetime

from sqlalchemy import Column, DateTime, String, UniqueConstraint
from sqlmodel import Field

from oidc_bridge.entities._base import EntityTable


class IdentityTable(EntityTable, table=True):
    """Persistence model for legacy identity mappings."""

    __tablename__ = "oidc_users_mapping"
    __table_args__ = (UniqueConstraint("oidc_userid", name="uq_users_mapping_oidc_userid"),)

    oidc_userid: str = Field(sa_column=Column(String(512), nullable=False))
    local_userid: str = Field(sa_column=Column(String(255), nullable=False, index=True))
    nickname: str | None = Field(
        default=None, sa_column=Column(String(255), nullable=True, index=True)
    )
    last_seen: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
