from sqlalchemy import Column, LargeBinary, String, UniqueConstraint
from sqlmodel import Field

from oidc_bridge.entities._base import EntityTable
from oidc_bridge.entities.account.entity import DEFAULT_BACKEND


class AccountTable(EntityTable, table=True):
    """Persistence model for local accounts."""

    __tablename__ = "account"
    __table_args__ = (UniqueConstraint("username", name="uq_account_username"),)

    username: str = Field(sa_column=Column(String(255), nullable=False))
    email: str | None = Field(
        default=None, sa_column=Column(String(320), nullable=True, index=True)
    )
    display_name: str | None = Field(default=None)
    enabled: bool = Field(default=False)
    backend: str = Field(default=DEFAULT_BACKEND)
    password_hash: str = Field(default="")
    avatar: bytes | None = Field(
        default=None, sa_column=Column(LargeBinary, nullable=True)
    )


class LocalGroupTable(EntityTable, table=True):
    """Persistence model for local groups."""

    __tablename__ = "localgroup"
    __table_args__ = (UniqueConstraint("gid", name="uq_localgroup_gid"),)

    gid: str = Field(sa_column=Column(String(255), nullable=False))


class GroupMembershipTable(EntityTable, table=True):
    """Membership of an account in a local group."""

    __tablename__ = "groupmembership"
    __table_args__ = (
        UniqueConstraint("gid", "username", name="uq_groupmembership_gid_username"),
    )

    gid: str = Field(sa_column=Column(String(255), nullable=False, index=True))
    username: str = Field(sa_column=Column(String(255), nullable=False, index=True))
