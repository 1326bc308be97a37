from sqlalchemy import Column, String, Text, UniqueConstraint
from sqlmodel import Field

from oidc_bridge.entities._base import EntityTable


class AppValueTable(EntityTable, table=True):
    """A configuration value scoped to an application id."""

    __tablename__ = "appvalue"
    __table_args__ = (UniqueConstraint("app", "key", name="uq_appvalue_app_key"),)

    app: str = Field(sa_column=Column(String(64), nullable=False))
    key: str = Field(sa_column=Column(String(255), nullable=False))
    value: str = Field(sa_column=Column(Text, nullable=False))
