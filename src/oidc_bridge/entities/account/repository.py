from loguru import logger
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from oidc_bridge.core.interfaces import Account as AccountLike
from oidc_bridge.core.security import hash_secret
from oidc_bridge.entities.account.entity import Account
from oidc_bridge.entities.account.table import (
    AccountTable,
    GroupMembershipTable,
    LocalGroupTable,
)


class SqlAccountStore:
    """Account store backed by the ``account`` table."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(self, username: str) -> AccountTable | None:
        statement = select(AccountTable).where(AccountTable.username == username)
        return self._session.exec(statement).first()

    def _update(self, account: AccountLike, **values) -> None:
        row = self._row(account.uid)
        if row is None:
            raise LookupError(f"Account {account.uid} does not exist")
        for name, value in values.items():
            setattr(row, name, value)
        self._session.add(row)
        self._session.commit()
        # Keep the caller's view in sync when it is one of our entities
        if isinstance(account, Account):
            for name, value in values.items():
                if name in Account.model_fields:
                    setattr(account, name, value)

    def find_by_email(self, email: str) -> list[Account]:
        statement = select(AccountTable).where(
            func.lower(AccountTable.email) == email.lower()
        )
        return [Account.model_validate(row) for row in self._session.exec(statement)]

    def find_by_username(self, username: str) -> Account | None:
        row = self._row(username)
        return Account.model_validate(row) if row else None

    def create(self, username: str, secret: str, backend: str | None = None) -> Account | None:
        if not username or self._row(username) is not None:
            return None
        row = AccountTable(username=username, password_hash=hash_secret(secret))
        if backend:
            row.backend = backend
        self._session.add(row)
        try:
            self._session.commit()
        except IntegrityError:
            self._session.rollback()
            logger.error("Account {} could not be created, it already exists", username)
            return None
        self._session.refresh(row)
        return Account.model_validate(row)

    def set_email(self, account: AccountLike, email: str | None) -> None:
        self._update(account, email=email)

    def set_display_name(self, account: AccountLike, display_name: str | None) -> None:
        self._update(account, display_name=display_name)

    def set_enabled(self, account: AccountLike, enabled: bool) -> None:
        self._update(account, enabled=enabled)

    def set_avatar(self, account: AccountLike, data: bytes) -> None:
        self._update(account, avatar=data)

    def get_avatar(self, username: str) -> bytes | None:
        row = self._row(username)
        return row.avatar if row else None


class SqlGroup:
    """A local group bound to a database session."""

    def __init__(self, gid: str, session: Session) -> None:
        self.gid = gid
        self._session = session

    def _membership(self, account: AccountLike) -> GroupMembershipTable | None:
        statement = select(GroupMembershipTable).where(
            (GroupMembershipTable.gid == self.gid)
            & (GroupMembershipTable.username == account.uid)
        )
        return self._session.exec(statement).first()

    def is_member(self, account: AccountLike) -> bool:
        return self._membership(account) is not None

    def add_member(self, account: AccountLike) -> None:
        if self.is_member(account):
            return
        self._session.add(GroupMembershipTable(gid=self.gid, username=account.uid))
        self._session.commit()

    def remove_member(self, account: AccountLike) -> None:
        membership = self._membership(account)
        if membership is None:
            return
        self._session.delete(membership)
        self._session.commit()

    def member_ids(self) -> list[str]:
        statement = (
            select(GroupMembershipTable.username)
            .where(GroupMembershipTable.gid == self.gid)
            .order_by(GroupMembershipTable.username)
        )
        return list(self._session.exec(statement))

    def __repr__(self) -> str:
        return f"SqlGroup({self.gid!r})"


class SqlGroupStore:
    """Group store backed by the ``localgroup`` and ``groupmembership`` tables."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def exists(self, gid: str) -> bool:
        statement = select(LocalGroupTable).where(LocalGroupTable.gid == gid)
        return self._session.exec(statement).first() is not None

    def get(self, gid: str) -> SqlGroup | None:
        if not gid or not self.exists(gid):
            return None
        return SqlGroup(gid, self._session)

    def create(self, gid: str) -> SqlGroup:
        if not self.exists(gid):
            self._session.add(LocalGroupTable(gid=gid))
            self._session.commit()
            logger.info("Created local group {}", gid)
        return SqlGroup(gid, self._session)

    def list_member_group_ids(self, account: AccountLike) -> list[str]:
        statement = (
            select(GroupMembershipTable.gid)
            .where(GroupMembershipTable.username == account.uid)
            .order_by(GroupMembershipTable.gid)
        )
        return list(self._session.exec(statement))
