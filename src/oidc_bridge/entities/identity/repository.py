from datetime import datetime

from loguru import logger
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from oidc_bridge.entities._base import utc_now
from oidc_bridge.entities.identity.entity import Identity
from oidc_bridge.entities.identity.table import IdentityTable


class IdentityRepository:
    """Data-access layer for legacy identity mappings."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row_for_external_user(self, oidc_userid: str) -> IdentityTable | None:
        statement = select(IdentityTable).where(IdentityTable.oidc_userid == oidc_userid)
        return self._session.exec(statement).first()

    def get_identity_for_external_user(self, oidc_userid: str | None) -> Identity | None:
        if not oidc_userid:
            return None
        row = self._row_for_external_user(oidc_userid)
        if row is None:
            logger.debug("Identity for: {} not found.", oidc_userid)
            return None
        return Identity.model_validate(row)

    def get_local_user_id(self, oidc_userid: str | None) -> str | None:
        """Return the local account id mapped to an external user id."""
        identity = self.get_identity_for_external_user(oidc_userid)
        return identity.local_userid if identity else None

    def get_identity_for_local_user(self, local_userid: str) -> Identity | None:
        statement = select(IdentityTable).where(IdentityTable.local_userid == local_userid)
        rows = self._session.exec(statement).all()
        if not rows:
            logger.debug("Identity for local user: {} not found.", local_userid)
            return None
        if len(rows) > 1:
            logger.error("There are multiple identities for: {}", local_userid)
            return None
        return Identity.model_validate(rows[0])

    def find_identities(
        self, nickname: str = "", limit: int | None = None, offset: int | None = None
    ) -> list[Identity]:
        """Find identities by nickname, ignoring case."""
        statement = (
            select(IdentityTable)
            .where(func.lower(IdentityTable.nickname) == nickname.lower())
            .order_by(IdentityTable.oidc_userid)
        )
        if offset is not None:
            statement = statement.offset(offset)
        if limit is not None:
            statement = statement.limit(limit)
        return [Identity.model_validate(row) for row in self._session.exec(statement)]

    def all_identities(
        self, limit: int | None = None, offset: int | None = None
    ) -> list[Identity]:
        statement = select(IdentityTable).order_by(IdentityTable.oidc_userid)
        if offset is not None:
            statement = statement.offset(offset)
        if limit is not None:
            statement = statement.limit(limit)
        return [Identity.model_validate(row) for row in self._session.exec(statement)]

    def find_expired(self, threshold: datetime) -> list[str]:
        """Local account ids whose most recent login is at or before ``threshold``."""
        statement = (
            select(IdentityTable.local_userid)
            .group_by(IdentityTable.local_userid)
            .having(func.max(IdentityTable.last_seen) <= threshold)
            .order_by(IdentityTable.local_userid)
        )
        return list(dict.fromkeys(self._session.exec(statement)))

    def add_identity(
        self,
        oidc_userid: str,
        local_userid: str,
        nickname: str | None = None,
        last_seen: datetime | None = None,
    ) -> Identity | None:
        """Persist a new identity mapping; duplicates are logged, not raised."""
        if not oidc_userid:
            logger.error("Cannot add OIDC identity with empty OIDC userid.")
            return None

        row = IdentityTable(
            oidc_userid=oidc_userid,
            local_userid=local_userid,
            nickname=nickname,
            last_seen=last_seen or utc_now(),
        )
        logger.info("Creating identity mapping: {} -> {}.", oidc_userid, local_userid)
        self._session.add(row)
        try:
            self._session.commit()
        except IntegrityError:
            self._session.rollback()
            logger.error(
                "Failed to create mapping: {} -> {}. "
                "Mapping for this OIDC identity already exists.",
                oidc_userid,
                local_userid,
            )
            return None
        self._session.refresh(row)
        return Identity.model_validate(row)

    def touch(self, oidc_userid: str, when: datetime | None = None) -> bool:
        """Record a login for an identity; False when no mapping exists."""
        row = self._row_for_external_user(oidc_userid)
        if row is None:
            return False
        row.last_seen = when or utc_now()
        self._session.add(row)
        self._session.commit()
        return True
