from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from oidc_bridge.entities.group_mapping.entity import GroupMapping
from oidc_bridge.entities.group_mapping.table import GroupMappingTable


class GroupMappingRepository:
    """Data-access layer for external group mappings."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(self, oidc_group_uuid: str) -> GroupMappingTable | None:
        statement = select(GroupMappingTable).where(
            GroupMappingTable.oidc_group_uuid == oidc_group_uuid
        )
        return self._session.exec(statement).first()

    def get(self, oidc_group_uuid: str) -> GroupMapping | None:
        row = self._row(oidc_group_uuid)
        if row is None:
            logger.debug("Group mapping for: {} not found.", oidc_group_uuid)
            return None
        return GroupMapping.model_validate(row)

    def get_group_id(self, oidc_group_uuid: str) -> str | None:
        """Return the local group id mapped to an external group UUID."""
        mapping = self.get(oidc_group_uuid)
        return mapping.local_group_id if mapping else None

    def add_group_mapping(
        self, oidc_group_uuid: str, local_group_id: str
    ) -> GroupMapping | None:
        """Persist a new mapping.

        Empty identifiers and duplicates are logged and yield None; they are
        never raised to the caller.
        """
        if not oidc_group_uuid or not local_group_id:
            logger.error("Cannot add group mapping without OIDC or local group ID.")
            return None

        row = GroupMappingTable(
            oidc_group_uuid=oidc_group_uuid, local_group_id=local_group_id
        )
        logger.info("Adding group mapping: {} -> {}.", oidc_group_uuid, local_group_id)
        self._session.add(row)
        try:
            self._session.commit()
        except IntegrityError:
            self._session.rollback()
            logger.error(
                "Failed to create mapping: {} -> {}. "
                "Mapping for this group already exists.",
                oidc_group_uuid,
                local_group_id,
            )
            return None
        self._session.refresh(row)
        return GroupMapping.model_validate(row)

    def delete(self, oidc_group_uuid: str) -> GroupMapping | None:
        """Remove a mapping, returning it, or None when there was none."""
        row = self._row(oidc_group_uuid)
        if row is None:
            return None
        mapping = GroupMapping.model_validate(row)
        self._session.delete(row)
        self._session.commit()
        logger.info(
            "Removed group mapping: {} -> {}.", oidc_group_uuid, mapping.local_group_id
        )
        return mapping

    def list(self, limit: int | None = None, offset: int | None = None) -> list[GroupMapping]:
        statement = select(GroupMappingTable).order_by(GroupMappingTable.oidc_group_uuid)
        if offset is not None:
            statement = statement.offset(offset)
        if limit is not None:
            statement = statement.limit(limit)
        return [
            GroupMapping.model_validate(row) for row in self._session.exec(statement)
        ]
