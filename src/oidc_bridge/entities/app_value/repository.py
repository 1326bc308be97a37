from sqlmodel import Session, select

from oidc_bridge.entities.app_value.table import AppValueTable


class AppValueRepository:
    """Data-access layer for app configuration values."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(self, app: str, key: str) -> AppValueTable | None:
        statement = select(AppValueTable).where(
            (AppValueTable.app == app) & (AppValueTable.key == key)
        )
        return self._session.exec(statement).first()

    def get_value(self, app: str, key: str) -> str | None:
        row = self._row(app, key)
        return row.value if row else None

    def set_value(self, app: str, key: str, value: str) -> None:
        row = self._row(app, key)
        if row is None:
            row = AppValueTable(app=app, key=key, value=value)
        else:
            row.value = value
        self._session.add(row)
        self._session.commit()

    def delete_value(self, app: str, key: str) -> bool:
        row = self._row(app, key)
        if row is None:
            return False
        self._session.delete(row)
        self._session.commit()
        return True
