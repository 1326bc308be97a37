"""Database engine and session factory used across the bridge."""

from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import StaticPool, text
from sqlmodel import Session, SQLModel, create_engine

from oidc_bridge.runtime.config.config_data import DatabaseConfig


class DbSessionService:
    def __init__(self, db_config: DatabaseConfig, environment: str = "development"):
        """Initialize the shared database engine."""
        self._config = db_config
        engine_kwargs: dict = {
            "echo": db_config.echo,
            "connect_args": self._get_connect_args(db_config, environment),
        }

        if db_config.url.startswith("sqlite"):
            if ":memory:" in db_config.url or db_config.url == "sqlite://":
                # A single shared connection keeps in-memory data alive
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(
                {
                    "pool_size": db_config.pool_size,
                    "max_overflow": db_config.max_overflow,
                    "pool_timeout": db_config.pool_timeout,
                    "pool_recycle": db_config.pool_recycle,
                    "pool_pre_ping": True,
                }
            )

        logger.info("Initializing database engine for environment: {}", environment)
        self._engine = create_engine(db_config.url, **engine_kwargs)

    @staticmethod
    def _get_connect_args(db_config: DatabaseConfig, environment: str) -> dict:
        connect_args: dict = {}
        if "postgresql" in db_config.url:
            connect_args.update(
                {
                    "application_name": f"oidc_bridge_{environment}",
                    "connect_timeout": 30,
                }
            )
        elif db_config.url.startswith("sqlite"):
            connect_args.update({"check_same_thread": False, "timeout": 20})
            if environment == "production":
                logger.warning(
                    "SQLite is not recommended for production use. "
                    "Consider PostgreSQL for better reliability."
                )
        return connect_args

    @property
    def engine(self):
        return self._engine

    def create_tables(self) -> None:
        """Create every table registered with the SQLModel metadata."""
        # Registers the table models with the metadata
        import oidc_bridge.entities  # noqa: F401

        SQLModel.metadata.create_all(self._engine)

    def get_session(self) -> Session:
        """Return a new SQLModel session bound to the shared engine."""
        return Session(self._engine, expire_on_commit=False)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Yield a session that is committed on success and rolled back on error."""
        db = self.get_session()
        try:
            yield db
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error("Database session rolled back: {}", e)
            raise
        finally:
            db.close()

    def health_check(self) -> bool:
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("Database health check failed: {}", e)
            return False

    def close(self) -> None:
        self._engine.dispose()
