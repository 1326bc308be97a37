"""State shared by every CLI command."""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import typer
from rich.console import Console
from sqlmodel import Session

from oidc_bridge.core.services import DbSessionService
from oidc_bridge.runtime.config import ConfigData
from oidc_bridge.runtime.logging import configure_logging
from oidc_bridge.runtime.settings import load_config

console = Console()


@dataclass
class CliState:
    config: ConfigData
    database_service: DbSessionService

    @classmethod
    def from_environment(cls) -> "CliState":
        config = load_config()
        configure_logging(config.logging, config.app.environment)
        database_service = DbSessionService(config.database, config.app.environment)
        database_service.create_tables()
        return cls(config=config, database_service=database_service)

    @contextmanager
    def session(self) -> Iterator[Session]:
        with self.database_service.session_scope() as db:
            yield db


def get_state(ctx: typer.Context) -> CliState:
    return ctx.find_root().obj


def fail(message: str) -> typer.Exit:
    """Print an error and return the exit to raise."""
    console.print(f"[red]❌ {message}[/red]")
    return typer.Exit(code=1)
