"""Main CLI application module."""

import typer

from .config_commands import config_app
from .context import CliState
from .group_commands import groups_app
from .identity_commands import identities_app
from .server_commands import serve

app = typer.Typer(
    help="🔐 oidc-bridge: OpenID Connect identity bridge administration",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def setup(ctx: typer.Context) -> None:
    """Load configuration and open the database once per invocation."""
    if ctx.obj is None:
        ctx.obj = CliState.from_environment()


app.add_typer(groups_app, name="groups")
app.add_typer(identities_app, name="identities")
app.add_typer(config_app, name="config")
app.command(name="serve")(serve)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
