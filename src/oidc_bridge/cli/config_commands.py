"""Management of the app configuration slot."""

import json

import typer
from pydantic import ValidationError

from oidc_bridge.entities import AppValueRepository
from oidc_bridge.runtime.config import OpenIdConfig
from oidc_bridge.runtime.config.config_store import OPENID_CONFIG_KEY

from .context import console, fail, get_state

config_app = typer.Typer(help="⚙️  Manage the stored OpenID configuration")


@config_app.command("get")
def get_config(ctx: typer.Context) -> None:
    """Print the stored OpenID configuration."""
    state = get_state(ctx)
    with state.session() as db:
        value = AppValueRepository(db).get_value(state.config.app.app_id, OPENID_CONFIG_KEY)

    if value is None:
        console.print("[yellow]No OpenID configuration is stored[/yellow]")
        return
    console.print_json(value)


@config_app.command("set")
def set_config(
    ctx: typer.Context,
    value: str = typer.Argument(..., help="OpenID configuration as a JSON object"),
) -> None:
    """Store an OpenID configuration, overriding config.yaml."""
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise fail(f"Value is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise fail("Value must be a JSON object")
    try:
        OpenIdConfig.model_validate(parsed)
    except ValidationError as e:
        raise fail(f"Invalid OpenID configuration: {e}") from e

    state = get_state(ctx)
    with state.session() as db:
        AppValueRepository(db).set_value(
            state.config.app.app_id, OPENID_CONFIG_KEY, json.dumps(parsed)
        )
    console.print("[green]✅ OpenID configuration stored[/green]")


@config_app.command("delete")
def delete_config(ctx: typer.Context) -> None:
    """Remove the stored OpenID configuration."""
    state = get_state(ctx)
    with state.session() as db:
        deleted = AppValueRepository(db).delete_value(
            state.config.app.app_id, OPENID_CONFIG_KEY
        )

    if not deleted:
        console.print("[yellow]No OpenID configuration is stored[/yellow]")
        return
    console.print("[green]✅ OpenID configuration deleted[/green]")
