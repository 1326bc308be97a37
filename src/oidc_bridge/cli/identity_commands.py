"""Legacy identity mapping commands."""

import typer
from rich.table import Table

from oidc_bridge.core.services import parse_moment
from oidc_bridge.entities import IdentityRepository

from .context import console, fail, get_state

identities_app = typer.Typer(help="🪪 Inspect external user to local account mappings")


@identities_app.command("list")
def list_identities(
    ctx: typer.Context,
    nickname: str | None = typer.Option(
        None, "--nickname", "-n", help="Only identities with this nickname"
    ),
    limit: int | None = typer.Option(None, "--limit", "-l", help="Maximum rows"),
    offset: int | None = typer.Option(None, "--offset", help="Rows to skip"),
) -> None:
    """List identity mappings."""
    with get_state(ctx).session() as db:
        repository = IdentityRepository(db)
        if nickname is not None:
            identities = repository.find_identities(nickname, limit=limit, offset=offset)
        else:
            identities = repository.all_identities(limit=limit, offset=offset)

    if not identities:
        console.print("[yellow]No identities found[/yellow]")
        return

    table = Table(title="Identity mappings")
    table.add_column("External user", style="cyan")
    table.add_column("Local account", style="green")
    table.add_column("Nickname", style="magenta")
    table.add_column("Last seen", style="blue")
    for identity in identities:
        table.add_row(
            identity.oidc_userid,
            identity.local_userid,
            identity.nickname or "",
            identity.last_seen.isoformat() if identity.last_seen else "",
        )

    console.print(table)
    console.print(f"\n[green]Found {len(identities)} identities[/green]")


@identities_app.command("expired")
def expired_identities(
    ctx: typer.Context,
    before: str = typer.Option(
        ...,
        "--before",
        "-b",
        help="ISO date or relative expression such as '-1 year'",
    ),
) -> None:
    """List local accounts whose last login is at or before a point in time."""
    threshold = parse_moment(before)
    if threshold is None:
        raise fail(f"Cannot parse date '{before}'")

    with get_state(ctx).session() as db:
        local_ids = IdentityRepository(db).find_expired(threshold)

    if not local_ids:
        console.print(f"[yellow]No accounts last seen before {threshold:%Y-%m-%d}[/yellow]")
        return

    for local_id in local_ids:
        console.print(local_id, highlight=False)
    console.print(f"\n[green]Found {len(local_ids)} expired accounts[/green]")
