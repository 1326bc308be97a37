"""External group mapping commands."""

import typer
from rich.table import Table

from oidc_bridge.entities import GroupMappingRepository, SqlGroupStore

from .context import console, fail, get_state

groups_app = typer.Typer(help="🔗 Link external groups to local groups")


@groups_app.command("link")
def link_group(
    ctx: typer.Context,
    external_uuid: str = typer.Argument(
        ..., help="Persistent UUID of the external group"
    ),
    local_group: str = typer.Argument(..., help="Target local group id"),
    create_missing: bool = typer.Option(
        False, "--create-missing", help="Create the local group if it does not exist"
    ),
) -> None:
    """Link an external group to a local group."""
    with get_state(ctx).session() as db:
        groups = SqlGroupStore(db)
        exists = groups.exists(local_group)
        if not exists and create_missing:
            groups.create(local_group)
            console.print(f"[blue]Created local group '{local_group}'[/blue]")
            exists = True

        mapping = None
        if exists:
            repository = GroupMappingRepository(db)
            mapping = repository.add_group_mapping(external_uuid, local_group)

    if not exists:
        raise fail(f"Local group '{local_group}' does not exist. Use --create-missing.")
    if mapping is None:
        raise fail(f"Could not link {external_uuid}: it is already linked or invalid")

    console.print(f"[green]✅ Successfully linked {external_uuid} to {local_group}[/green]")


@groups_app.command("unlink")
def unlink_group(
    ctx: typer.Context,
    external_uuid: str = typer.Argument(
        ..., help="Persistent UUID of the external group"
    ),
) -> None:
    """Remove the link of an external group."""
    with get_state(ctx).session() as db:
        mapping = GroupMappingRepository(db).delete(external_uuid)

    if mapping is None:
        raise fail(f"No local group is linked to {external_uuid}")
    console.print(
        f"[green]✅ Successfully unlinked {external_uuid} "
        f"from {mapping.local_group_id}[/green]"
    )


@groups_app.command("list")
def list_groups(
    ctx: typer.Context,
    limit: int | None = typer.Option(None, "--limit", "-l", help="Maximum rows"),
    offset: int | None = typer.Option(None, "--offset", help="Rows to skip"),
) -> None:
    """List external groups and the local groups they are linked to."""
    with get_state(ctx).session() as db:
        mappings = GroupMappingRepository(db).list(limit=limit, offset=offset)

    if not mappings:
        console.print("[yellow]No external groups are linked[/yellow]")
        return

    table = Table(title="External group links")
    table.add_column("External UUID", style="cyan")
    table.add_column("Local group", style="green")
    for mapping in mappings:
        table.add_row(mapping.oidc_group_uuid, mapping.local_group_id)

    console.print(table)
    console.print(f"\n[green]Found {len(mappings)} links[/green]")
