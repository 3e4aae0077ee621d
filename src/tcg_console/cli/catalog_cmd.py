"""CLI commands for expansion and set maintenance.

Deletes and resets ask for confirmation on the terminal; reload does not.
"""

import asyncio
from typing import Annotated

import typer

from tcg_console.lib.catalog import NodeType

catalog_app = typer.Typer()


@catalog_app.command("delete")
def delete(
    node_type: Annotated[NodeType, typer.Argument(help="Node type: expansion or set", case_sensitive=False)],
    node_id: Annotated[str, typer.Argument(help="Backend id of the node")],
    name: Annotated[str | None, typer.Option("--name", help="Display name used in prompts")] = None,
) -> None:
    """Delete an expansion or set, confirming any cascade first."""
    asyncio.run(_delete_impl(node_type, node_id, name))


async def _delete_impl(node_type: NodeType, node_id: str, name: str | None) -> None:
    """Async implementation of the delete command."""
    from tcg_console.cli import common
    from tcg_console.core.config import get_settings
    from tcg_console.services.catalog_service import CatalogConsole, NoticeLevel

    settings = get_settings()
    async with common.build_client(settings) as client:
        console = CatalogConsole(client, common.confirm)
        notice = await console.delete_node(node_type, node_id, name)

    common.echo_notice(notice)
    if notice.level is NoticeLevel.ERROR:
        raise typer.Exit(code=1)


@catalog_app.command("reset")
def reset(
    set_id: Annotated[str, typer.Argument(help="Backend id of the set")],
    source: Annotated[str, typer.Option("--source", help="Set code in the external catalog")],
    name: Annotated[str | None, typer.Option("--name", help="Display name used in prompts")] = None,
) -> None:
    """Delete every card of a set and re-import it from the external catalog."""
    asyncio.run(_reset_impl(set_id, source, name))


async def _reset_impl(set_id: str, source: str, name: str | None) -> None:
    """Async implementation of the reset command."""
    from tcg_console.cli import common
    from tcg_console.core.config import get_settings
    from tcg_console.services.catalog_service import CatalogConsole, NoticeLevel

    settings = get_settings()
    async with common.build_client(settings) as client:
        console = CatalogConsole(client, common.confirm)
        try:
            notice = await console.reset_set(set_id, source, name)
        except ValueError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(code=1) from exc

    common.echo_notice(notice)
    if notice.level is NoticeLevel.ERROR:
        raise typer.Exit(code=1)


@catalog_app.command("reload")
def reload(
    set_id: Annotated[str, typer.Argument(help="Backend id of the set")],
    name: Annotated[str | None, typer.Option("--name", help="Display name used in messages")] = None,
) -> None:
    """Add cards of a set that are missing, leaving existing cards untouched."""
    asyncio.run(_reload_impl(set_id, name))


async def _reload_impl(set_id: str, name: str | None) -> None:
    """Async implementation of the reload command."""
    from tcg_console.cli import common
    from tcg_console.core.config import get_settings
    from tcg_console.services.catalog_service import CatalogConsole, NoticeLevel

    settings = get_settings()
    async with common.build_client(settings) as client:
        console = CatalogConsole(client, common.confirm)
        notice = await console.reload_set(set_id, name)

    common.echo_notice(notice)
    if notice.level is NoticeLevel.ERROR:
        raise typer.Exit(code=1)
