"""Helpers shared by CLI command groups."""

import typer

from tcg_console.core.config import Settings
from tcg_console.lib.transport import ApiClient
from tcg_console.services.catalog_service import Notice, NoticeLevel

_NOTICE_COLORS = {
    NoticeLevel.SUCCESS: typer.colors.GREEN,
    NoticeLevel.WARNING: typer.colors.YELLOW,
    NoticeLevel.ERROR: typer.colors.RED,
    NoticeLevel.INFO: typer.colors.BLUE,
}


def build_client(settings: Settings) -> ApiClient:
    """Create the backend client used by every command."""
    return ApiClient.from_settings(settings)


def confirm(prompt: str) -> bool:
    """Ask the operator a yes/no question; defaults to no."""
    return typer.confirm(prompt, default=False)


def echo_notice(notice: Notice) -> None:
    """Print a notice, coloured by level; errors go to stderr."""
    label = typer.style(notice.level.value.upper(), fg=_NOTICE_COLORS[notice.level], bold=True)
    typer.echo(f"{label} {notice.text}", err=notice.level is NoticeLevel.ERROR)
