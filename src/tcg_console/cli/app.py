"""Typer CLI root application."""

import typer

from tcg_console.core.config import get_settings
from tcg_console.core.logging import setup_logging

app = typer.Typer(name="tcg-console", help="TCG marketplace operator console")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from tcg_console.cli.catalog_cmd import catalog_app
    from tcg_console.cli.import_cmd import import_app

    app.add_typer(import_app, name="import", help="Catalog import job commands")
    app.add_typer(catalog_app, name="catalog", help="Expansion and set maintenance commands")


_register_subcommands()
