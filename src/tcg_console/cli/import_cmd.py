"""CLI commands for catalog import jobs.

``run`` submits a tracked job and follows it with a progress bar until the
backend reports a terminal state.  ``trigger`` fires an import and prints
the backend's immediate answer without tracking.
"""

import asyncio
from typing import Annotated

import typer
from loguru import logger
from tqdm import tqdm

from tcg_console.schemas.imports import ImportJob, OperationKind

import_app = typer.Typer()

_StartOption = Annotated[
    int | None,
    typer.Option("--start", help="First item index of a partial import (default: all)"),
]
_EndOption = Annotated[
    int | None,
    typer.Option("--end", help="Last item index of a partial import (default: all)"),
]


def _render_progress(pbar: tqdm, job: ImportJob) -> None:
    """Mirror a job snapshot onto the progress bar."""
    if job.total_known and pbar.total != job.total_count:
        pbar.total = job.total_count
    pbar.n = job.processed_count
    postfix = f"{job.status.value} {job.percent_complete}%"
    if job.status_message:
        postfix = f"{postfix} {job.status_message}"
    pbar.set_postfix_str(postfix, refresh=False)
    pbar.refresh()


@import_app.command("run")
def run(
    kind: Annotated[OperationKind, typer.Argument(help="Catalog family to import", case_sensitive=False)],
    start_index: _StartOption = None,
    end_index: _EndOption = None,
    wait: Annotated[bool, typer.Option("--wait/--no-wait", help="Follow the job until it finishes")] = True,
) -> None:
    """Submit a background import job and follow its progress."""
    asyncio.run(_run_impl(kind.value, start_index, end_index, wait))


async def _run_impl(kind: str, start_index: int | None, end_index: int | None, wait: bool) -> None:
    """Async implementation of the run command."""
    from tcg_console.cli import common
    from tcg_console.core.config import get_settings
    from tcg_console.lib.jobs import HistoryOutcome, JobSubmissionError
    from tcg_console.services.import_service import ImportConsole

    settings = get_settings()
    async with common.build_client(settings) as client:
        with tqdm(total=None, unit="card", desc=kind, leave=True, disable=not wait) as pbar:
            async with ImportConsole.from_settings(
                client,
                settings,
                on_update=lambda job: _render_progress(pbar, job),
            ) as console:
                try:
                    job = await console.start_import(kind, start_index=start_index, end_index=end_index)
                except JobSubmissionError as exc:
                    typer.echo(f"Error: {exc.message}", err=True)
                    raise typer.Exit(code=1) from exc

                if not wait:
                    typer.echo(f"Submitted {kind} import as job {job.id}")
                    return

                logger.info("Following job {}", job.id)
                final = await console.wait_for(job.id)
                _render_progress(pbar, final)

    entry = console.history.entries[0]
    if entry.outcome is HistoryOutcome.ERROR:
        typer.echo(f"Error: job {final.id} failed: {entry.message}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Job {final.id} completed: {entry.message}")


@import_app.command("trigger")
def trigger(
    kind: Annotated[OperationKind, typer.Argument(help="Catalog family to import", case_sensitive=False)],
    start_index: _StartOption = None,
    end_index: _EndOption = None,
) -> None:
    """Fire an import and report the backend's immediate answer."""
    asyncio.run(_trigger_impl(kind.value, start_index, end_index))


async def _trigger_impl(kind: str, start_index: int | None, end_index: int | None) -> None:
    """Async implementation of the trigger command."""
    from tcg_console.cli import common
    from tcg_console.core.config import get_settings
    from tcg_console.lib.jobs import HistoryOutcome
    from tcg_console.services.import_service import ImportConsole

    settings = get_settings()
    async with common.build_client(settings) as client, ImportConsole.from_settings(client, settings) as console:
        entry = await console.trigger_import(kind, start_index=start_index, end_index=end_index)

    if entry.outcome is HistoryOutcome.ERROR:
        typer.echo(f"Error: {entry.message}", err=True)
        raise typer.Exit(code=1)
    typer.echo(entry.message)
