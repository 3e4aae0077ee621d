"""Import screen controller.

Owns the import history and the currently displayed job.  Tracked jobs
are submitted through :class:`JobTracker`; the synchronous "trigger" path
posts once and records the immediate answer.  A finished job stays in
the active view for a short grace period before it is cleared.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from loguru import logger

from tcg_console.core.config import Settings
from tcg_console.lib.jobs import (
    HistoryOutcome,
    HistorySource,
    ImportHistory,
    ImportHistoryEntry,
    JobSubmissionError,
    JobTracker,
)
from tcg_console.lib.transport import GENERIC_ERROR_MESSAGE, ApiClient, ApiError
from tcg_console.schemas.imports import ImportJob, ImportJobStatus

DEFAULT_TRIGGER_MESSAGE = "Import started successfully"
DEFAULT_FAILURE_MESSAGE = "Import failed"


class ImportAlreadyRunningError(Exception):
    """Raised when a tracked import is started while another one is still running."""

    def __init__(self, job: ImportJob) -> None:
        super().__init__(f"Import job {job.id} ({job.operation_kind}) is still {job.status.value}")
        self.job = job


def _range_params(start_index: int | None, end_index: int | None) -> dict[str, Any] | None:
    params: dict[str, Any] = {}
    if start_index is not None:
        params["startIndex"] = start_index
    if end_index is not None:
        params["endIndex"] = end_index
    return params or None


def completion_message(job: ImportJob) -> str:
    """History text for a terminal job; the server message wins when present."""
    if job.status_message:
        return job.status_message
    if job.status is ImportJobStatus.FAILED:
        return DEFAULT_FAILURE_MESSAGE
    return f"{job.operation_kind} import completed ({job.processed_count} item(s) processed)"


class ImportConsole:
    """State holder for the import screen.

    Args:
        client: Backend API client.
        poll_interval: Seconds between status polls.
        max_backoff: Upper bound for the delay after consecutive poll failures.
        grace_period: Seconds a finished job stays in the active view.
        history: Optional history store to record into.
        on_update: Called with every non-terminal snapshot of the active job.
        on_finished: Called once with the terminal snapshot of a job.
    """

    def __init__(
        self,
        client: ApiClient,
        *,
        poll_interval: float = 1.0,
        max_backoff: float = 30.0,
        grace_period: float = 3.0,
        history: ImportHistory | None = None,
        on_update: Callable[[ImportJob], None] | None = None,
        on_finished: Callable[[ImportJob], None] | None = None,
    ) -> None:
        self._client = client
        self.history = history if history is not None else ImportHistory()
        self._grace_period = grace_period
        self._on_update = on_update
        self._on_finished = on_finished
        self._active_job: ImportJob | None = None
        self._grace_timers: dict[str, asyncio.TimerHandle] = {}
        self._tracker = JobTracker(
            client,
            poll_interval=poll_interval,
            max_backoff=max_backoff,
            on_update=self._handle_update,
            on_terminal=self._handle_terminal,
        )

    @classmethod
    def from_settings(cls, client: ApiClient, settings: Settings, **kwargs: Any) -> ImportConsole:
        return cls(
            client,
            poll_interval=settings.poll_interval,
            max_backoff=settings.poll_max_backoff,
            grace_period=settings.job_grace_period,
            **kwargs,
        )

    @property
    def active_job(self) -> ImportJob | None:
        """The job currently displayed, including a finished one within its grace period."""
        return self._active_job

    @property
    def tracker(self) -> JobTracker:
        return self._tracker

    async def start_import(
        self,
        operation_kind: str,
        *,
        start_index: int | None = None,
        end_index: int | None = None,
    ) -> ImportJob:
        """Submit a tracked import job.

        Raises:
            ImportAlreadyRunningError: If the displayed job has not finished yet.
            JobSubmissionError: If the backend rejected the submission.  An
                error entry is recorded before re-raising.
        """
        current = self._active_job
        if current is not None and not current.is_terminal:
            raise ImportAlreadyRunningError(current)

        try:
            job = await self._tracker.submit_job(operation_kind, start_index=start_index, end_index=end_index)
        except JobSubmissionError as exc:
            self.history.record(
                ImportHistoryEntry(
                    operation_kind=operation_kind,
                    outcome=HistoryOutcome.ERROR,
                    message=exc.message or GENERIC_ERROR_MESSAGE,
                    source=HistorySource.JOB,
                )
            )
            raise

        self._cancel_grace_timers()
        self._active_job = job
        return job

    async def trigger_import(
        self,
        operation_kind: str,
        *,
        start_index: int | None = None,
        end_index: int | None = None,
    ) -> ImportHistoryEntry:
        """Fire an import and record the backend's immediate answer.

        No job is tracked.  Failures are recorded, not raised.
        """
        try:
            body = await self._client.post_json(
                f"/import/{operation_kind}", params=_range_params(start_index, end_index)
            )
        except ApiError as exc:
            return self.history.record(
                ImportHistoryEntry(
                    operation_kind=operation_kind,
                    outcome=HistoryOutcome.ERROR,
                    message=exc.message or GENERIC_ERROR_MESSAGE,
                    source=HistorySource.TRIGGER,
                )
            )

        if isinstance(body, dict) and isinstance(body.get("message"), str) and body["message"].strip():
            message = body["message"].strip()
        elif isinstance(body, str) and body.strip():
            message = body.strip()
        else:
            message = DEFAULT_TRIGGER_MESSAGE
        return self.history.record(
            ImportHistoryEntry(
                operation_kind=operation_kind,
                outcome=HistoryOutcome.SUCCESS,
                message=message,
                source=HistorySource.TRIGGER,
            )
        )

    async def wait_for(self, job_id: str) -> ImportJob:
        """Wait for a tracked job to reach a terminal state."""
        return await self._tracker.wait(job_id)

    async def close(self) -> None:
        """Stop polling and drop pending grace timers."""
        self._cancel_grace_timers()
        await self._tracker.close()

    async def __aenter__(self) -> ImportConsole:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _handle_update(self, job: ImportJob) -> None:
        if self._active_job is not None and self._active_job.id == job.id:
            self._active_job = job
        if self._on_update is not None:
            self._on_update(job)

    def _handle_terminal(self, job: ImportJob) -> None:
        outcome = HistoryOutcome.SUCCESS if job.status is ImportJobStatus.COMPLETED else HistoryOutcome.ERROR
        self.history.record(
            ImportHistoryEntry(
                operation_kind=job.operation_kind,
                outcome=outcome,
                message=completion_message(job),
                source=HistorySource.JOB,
                job_id=job.id,
            )
        )
        if self._active_job is not None and self._active_job.id == job.id:
            self._active_job = job
            self._schedule_clear(job.id)
        if self._on_finished is not None:
            self._on_finished(job)

    def _schedule_clear(self, job_id: str) -> None:
        if self._grace_period <= 0:
            self._clear_active(job_id)
            return
        loop = asyncio.get_running_loop()
        self._grace_timers[job_id] = loop.call_later(self._grace_period, self._clear_active, job_id)

    def _clear_active(self, job_id: str) -> None:
        self._grace_timers.pop(job_id, None)
        if self._active_job is not None and self._active_job.id == job_id:
            logger.debug("Clearing finished job {} from the active view", job_id)
            self._active_job = None

    def _cancel_grace_timers(self) -> None:
        for handle in self._grace_timers.values():
            handle.cancel()
        self._grace_timers.clear()
