"""Background import job tracker.

Submits an import job to the backend and polls its status on a fixed
interval until the backend reports a terminal state.  The backend's
snapshot always replaces the local copy; progress is never computed or
smoothed on the client.

Each tracked job owns one :class:`~tcg_console.core.scheduler.PeriodicTask`.
Polling ends through a single path (:meth:`JobTracker._finish`), whether
the job reached a terminal state or the owner stopped observing it.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from tcg_console.core.scheduler import PeriodicTask
from tcg_console.lib.transport import ApiClient, ApiError
from tcg_console.schemas.imports import ImportJob, ImportSubmission

JobCallback = Callable[[ImportJob], None]

_ID_KEYS = ("id", "jobId", "job_id")

# Terminal snapshots kept for late `wait`/`get` callers; older ones are dropped.
FINISHED_RETENTION = 32


class JobSubmissionError(ApiError):
    """Raised when the backend rejects or fails an import submission."""


@dataclass
class _TrackedJob:
    job: ImportJob
    task: PeriodicTask
    done: asyncio.Future[ImportJob]
    consecutive_failures: int = 0
    next_poll_at: float = 0.0
    finished: bool = field(default=False)


class JobTracker:
    """Observe background import jobs until they finish.

    Args:
        client: Backend API client.
        poll_interval: Seconds between status polls.
        max_backoff: Upper bound for the delay after consecutive poll failures.
        on_update: Called with every non-terminal snapshot.
        on_terminal: Called exactly once per job with its terminal snapshot.
    """

    def __init__(
        self,
        client: ApiClient,
        *,
        poll_interval: float = 1.0,
        max_backoff: float = 30.0,
        on_update: JobCallback | None = None,
        on_terminal: JobCallback | None = None,
    ) -> None:
        self._client = client
        self._poll_interval = poll_interval
        self._max_backoff = max(max_backoff, poll_interval)
        self._on_update = on_update
        self._on_terminal = on_terminal
        self._active: dict[str, _TrackedJob] = {}
        self._finished: OrderedDict[str, ImportJob] = OrderedDict()

    @property
    def active_jobs(self) -> list[ImportJob]:
        """Latest snapshots of jobs still being polled."""
        return [tracked.job for tracked in self._active.values()]

    def is_tracking(self, job_id: str) -> bool:
        return job_id in self._active

    def get(self, job_id: str) -> ImportJob | None:
        """Return the latest known snapshot for ``job_id``, if any."""
        tracked = self._active.get(job_id)
        if tracked is not None:
            return tracked.job
        return self._finished.get(job_id)

    async def submit_job(
        self,
        operation_kind: str,
        *,
        start_index: int | None = None,
        end_index: int | None = None,
    ) -> ImportJob:
        """Submit an import job and start polling it.

        Args:
            operation_kind: Catalog family to import (validated by the backend).
            start_index: Optional first item of a partial import.
            end_index: Optional last item of a partial import.

        Returns:
            The Pending snapshot of the new job.

        Raises:
            JobSubmissionError: If the backend rejects the submission or the
                request fails.  Nothing is polled in that case.
        """
        params: dict[str, Any] = {}
        if start_index is not None:
            params["startIndex"] = start_index
        if end_index is not None:
            params["endIndex"] = end_index

        try:
            body = await self._client.post_json(f"/import/{operation_kind}", params=params or None)
        except ApiError as exc:
            logger.error("Import submission for {} rejected: {}", operation_kind, exc.message)
            raise JobSubmissionError(exc.message, status_code=exc.status_code, payload=exc.payload) from exc

        submission = ImportSubmission.model_validate(body if isinstance(body, dict) else {})
        if submission.job_id is None:
            msg = "Backend accepted the import but returned no job id"
            logger.error("Import submission for {}: {}", operation_kind, msg)
            raise JobSubmissionError(msg, payload=body)

        job = ImportJob.submitted(submission.job_id, operation_kind)
        logger.info("Submitted {} import as job {}", operation_kind, job.id)
        self.track(job)
        return job

    def track(self, job: ImportJob) -> None:
        """Start polling ``job``.  Must be called from within a running event loop."""
        if job.id in self._active:
            logger.debug("Job {} is already tracked", job.id)
            return
        loop = asyncio.get_running_loop()
        task = PeriodicTask(lambda: self._tick(job.id), self._poll_interval, name=f"import-job-{job.id}")
        self._active[job.id] = _TrackedJob(job=job, task=task, done=loop.create_future())
        task.start()

    async def poll(self, job_id: str) -> ImportJob:
        """Fetch the backend's current snapshot for ``job_id``.

        Raises:
            ApiError: If the request fails.
            ValidationError: If the body is not a job snapshot.
        """
        body = await self._client.get_json(f"/import/jobs/{job_id}")
        if not isinstance(body, dict):
            msg = f"Unexpected status payload for job {job_id}"
            raise ApiError(msg, payload=body)
        if not any(key in body for key in _ID_KEYS):
            body = {**body, "id": job_id}
        snapshot = ImportJob.model_validate(body)
        if snapshot.id != job_id:
            msg = f"Status payload for job {job_id} carries id {snapshot.id}"
            raise ApiError(msg, payload=body)

        previous = self.get(job_id)
        if previous is not None:
            carried: dict[str, Any] = {}
            if not snapshot.operation_kind:
                carried["operation_kind"] = previous.operation_kind
            if snapshot.started_at is None:
                carried["started_at"] = previous.started_at
            if carried:
                snapshot = snapshot.model_copy(update=carried)
        return snapshot

    async def wait(self, job_id: str) -> ImportJob:
        """Wait until ``job_id`` reaches a terminal state.

        Raises:
            KeyError: If the job is neither tracked nor among the recently finished ones.
            asyncio.CancelledError: If tracking is stopped before the job finishes.
        """
        tracked = self._active.get(job_id)
        if tracked is None:
            return self._finished[job_id]
        return await asyncio.shield(tracked.done)

    def stop(self, job_id: str) -> None:
        """Stop observing ``job_id`` without waiting for it to finish."""
        tracked = self._active.get(job_id)
        if tracked is not None:
            self._finish(tracked, notify=False)

    async def close(self) -> None:
        """Stop polling every job and wait for the timers to unwind."""
        tasks = [tracked.task for tracked in self._active.values()]
        for tracked in list(self._active.values()):
            self._finish(tracked, notify=False)
        for task in tasks:
            await task.aclose()

    async def __aenter__(self) -> JobTracker:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _backoff_delay(self, failures: int) -> float:
        return min(self._poll_interval * (2**failures), self._max_backoff)

    async def _tick(self, job_id: str) -> None:
        tracked = self._active.get(job_id)
        if tracked is None or tracked.finished:
            return
        loop = asyncio.get_running_loop()
        if loop.time() < tracked.next_poll_at:
            return

        try:
            snapshot = await self.poll(job_id)
        except Exception as exc:
            tracked.consecutive_failures += 1
            delay = self._backoff_delay(tracked.consecutive_failures)
            tracked.next_poll_at = loop.time() + delay
            logger.warning(
                "Polling job {} failed ({} in a row), next attempt in {:.1f}s: {}",
                job_id,
                tracked.consecutive_failures,
                delay,
                exc,
            )
            return

        tracked.consecutive_failures = 0
        tracked.next_poll_at = 0.0
        self._apply(tracked, snapshot)

    def _apply(self, tracked: _TrackedJob, snapshot: ImportJob) -> None:
        if tracked.finished:
            return
        tracked.job = snapshot
        if snapshot.is_terminal:
            logger.info("Job {} finished with status {}", snapshot.id, snapshot.status.value)
            self._finish(tracked, notify=True)
            return
        logger.debug(
            "Job {} {}: {}/{} ({}%) {}",
            snapshot.id,
            snapshot.status.value,
            snapshot.processed_count,
            snapshot.total_count,
            snapshot.percent_complete,
            snapshot.status_message,
        )
        self._notify(self._on_update, snapshot)

    def _finish(self, tracked: _TrackedJob, *, notify: bool) -> None:
        if tracked.finished:
            return
        tracked.finished = True
        tracked.task.stop()
        job = tracked.job
        self._active.pop(job.id, None)
        if not notify:
            logger.info("Stopped observing job {}", job.id)
            tracked.done.cancel()
            return
        self._finished[job.id] = job
        self._finished.move_to_end(job.id)
        while len(self._finished) > FINISHED_RETENTION:
            self._finished.popitem(last=False)
        if not tracked.done.done():
            tracked.done.set_result(job)
        self._notify(self._on_terminal, job)

    @staticmethod
    def _notify(callback: JobCallback | None, job: ImportJob) -> None:
        if callback is None:
            return
        try:
            callback(job)
        except Exception:
            logger.exception("Job callback failed for job {}", job.id)
