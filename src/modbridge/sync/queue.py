"""Import queue with a single-flight drain loop.

This module provides:
- ImportQueue: Backlog of import jobs drained one at a time

Ordering:
    The backlog is a stack. Jobs from one ``enqueue`` call are appended in
    order and the drain always takes the most recently appended job next.
    ``enqueue([A, B])`` followed by ``enqueue([C])`` while B is running
    yields the processing order B, C, A.

Single flight:
    Only one drain runs at a time. The caller of ``enqueue`` that finds no
    drain in progress becomes the driver and runs the loop itself; every
    other caller only appends and returns, leaving the new jobs to the
    running drain. The drain flag is cleared on every exit path.

Disconnection:
    The device's ``disconnected`` future is checked between jobs, never
    mid-job. Once it has resolved the loop stops and the remaining jobs are
    left in the backlog unprocessed. They are not retried and are not handed
    to the job handler; the drain report and a warning log record how many
    were left behind.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from modbridge.sync.types import DrainReport, ImportJob, QueueStats

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Awaitable, Callable, Iterable

logger = logging.getLogger(__name__)


class ImportQueue:
    """Session-scoped backlog of import jobs.

    Usage:
        queue = ImportQueue(session.disconnected, handler=process_job)
        queue.set_on_job_failed(lambda job, exc: report(job, exc))

        became_driver = await queue.enqueue([FileImport(path)])
    """

    def __init__(
        self,
        disconnected: asyncio.Future[None],
        handler: Callable[[ImportJob], Awaitable[None]],
    ) -> None:
        """Initialize the queue.

        Args:
            disconnected: Future resolving when the device session is lost.
            handler: Coroutine function processing a single job.
        """
        self._disconnected = disconnected
        self._handler = handler
        self._backlog: list[ImportJob] = []
        self._draining = False
        self._stats = QueueStats()
        self._last_report: DrainReport | None = None

        # Callbacks
        self._on_job_failed: Callable[[ImportJob, Exception], None] | None = None
        self._on_working_changed: Callable[[bool], None] | None = None

    @property
    def is_draining(self) -> bool:
        """Check if a drain loop is currently running."""
        return self._draining

    @property
    def pending(self) -> list[ImportJob]:
        """Get a copy of the backlog, next job last."""
        return list(self._backlog)

    @property
    def stats(self) -> QueueStats:
        """Get queue statistics."""
        return self._stats

    @property
    def last_report(self) -> DrainReport | None:
        """Get the report of the most recent drain."""
        return self._last_report

    def set_on_job_failed(self, callback: Callable[[ImportJob, Exception], None]) -> None:
        """Set callback for a job whose processing raised."""
        self._on_job_failed = callback

    def set_on_working_changed(self, callback: Callable[[bool], None]) -> None:
        """Set callback invoked with True when a drain starts and False when it ends."""
        self._on_working_changed = callback

    async def enqueue(self, jobs: Iterable[ImportJob]) -> bool:
        """Append jobs and drain them unless a drain is already running.

        Args:
            jobs: Jobs to append, in order.

        Returns:
            True if this call drove the drain to completion, False if the
            jobs were handed to a drain already in progress.
        """
        jobs = list(jobs)
        self._backlog.extend(jobs)
        self._stats.jobs_enqueued += len(jobs)

        if self._draining:
            logger.debug("Drain in progress, handed over %d job(s)", len(jobs))
            return False

        await self.drain()
        return True

    async def drain(self) -> DrainReport:
        """Process the backlog until it is empty or the device disconnects.

        Returns:
            Report of what was processed and what was left behind.

        Raises:
            RuntimeError: If a drain is already running.
        """
        if self._draining:
            raise RuntimeError("Import queue is already being drained")

        self._draining = True
        self._stats.drains += 1
        report = DrainReport()
        logger.info("Processing import queue (%d job(s))", len(self._backlog))
        try:
            self._set_working(True)
            while self._backlog:
                if self._disconnected.done():
                    report.disconnected = True
                    break

                job = self._backlog.pop()
                await self._run_job(job, report)
        finally:
            self._draining = False
            report.remaining = len(self._backlog)
            self._set_working(False)

        if report.truncated:
            logger.warning(
                "Device disconnected, %d queued import(s) were not processed",
                report.remaining,
            )
        logger.info(
            "Import queue drained: %d processed, %d failed",
            report.processed,
            report.failed,
        )
        self._last_report = report
        return report

    async def _run_job(self, job: ImportJob, report: DrainReport) -> None:
        """Run one job. Failures are reported and never abort the drain."""
        logger.debug("Processing %s", job)
        report.processed += 1
        self._stats.jobs_processed += 1
        try:
            await self._handler(job)
        except Exception as e:
            report.failed += 1
            self._stats.jobs_failed += 1
            logger.exception("Import failed: %s", job.display_name)
            if self._on_job_failed:
                self._on_job_failed(job, e)

    def _set_working(self, working: bool) -> None:
        if self._on_working_changed:
            self._on_working_changed(working)
