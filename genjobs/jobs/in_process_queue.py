"""In-process job queue using asyncio for local development.

Runs the pipeline for one job at a time in a background task.
No external dependencies (Redis, workers) needed.
"""

import asyncio
import logging
from typing import Optional

from genjobs.jobs.dispatcher import PipelineTrigger
from genjobs.jobs.manager import JobLifecycleManager
from genjobs.jobs.models import JobRecord
from genjobs.jobs.worker import PipelineFn, run_job

logger = logging.getLogger(__name__)


class InProcessQueue(PipelineTrigger):
    """Local async job queue. Processes jobs one at a time via asyncio."""

    def __init__(self, pipeline_fn: PipelineFn):
        """
        pipeline_fn: callable(job, session) -> PipelineOutcome
            Synchronous function that does the work.
            Will be called in a thread executor to avoid blocking the event loop.
        """
        self._queue: "asyncio.Queue[str]" = asyncio.Queue()
        self._pipeline_fn = pipeline_fn
        self._manager: Optional[JobLifecycleManager] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._task: Optional[asyncio.Task] = None
        self._in_flight: Optional[asyncio.Future] = None
        self._running = False

    def bind(self, manager: JobLifecycleManager) -> None:
        self._manager = manager

    def notify(self, job: JobRecord) -> None:
        if self._loop is None or not self._running:
            raise RuntimeError("In-process queue is not running")
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None
        if current_loop is self._loop:
            self._queue.put_nowait(job.id)
        else:
            # Sync route handlers submit from the threadpool
            self._loop.call_soon_threadsafe(self._queue.put_nowait, job.id)

    async def start(self) -> None:
        if self._manager is None:
            raise RuntimeError("In-process queue must be bound to a manager before start")
        self._loop = asyncio.get_running_loop()
        self._running = True
        self._task = asyncio.create_task(self._worker_loop())

    async def stop(self) -> None:
        """Stop taking jobs. A job already running is allowed to finish first."""
        self._running = False
        if self._in_flight is not None and not self._in_flight.done():
            await asyncio.wait({self._in_flight})
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        await self._queue.join()

    async def _worker_loop(self) -> None:
        """Process jobs one at a time from the queue."""
        while self._running:
            try:
                job_id = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

            self._in_flight = self._loop.run_in_executor(
                None, run_job, self._manager, job_id, self._pipeline_fn
            )
            try:
                await self._in_flight
            except Exception:
                logger.exception("Job %s could not be run", job_id)
            finally:
                self._in_flight = None
                self._queue.task_done()
