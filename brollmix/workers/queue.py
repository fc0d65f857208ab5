"""
Job Queue - Caller-facing job API on top of the job table.

Each job runs as one asyncio task in the app's event loop. Heavy work inside
the pipeline runs in worker threads, so polling stays responsive.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable, Dict, List, Optional, Tuple

from brollmix.core.exceptions import JobNotFoundError
from brollmix.core.settings import Settings, settings as app_settings
from brollmix.models.job import JobConfig
from brollmix.schemas.job import JobStatus
from brollmix.workers.job_table import JobTable
from brollmix.workers.pipeline import run_job

logger = logging.getLogger(__name__)

SHUTDOWN_MESSAGE = "Server shutting down"


def default_collaborators(settings: Settings) -> Tuple[object, object]:
    """Media engine and fetcher, built on first use."""
    from brollmix.services.downloader import Downloader
    from brollmix.services.editor import Editor

    return Editor(), Downloader(settings.download_dir, settings.ytdlp_format)


class JobQueue:
    def __init__(
        self,
        table: Optional[JobTable] = None,
        pipeline: Callable = run_job,
        collaborators: Optional[Callable[[Settings], Tuple[object, object]]] = None,
        settings: Optional[Settings] = None,
    ):
        self.table = table or JobTable()
        self.settings = settings or app_settings
        self._pipeline = pipeline
        self._collaborators_factory = collaborators or default_collaborators
        self._collaborators: Optional[Tuple[object, object]] = None

        # Running tasks -> job id; the loop only keeps weak references
        self._tasks: Dict[asyncio.Task, str] = {}

        limit = self.settings.max_concurrent_jobs
        self._semaphore = asyncio.Semaphore(limit) if limit > 0 else None

    def _get_collaborators(self) -> Tuple[object, object]:
        if self._collaborators is None:
            self._collaborators = self._collaborators_factory(self.settings)
        return self._collaborators

    # =========================================================================
    # Public API
    # =========================================================================

    def create_job(self, config: JobConfig) -> str:
        """Insert a QUEUED job and schedule it. Returns immediately."""
        job_id = self.table.create(config)
        task = asyncio.get_running_loop().create_task(self._run(job_id), name=f"job-{job_id}")
        self._tasks[task] = job_id
        task.add_done_callback(self._on_done)
        return job_id

    def get_status(self, job_id: str) -> JobStatus:
        status = self.table.get_status(job_id)
        if status is None:
            raise JobNotFoundError(job_id)
        return status

    def list_jobs(self) -> List[JobStatus]:
        return self.table.list_all()

    def cancel_job(self, job_id: str) -> None:
        self.table.cancel(job_id)

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every scheduled job to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """
        Cancel outstanding jobs; each one ends FAILED with SHUTDOWN_MESSAGE.
        In-flight worker threads still run to completion.
        """
        running = dict(self._tasks)
        if not running:
            return
        logger.info(f"[queue] Cancelling {self.active_count} running job(s)")
        for task in running:
            task.cancel()
        await asyncio.gather(*running, return_exceptions=True)
        # No-op for jobs that reached a terminal state first
        for job_id in running.values():
            self.table.mark_failed(job_id, SHUTDOWN_MESSAGE)

    # =========================================================================
    # Internals
    # =========================================================================

    async def _run(self, job_id: str):
        async with self._semaphore or contextlib.nullcontext():
            try:
                engine, fetcher = self._get_collaborators()
            except Exception as e:
                logger.exception(f"[queue] Couldn't set up job {job_id}: {e}")
                self.table.mark_failed(job_id, str(e))
                return None

            outcome = await self._pipeline(
                self.table,
                job_id,
                engine=engine,
                fetcher=fetcher,
                settings=self.settings,
            )
            logger.info(f"[queue] Job {job_id} finished: {outcome.value}")
            return outcome

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.pop(task, None)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"[queue] {task.get_name()} crashed: {exc}", exc_info=exc)


_job_queue: Optional[JobQueue] = None


def get_job_queue() -> JobQueue:
    """App-wide queue, created on first use. FastAPI dependency."""
    global _job_queue
    if _job_queue is None:
        _job_queue = JobQueue()
    return _job_queue
