"""
Job Table - In-process store of job records with the job state machine.

Callers get copies (JobStatus); only the pipeline driver mutates records,
through the methods below. The lock is held for one read or write at a time
and never across an await.
"""
from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime, timezone
from typing import Dict, Optional
from uuid import uuid4

from brollmix.core.enums import JobState
from brollmix.core.exceptions import JobAlreadyTerminalError, JobNotFoundError
from brollmix.models.job import JobConfig, JobProgress, JobRecord
from brollmix.schemas.job import JobProgressOut, JobStatus

logger = logging.getLogger(__name__)

COMPLETE_STAGE = "All done! Your video is ready"
CANCELLED_STAGE = "Cancelled"

# Non-terminal states in the order a job moves through them
STAGE_ORDER = (
    JobState.QUEUED,
    JobState.DOWNLOADING,
    JobState.PROCESSING,
    JobState.COMPOSITING,
    JobState.FINALIZING,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_status(job: JobRecord) -> JobStatus:
    return JobStatus(
        id=job.id,
        state=job.state,
        progress=JobProgressOut.model_validate(job.progress),
        created_at=job.created_at,
        started_at=job.started_at,
        completed_at=job.completed_at,
        output_path=job.output_path,
        error=job.error,
        output_format=job.config.output_format.label,
        overlay_position=job.config.overlay_position.label,
    )


class JobTable:
    def __init__(self):
        self._jobs: Dict[str, JobRecord] = {}
        self._lock = threading.Lock()
        self._seq = itertools.count()

    # =========================================================================
    # Public operations
    # =========================================================================

    def create(self, config: JobConfig) -> str:
        with self._lock:
            # First 8 chars of a uuid: unique enough and easy to read
            job_id = uuid4().hex[:8]
            while job_id in self._jobs:
                job_id = uuid4().hex[:8]
            self._jobs[job_id] = JobRecord(id=job_id, config=config, seq=next(self._seq))
        logger.info(f"[job_table] Created job {job_id}")
        return job_id

    def get_status(self, job_id: str) -> Optional[JobStatus]:
        with self._lock:
            job = self._jobs.get(job_id)
            return _to_status(job) if job else None

    def list_all(self) -> list[JobStatus]:
        """Every job, newest first."""
        with self._lock:
            jobs = sorted(self._jobs.values(), key=lambda j: (j.created_at, j.seq), reverse=True)
            return [_to_status(j) for j in jobs]

    def cancel(self, job_id: str) -> None:
        """
        Flag the job and move it to CANCELLED right away. The running
        pipeline notices at its next check. Cancelling an already cancelled
        job is a no-op.
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            if job.state in (JobState.COMPLETE, JobState.FAILED):
                raise JobAlreadyTerminalError(job_id, job.state.value)
            if job.state is JobState.CANCELLED:
                return
            job.cancelled = True
            self._transition(job, JobState.CANCELLED)
            job.progress.stage = CANCELLED_STAGE
        logger.info(f"[job_table] Cancelled job {job_id}")

    # =========================================================================
    # Pipeline driver operations
    # =========================================================================

    def set_state(self, job_id: str, state: JobState) -> bool:
        """
        Move a running job forward to a later stage. Returns False when the
        job is gone, already terminal, or the move would go backwards.
        Terminal states are only reached through mark_complete, mark_failed
        and cancel.
        """
        if state.is_terminal:
            raise ValueError(f"set_state can't end a job (got {state.value})")
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.state.is_terminal:
                return False
            if STAGE_ORDER.index(state) < STAGE_ORDER.index(job.state):
                logger.warning(f"[job_table] Ignoring {job.state.value} -> {state.value} for job {job_id}")
                return False
            self._transition(job, state)
            return True

    def set_progress(self, job_id: str, progress: JobProgress) -> None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.state.is_terminal:
                return
            update = progress.copy()
            # Progress bars never go backwards
            update.percent = max(job.progress.percent, min(100.0, max(0.0, update.percent)))
            job.progress = update

    def mark_complete(self, job_id: str, output_path: str) -> bool:
        """Returns False when the job already reached a terminal state."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.state.is_terminal:
                return False
            self._transition(job, JobState.COMPLETE)
            job.output_path = str(output_path)
            job.progress = JobProgress(stage=COMPLETE_STAGE, percent=100.0)
        logger.info(f"[job_table] Job {job_id} -> COMPLETE")
        return True

    def mark_failed(self, job_id: str, message: str) -> bool:
        """Returns False when the job already reached a terminal state."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.state.is_terminal:
                return False
            self._transition(job, JobState.FAILED)
            job.error = message
            job.progress.stage = f"Failed: {message}"
        logger.info(f"[job_table] Job {job_id} -> FAILED: {message}")
        return True

    def is_cancelled(self, job_id: str) -> bool:
        with self._lock:
            job = self._jobs.get(job_id)
            return bool(job and job.cancelled)

    def get_config(self, job_id: str) -> Optional[JobConfig]:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.config if job else None

    def clear(self) -> None:
        with self._lock:
            self._jobs.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._jobs

    # Caller holds the lock
    def _transition(self, job: JobRecord, state: JobState) -> None:
        now = _utcnow()
        if job.state is JobState.QUEUED and state is not JobState.QUEUED and job.started_at is None:
            job.started_at = now
        job.state = state
        if state.is_terminal:
            job.completed_at = now
