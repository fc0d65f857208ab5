"""Tests for the job queue: scheduling, lookups and concurrency bound."""

import asyncio

import pytest

from brollmix.core.enums import JobState, PipelineOutcome
from brollmix.core.exceptions import JobNotFoundError
from brollmix.models.job import JobConfig
from brollmix.workers.queue import SHUTDOWN_MESSAGE, JobQueue


def _config() -> JobConfig:
    return JobConfig(user_video_path="/me.mp4", local_paths=("/a.mp4",))


def _collaborators(settings):
    return object(), object()


@pytest.mark.anyio
async def test_create_job_returns_before_pipeline_runs(test_settings) -> None:
    started = asyncio.Event()
    release = asyncio.Event()

    async def pipeline(table, job_id, **kwargs):
        started.set()
        await release.wait()
        table.mark_complete(job_id, "/exports/out.mp4")
        return PipelineOutcome.COMPLETED

    queue = JobQueue(pipeline=pipeline, collaborators=_collaborators, settings=test_settings)
    job_id = queue.create_job(_config())

    assert queue.get_status(job_id).state is JobState.QUEUED
    await started.wait()
    assert queue.active_count == 1

    release.set()
    await queue.drain()
    assert queue.get_status(job_id).state is JobState.COMPLETE
    assert queue.active_count == 0


@pytest.mark.anyio
async def test_pipeline_gets_collaborators_and_settings(test_settings) -> None:
    seen = {}
    engine, fetcher = object(), object()

    async def pipeline(table, job_id, **kwargs):
        seen.update(kwargs)
        return PipelineOutcome.COMPLETED

    queue = JobQueue(pipeline=pipeline, collaborators=lambda s: (engine, fetcher), settings=test_settings)
    queue.create_job(_config())
    await queue.drain()

    assert seen == {"engine": engine, "fetcher": fetcher, "settings": test_settings}


@pytest.mark.anyio
async def test_get_status_unknown_raises(test_settings) -> None:
    queue = JobQueue(collaborators=_collaborators, settings=test_settings)
    with pytest.raises(JobNotFoundError):
        queue.get_status("missing")


@pytest.mark.anyio
async def test_collaborator_setup_failure_fails_job(test_settings) -> None:
    def broken(settings):
        raise RuntimeError("no ffmpeg")

    queue = JobQueue(collaborators=broken, settings=test_settings)
    job_id = queue.create_job(_config())
    await queue.drain()

    status = queue.get_status(job_id)
    assert status.state is JobState.FAILED
    assert status.error == "no ffmpeg"


@pytest.mark.anyio
async def test_max_concurrent_jobs_is_enforced(test_settings) -> None:
    settings = test_settings.model_copy(update={"max_concurrent_jobs": 1})
    running = 0
    peak = 0

    async def pipeline(table, job_id, **kwargs):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        return PipelineOutcome.COMPLETED

    queue = JobQueue(pipeline=pipeline, collaborators=_collaborators, settings=settings)
    for _ in range(3):
        queue.create_job(_config())
    await queue.drain()

    assert peak == 1


@pytest.mark.anyio
async def test_list_and_cancel(test_settings) -> None:
    release = asyncio.Event()

    async def pipeline(table, job_id, **kwargs):
        await release.wait()
        return PipelineOutcome.CANCELLED

    queue = JobQueue(pipeline=pipeline, collaborators=_collaborators, settings=test_settings)
    first = queue.create_job(_config())
    second = queue.create_job(_config())

    assert [s.id for s in queue.list_jobs()] == [second, first]

    queue.cancel_job(first)
    assert queue.get_status(first).state is JobState.CANCELLED

    release.set()
    await queue.drain()


@pytest.mark.anyio
async def test_shutdown_cancels_tasks_and_fails_their_jobs(test_settings) -> None:
    settings = test_settings.model_copy(update={"max_concurrent_jobs": 1})

    async def pipeline(table, job_id, **kwargs):
        table.set_state(job_id, JobState.PROCESSING)
        await asyncio.sleep(60)

    queue = JobQueue(pipeline=pipeline, collaborators=_collaborators, settings=settings)
    running = queue.create_job(_config())
    waiting = queue.create_job(_config())
    await asyncio.sleep(0)

    await queue.shutdown()

    assert queue.active_count == 0
    for job_id in (running, waiting):
        status = queue.get_status(job_id)
        assert status.state is JobState.FAILED
        assert status.error == SHUTDOWN_MESSAGE
        assert status.completed_at is not None

