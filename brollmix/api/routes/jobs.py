from fastapi import APIRouter, Depends, HTTPException

from brollmix.core.exceptions import ConfigurationError, JobAlreadyTerminalError, JobNotFoundError
from brollmix.schemas.job import CancelResponse, JobCreate, JobCreateResponse, JobStatus
from brollmix.workers.queue import JobQueue, get_job_queue

router = APIRouter(prefix="/api", tags=["jobs"])


@router.post("/jobs", response_model=JobCreateResponse, status_code=201)
async def create_job(body: JobCreate, queue: JobQueue = Depends(get_job_queue)):
    """
    Start a B-roll job. Returns right away with the job id; poll
    GET /api/jobs/{job_id} for progress.
    """
    try:
        config = body.to_config()
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    job_id = queue.create_job(config)
    return JobCreateResponse(job_id=job_id)


@router.get("/jobs", response_model=list[JobStatus])
def list_jobs(queue: JobQueue = Depends(get_job_queue)):
    """All jobs, newest first."""
    return queue.list_jobs()


@router.get("/jobs/{job_id}", response_model=JobStatus)
def get_job(job_id: str, queue: JobQueue = Depends(get_job_queue)):
    try:
        return queue.get_status(job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/jobs/{job_id}/cancel", response_model=CancelResponse)
def cancel_job(job_id: str, queue: JobQueue = Depends(get_job_queue)):
    try:
        queue.cancel_job(job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except JobAlreadyTerminalError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return CancelResponse(ok=True)
