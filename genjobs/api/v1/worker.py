"""Worker API: the lifecycle calls an out-of-process pipeline makes.

Each response says whether the call applied. applied=false means the
job moved on without this worker (usually canceled) and it should stop.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from genjobs.api.deps import get_manager
from genjobs.auth.supabase_auth import require_worker
from genjobs.jobs.manager import JobLifecycleManager
from genjobs.jobs.models import VideoMetadata
from genjobs.jobs.projections import WorkerResult

router = APIRouter(prefix="/worker", dependencies=[Depends(require_worker)])


class ProgressRequest(BaseModel):
    progress: int
    metadata: Optional[VideoMetadata] = None


class CompleteRequest(BaseModel):
    result_reference: str
    metadata: Optional[VideoMetadata] = None


class FailRequest(BaseModel):
    error_message: str


@router.post("/jobs/{job_id}/claim", response_model=WorkerResult)
def claim_job(job_id: str, manager: JobLifecycleManager = Depends(get_manager)):
    return WorkerResult.from_outcome(manager.claim(job_id))


@router.post("/jobs/{job_id}/progress", response_model=WorkerResult)
def report_progress(
    job_id: str,
    request: ProgressRequest,
    manager: JobLifecycleManager = Depends(get_manager),
):
    return WorkerResult.from_outcome(
        manager.report_progress(job_id, request.progress, request.metadata)
    )


@router.post("/jobs/{job_id}/complete", response_model=WorkerResult)
def complete_job(
    job_id: str,
    request: CompleteRequest,
    manager: JobLifecycleManager = Depends(get_manager),
):
    return WorkerResult.from_outcome(
        manager.complete(job_id, request.result_reference, request.metadata)
    )


@router.post("/jobs/{job_id}/fail", response_model=WorkerResult)
def fail_job(
    job_id: str,
    request: FailRequest,
    manager: JobLifecycleManager = Depends(get_manager),
):
    return WorkerResult.from_outcome(manager.fail(job_id, request.error_message))
