"""Generation API: submit a video, poll status, cancel."""

from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from genjobs.api.deps import get_manager
from genjobs.auth.supabase_auth import get_owner_id
from genjobs.jobs.manager import JobLifecycleManager
from genjobs.jobs.projections import (
    CancelResult,
    JobListResult,
    JobProjection,
    SubmissionResult,
)

router = APIRouter()


class GenerationSubmitRequest(BaseModel):
    # Checked by the manager: missing or non-string values are a 400, not a 422
    source_reference: Optional[Any] = None


@router.post("/generations", response_model=SubmissionResult, status_code=202)
def submit_generation(
    request: GenerationSubmitRequest,
    owner_id: str = Depends(get_owner_id),
    manager: JobLifecycleManager = Depends(get_manager),
):
    """Queue a new generation. Poll GET /api/v1/generations/{id} for status."""
    return manager.submit(owner_id, request.source_reference)


@router.get("/generations", response_model=JobListResult)
def list_generations(
    owner_id: str = Depends(get_owner_id),
    manager: JobLifecycleManager = Depends(get_manager),
):
    """All of the caller's generations, newest first."""
    return manager.list_jobs(owner_id)


@router.get("/generations/{job_id}", response_model=JobProjection)
def get_generation(
    job_id: str,
    owner_id: str = Depends(get_owner_id),
    manager: JobLifecycleManager = Depends(get_manager),
):
    return manager.get(job_id, owner_id)


@router.post("/generations/{job_id}/cancel", response_model=CancelResult)
def cancel_generation(
    job_id: str,
    owner_id: str = Depends(get_owner_id),
    manager: JobLifecycleManager = Depends(get_manager),
):
    """Cancel a queued or processing generation.

    Missing, foreign and already-finished generations all get the same 404.
    """
    return manager.cancel(job_id, owner_id)
