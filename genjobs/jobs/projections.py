"""Client-facing shapes returned by each operation."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from genjobs.jobs.models import JobRecord, JobStatus, VideoMetadata


class SubmissionResult(BaseModel):
    id: str
    status: JobStatus


class JobProjection(BaseModel):
    """What an owner may see of a job."""
    id: str
    source_reference: str
    status: JobStatus
    progress: int
    metadata: Optional[VideoMetadata] = None
    error_message: Optional[str] = None
    result_reference: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: JobRecord) -> "JobProjection":
        return cls(
            id=record.id,
            source_reference=record.source_reference,
            status=record.status,
            progress=record.progress,
            metadata=record.metadata,
            error_message=record.error_message,
            result_reference=record.result_reference,
            created_at=record.created_at,
            updated_at=record.updated_at,
            started_at=record.started_at,
            completed_at=record.completed_at,
        )


class JobListResult(BaseModel):
    generations: List[JobProjection]


class CancelResult(BaseModel):
    id: str
    status: JobStatus
    updated_at: datetime


class WorkerResult(BaseModel):
    """Outcome of a worker call. applied=False means stop working on this job."""
    applied: bool
    job: Optional[JobProjection] = None

    @classmethod
    def from_outcome(cls, record: Optional[JobRecord]) -> "WorkerResult":
        if record is None:
            return cls(applied=False)
        return cls(applied=True, job=JobProjection.from_record(record))
