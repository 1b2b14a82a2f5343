"""Generation job data model and the store-facing change/precondition types."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
import uuid


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: FrozenSet[JobStatus] = frozenset(
    {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELED}
)


class VideoMetadata(BaseModel):
    """Descriptive fields the pipeline fills in once it knows them."""
    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    channel_name: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[str] = None

    def merged(self, other: Optional["VideoMetadata"]) -> "VideoMetadata":
        """Return a copy where every field set on `other` wins."""
        if other is None:
            return self
        return self.model_copy(update=other.model_dump(exclude_none=True))

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class JobRecord(BaseModel):
    """A single generation request and where it is in its lifecycle."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner_id: str
    source_reference: str
    status: JobStatus = JobStatus.QUEUED
    progress: int = Field(default=0, ge=0, le=100)
    metadata: Optional[VideoMetadata] = None
    error_message: Optional[str] = None
    result_reference: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_status_fields(self) -> "JobRecord":
        completed = self.status == JobStatus.COMPLETED
        if completed and self.progress != 100:
            raise ValueError("completed job must have progress 100")
        if (self.result_reference is not None) != completed:
            raise ValueError("result_reference is set only on completed jobs")
        if (self.error_message is not None) != (self.status == JobStatus.FAILED):
            raise ValueError("error_message is set only on failed jobs")
        if self.status.is_terminal and self.completed_at is None:
            raise ValueError("terminal job must have completed_at")
        return self


class Precondition(BaseModel):
    """What the stored record must look like for a conditional update to apply."""
    model_config = ConfigDict(frozen=True)

    statuses: FrozenSet[JobStatus]
    owner_id: Optional[str] = None
    max_progress: Optional[int] = None
    updated_before: Optional[datetime] = None

    def matches(self, record: JobRecord) -> bool:
        if record.status not in self.statuses:
            return False
        if self.owner_id is not None and record.owner_id != self.owner_id:
            return False
        if self.max_progress is not None and record.progress > self.max_progress:
            return False
        if self.updated_before is not None and record.updated_at >= self.updated_before:
            return False
        return True


class JobChanges(BaseModel):
    """Field writes carried by one conditional update.

    Unset fields are left alone. Metadata is merged field by field so
    the pipeline can fill it in over several calls.
    """
    model_config = ConfigDict(frozen=True)

    updated_at: datetime
    status: Optional[JobStatus] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    metadata: Optional[VideoMetadata] = None
    error_message: Optional[str] = None
    result_reference: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def scalar_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True, exclude={"metadata"})

    def apply(self, record: JobRecord) -> JobRecord:
        update = self.scalar_fields()
        if self.metadata is not None and not self.metadata.is_empty():
            base = record.metadata or VideoMetadata()
            update["metadata"] = base.merged(self.metadata)
        data = record.model_dump()
        data.update(update)
        return JobRecord.model_validate(data)


class ActorKind(str, Enum):
    OWNER = "owner"
    SYSTEM = "system"


class Actor(BaseModel):
    """Who caused a transition: a specific owner, or the pipeline acting as system."""
    model_config = ConfigDict(frozen=True)

    kind: ActorKind
    id: Optional[str] = None

    @classmethod
    def owner(cls, owner_id: str) -> "Actor":
        return cls(kind=ActorKind.OWNER, id=owner_id)

    @classmethod
    def system(cls) -> "Actor":
        return cls(kind=ActorKind.SYSTEM)


class TransitionEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    job_id: str
    owner_id: str
    status: JobStatus
    actor: Actor
    at: datetime
