"""Generation job lifecycle manager.

Every mutation is a single conditional update against the store, keyed
on the statuses the job may currently be in. When two callers race on
the same job the store lets one through and the other gets a no-op
(None), so the manager itself holds no locks and no per-job state.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, FrozenSet, List, Optional

from genjobs.jobs.dispatcher import NullTrigger, PipelineTrigger
from genjobs.jobs.errors import (
    NotFoundOrNotCancelableError,
    ProgressRegressionError,
    ValidationError,
)
from genjobs.jobs.models import (
    Actor,
    JobChanges,
    JobRecord,
    JobStatus,
    Precondition,
    TransitionEvent,
    VideoMetadata,
    utcnow,
)
from genjobs.jobs.projections import (
    CancelResult,
    JobListResult,
    JobProjection,
    SubmissionResult,
)
from genjobs.jobs.queries import JobQueries
from genjobs.jobs.sources import validate_source_reference
from genjobs.jobs.store import JobStore
from genjobs.jobs.transitions import sources_for

logger = logging.getLogger(__name__)

TransitionListener = Callable[[TransitionEvent], None]


class JobLifecycleManager:
    def __init__(
        self,
        store: JobStore,
        trigger: Optional[PipelineTrigger] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._store = store
        self._trigger = trigger or NullTrigger()
        self._clock = clock
        self._queries = JobQueries(store)
        self._listeners: List[TransitionListener] = []

    def add_listener(self, listener: TransitionListener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Owner operations
    # ------------------------------------------------------------------

    def submit(self, owner_id: str, source_reference: Any) -> SubmissionResult:
        """Create a queued job and notify the pipeline. Does not wait for it."""
        source = validate_source_reference(source_reference)
        now = self._clock()
        record = self._store.insert(
            JobRecord(
                owner_id=owner_id,
                source_reference=source,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("Job %s queued for owner %s", record.id, owner_id)
        self._emit(record, Actor.owner(owner_id))

        try:
            self._trigger.notify(record)
        except Exception:
            logger.warning("Pipeline trigger failed for job %s", record.id, exc_info=True)

        return SubmissionResult(id=record.id, status=record.status)

    def cancel(self, job_id: str, owner_id: str) -> CancelResult:
        now = self._clock()
        record = self._transition(
            job_id,
            JobStatus.CANCELED,
            JobChanges(status=JobStatus.CANCELED, completed_at=now, updated_at=now),
            actor=Actor.owner(owner_id),
            owner_id=owner_id,
        )
        if record is None:
            raise NotFoundOrNotCancelableError()
        return CancelResult(id=record.id, status=record.status, updated_at=record.updated_at)

    def get(self, job_id: str, owner_id: str) -> JobProjection:
        return self._queries.get(job_id, owner_id)

    def list_jobs(self, owner_id: str) -> JobListResult:
        return self._queries.list_jobs(owner_id)

    # ------------------------------------------------------------------
    # Worker operations. None means no-op: the worker must stop.
    # ------------------------------------------------------------------

    def claim(self, job_id: str) -> Optional[JobRecord]:
        now = self._clock()
        return self._transition(
            job_id,
            JobStatus.PROCESSING,
            JobChanges(status=JobStatus.PROCESSING, started_at=now, updated_at=now),
            actor=Actor.system(),
        )

    def report_progress(
        self,
        job_id: str,
        progress: int,
        metadata: Optional[VideoMetadata] = None,
    ) -> Optional[JobRecord]:
        if not 0 <= progress <= 100:
            raise ValidationError(f"Progress must be between 0 and 100, got {progress}")

        record = self._store.conditional_update(
            job_id,
            Precondition(statuses=frozenset({JobStatus.PROCESSING}), max_progress=progress),
            JobChanges(progress=progress, metadata=metadata, updated_at=self._clock()),
        )
        if record is not None:
            logger.debug("Job %s progress %d%%", job_id, progress)
            return record

        current = self._store.get(job_id)
        if (
            current is not None
            and current.status == JobStatus.PROCESSING
            and current.progress > progress
        ):
            raise ProgressRegressionError(
                f"Job {job_id} is at {current.progress}%, cannot report {progress}%"
            )
        logger.debug("Job %s progress report ignored: not processing", job_id)
        return None

    def complete(
        self,
        job_id: str,
        result_reference: str,
        metadata: Optional[VideoMetadata] = None,
    ) -> Optional[JobRecord]:
        if not result_reference:
            raise ValidationError("result_reference is required to complete a job")
        now = self._clock()
        return self._transition(
            job_id,
            JobStatus.COMPLETED,
            JobChanges(
                status=JobStatus.COMPLETED,
                progress=100,
                result_reference=result_reference,
                metadata=metadata,
                completed_at=now,
                updated_at=now,
            ),
            actor=Actor.system(),
        )

    def fail(self, job_id: str, error_message: str) -> Optional[JobRecord]:
        if not error_message:
            raise ValidationError("error_message is required to fail a job")
        now = self._clock()
        return self._transition(
            job_id,
            JobStatus.FAILED,
            JobChanges(
                status=JobStatus.FAILED,
                error_message=error_message,
                completed_at=now,
                updated_at=now,
            ),
            actor=Actor.system(),
        )

    def fail_stale(self, older_than: timedelta) -> int:
        """Fail processing jobs that have not been updated within `older_than`.

        Returns how many jobs were failed. A job that reports progress or
        is canceled between the scan and the update is left alone.
        """
        now = self._clock()
        bound = now - older_than
        failed = 0
        for stale in self._store.list_stale(JobStatus.PROCESSING, bound):
            record = self._transition(
                stale.id,
                JobStatus.FAILED,
                JobChanges(
                    status=JobStatus.FAILED,
                    error_message=f"No progress reported since {stale.updated_at.isoformat()}",
                    completed_at=now,
                    updated_at=now,
                ),
                actor=Actor.system(),
                statuses=frozenset({JobStatus.PROCESSING}),
                updated_before=bound,
            )
            if record is not None:
                failed += 1
        if failed:
            logger.warning("Failed %d stale processing job(s)", failed)
        return failed

    # ------------------------------------------------------------------

    def _transition(
        self,
        job_id: str,
        target: JobStatus,
        changes: JobChanges,
        actor: Actor,
        owner_id: Optional[str] = None,
        statuses: Optional[FrozenSet[JobStatus]] = None,
        updated_before: Optional[datetime] = None,
    ) -> Optional[JobRecord]:
        precondition = Precondition(
            statuses=statuses or sources_for(target),
            owner_id=owner_id,
            updated_before=updated_before,
        )
        record = self._store.conditional_update(job_id, precondition, changes)
        if record is None:
            logger.debug("Job %s -> %s was a no-op", job_id, target.value)
            return None

        logger.info(
            "Job %s -> %s (actor=%s%s)",
            job_id,
            target.value,
            actor.kind.value,
            f":{actor.id}" if actor.id else "",
        )
        self._emit(record, actor)
        return record

    def _emit(self, record: JobRecord, actor: Actor) -> None:
        event = TransitionEvent(
            job_id=record.id,
            owner_id=record.owner_id,
            status=record.status,
            actor=actor,
            at=record.updated_at,
        )
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Transition listener failed for job %s", record.id)
